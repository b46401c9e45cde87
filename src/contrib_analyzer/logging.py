"""structlog setup for analysis runs.

Terminal output follows the configured format; an optional log file always
receives one JSON object per line so a run can be inspected afterwards.
Every entry carries the run ID and, while a participant is being
collected, the participant's name and position.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Loggers that report every relay request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def generate_run_id() -> str:
    """Generate a unique identifier for one analysis run."""
    return str(uuid.uuid4())


def _formatter(*, as_json: bool) -> logging.Formatter:
    renderers: list[structlog.types.Processor] = (
        [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        if as_json
        else [structlog.dev.ConsoleRenderer()]
    )
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
    run_id: str | None = None,
) -> None:
    """Route structlog and stdlib logging through stderr and an optional file.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: ``"console"`` for coloured terminal output or ``"json"``.
        log_file: File that receives JSON lines in addition to stderr.
        run_id: Run ID bound to every entry.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    level_name = level.upper()
    if level_name not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {list(_VALID_LEVELS)}"
        raise ValueError(msg)
    numeric_level = getattr(logging, level_name)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(as_json=fmt == "json"))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setFormatter(_formatter(as_json=True))
        root.addHandler(file_handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    if run_id:
        structlog.contextvars.bind_contextvars(run_id=run_id)


@contextmanager
def participant_logging_context(
    participant: str, index: int = 0
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Bind ``participant`` and ``participant_index`` while one participant is collected.

    Entries from the collector and paginator inside the block carry both
    keys; they are unbound on exit, including when the block raises.
    """
    structlog.contextvars.bind_contextvars(
        participant=participant, participant_index=index
    )
    log: structlog.stdlib.BoundLogger = structlog.get_logger("participant")
    log.debug("participant_start")
    try:
        yield log
    finally:
        log.debug("participant_end")
        structlog.contextvars.unbind_contextvars("participant", "participant_index")
