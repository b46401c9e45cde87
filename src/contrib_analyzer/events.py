"""Progress and status callback contracts for analysis runs.

The orchestrator never talks to a presentation layer directly. It reports
through two injected callables; the CLI renders them with rich.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol


class Severity(StrEnum):
    """Severity attached to a status event."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ProgressCallback(Protocol):
    """Receives ``(percentage, message, detail)`` progress updates."""

    def __call__(self, percentage: int, message: str, detail: str) -> None: ...


class StatusCallback(Protocol):
    """Receives ``(message, severity)`` status updates."""

    def __call__(self, message: str, severity: Severity) -> None: ...


def ignore_progress(percentage: int, message: str, detail: str) -> None:
    """Progress callback that discards every update."""


def ignore_status(message: str, severity: Severity) -> None:
    """Status callback that discards every update."""

