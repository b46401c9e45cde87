"""Shared pytest fixtures for the contrib-analyzer test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, NamedTuple
from unittest.mock import AsyncMock, patch

import pytest

from contrib_analyzer.events import Severity
from contrib_analyzer.models import ContributionPage, ContributionRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import date

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def _make_records(
    count: int,
    *,
    start: datetime | None = None,
    step: timedelta = timedelta(hours=1),
    prefix: str = "Page",
    **fields: Any,
) -> list[ContributionRecord]:
    first = start or datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
    return [
        ContributionRecord(
            title=f"{prefix} {i}",
            timestamp=first + step * i,
            size=100 + i,
            size_delta=i,
            **fields,
        )
        for i in range(count)
    ]


@pytest.fixture()
def make_records() -> Callable[..., list[ContributionRecord]]:
    """Return a factory building ``count`` records an hour apart."""
    return _make_records


# ---------------------------------------------------------------------------
# Scripted page fetcher
# ---------------------------------------------------------------------------


class ScriptedFetcher:
    """Serves pre-built pages (or raises) per (participant, domain) pair.

    Pairs missing from the script answer with an empty, final page.
    """

    def __init__(
        self, script: dict[tuple[str, str], list[ContributionPage | Exception]]
    ) -> None:
        self._script = {key: list(pages) for key, pages in script.items()}
        self.calls: list[tuple[str, str, str | None]] = []
        self.flags: list[tuple[bool, bool]] = []

    async def fetch_page(
        self,
        participant: str,
        domain: str,
        start_date: date,
        end_date: date,
        cursor: str | None = None,
        *,
        include_minor: bool = True,
        include_bot: bool = True,
    ) -> ContributionPage:
        self.calls.append((participant, domain, cursor))
        self.flags.append((include_minor, include_bot))
        pages = self._script.get((participant, domain))
        if not pages:
            return ContributionPage(records=[])
        item = pages.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture()
def scripted_fetcher() -> type[ScriptedFetcher]:
    return ScriptedFetcher


# ---------------------------------------------------------------------------
# Pacing
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_sleep() -> Iterator[AsyncMock]:
    """Replace ``asyncio.sleep`` so pacing delays return immediately."""
    with patch(
        "contrib_analyzer.pagination.asyncio.sleep", new_callable=AsyncMock
    ) as sleep:
        yield sleep


# ---------------------------------------------------------------------------
# Event capture
# ---------------------------------------------------------------------------


class ProgressEvent(NamedTuple):
    percentage: int
    message: str
    detail: str


class StatusEvent(NamedTuple):
    message: str
    severity: Severity


class EventRecorder:
    """Collects progress and status callbacks in emission order."""

    def __init__(self) -> None:
        self.progress_events: list[ProgressEvent] = []
        self.status_events: list[StatusEvent] = []

    def progress(self, percentage: int, message: str, detail: str) -> None:
        self.progress_events.append(ProgressEvent(percentage, message, detail))

    def status(self, message: str, severity: Severity) -> None:
        self.status_events.append(StatusEvent(message, severity))

    def with_severity(self, severity: Severity) -> list[StatusEvent]:
        return [event for event in self.status_events if event.severity == severity]


@pytest.fixture()
def recorder() -> EventRecorder:
    return EventRecorder()
