"""Continuation-driven pagination for one (participant, project) pair."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from contrib_analyzer.exceptions import SourceError, SourceFailure
from contrib_analyzer.models import DEFAULT_CONTRIBUTION_LIMIT, ProjectFetchResult

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date

    from contrib_analyzer.models import ContributionRecord, Project
    from contrib_analyzer.source import PageFetcher

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_DEFAULT_MAX_PAGES = 10
_DEFAULT_PAGE_DELAY = 0.2


class ProjectPaginator:
    """Drive a :class:`PageFetcher` until a project's results are exhausted.

    A loop ends when the source stops returning a continuation cursor, when
    ``max_pages`` pages have been fetched, or when the participant's records
    from previously processed projects already fill ``contribution_limit``.
    Page failures end the loop early but keep the pages gathered so far.
    A page the project answered counts as an API call even when it could
    not be used; an unreachable request does not.

    Attributes:
        max_pages: Page ceiling per call to :meth:`paginate`.
        page_delay: Seconds to wait between two page requests.
        contribution_limit: Maximum records kept per participant.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        max_pages: int = _DEFAULT_MAX_PAGES,
        page_delay: float = _DEFAULT_PAGE_DELAY,
        contribution_limit: int = DEFAULT_CONTRIBUTION_LIMIT,
        include_minor: bool = True,
        include_bot: bool = True,
    ) -> None:
        self._fetcher = fetcher
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.contribution_limit = contribution_limit
        self.include_minor = include_minor
        self.include_bot = include_bot

    async def paginate(
        self,
        participant: str,
        project: Project,
        start_date: date,
        end_date: date,
        *,
        already_collected: int = 0,
        on_page: Callable[[str], None] | None = None,
    ) -> ProjectFetchResult:
        """Collect every page for ``participant`` on ``project``.

        Args:
            participant: Username whose contributions are requested.
            project: The wiki to query.
            start_date: First day of the period, inclusive.
            end_date: Last day of the period, inclusive.
            already_collected: Records this participant already holds from
                earlier projects in the same collection pass.
            on_page: Optional hook receiving a short progress message after
                each page.

        Returns:
            The records in fetch order, truncated to the room left under
            the contribution limit, with the number of API calls made.
        """
        remaining = self.contribution_limit - already_collected
        records: list[ContributionRecord] = []
        cursor: str | None = None
        api_calls = 0
        pages = 0
        failure: str | None = None

        while remaining > 0:
            try:
                page = await self._fetcher.fetch_page(
                    participant,
                    project.domain,
                    start_date,
                    end_date,
                    cursor,
                    include_minor=self.include_minor,
                    include_bot=self.include_bot,
                )
            except SourceFailure as exc:
                if isinstance(exc, SourceError):
                    api_calls += 1
                failure = f"page {pages + 1}: {exc}"
                logger.warning(
                    "project_pagination_failed",
                    domain=project.domain,
                    page=pages + 1,
                    error=str(exc),
                )
                break

            api_calls += 1
            pages += 1
            records.extend(page.records)
            cursor = page.cursor

            if on_page is not None:
                on_page(
                    f"{participant} - {project.domain}: page {pages}, "
                    f"{len(records)} edits so far"
                )

            if not cursor or pages >= self.max_pages:
                break
            await asyncio.sleep(self.page_delay)

        if pages >= self.max_pages and cursor:
            logger.info(
                "page_ceiling_reached",
                domain=project.domain,
                pages=pages,
                records=len(records),
            )

        return ProjectFetchResult(
            records=records[: max(remaining, 0)],
            api_calls=api_calls,
            pages=pages,
            failure=failure,
        )
