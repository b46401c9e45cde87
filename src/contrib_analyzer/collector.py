"""Merge one participant's contributions across every configured project."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from contrib_analyzer.models import ParticipantCollection, ProjectFailure

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import date

    from contrib_analyzer.models import Project
    from contrib_analyzer.pagination import ProjectPaginator

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ParticipantCollector:
    """Run the paginator over each project, in order, for one participant."""

    def __init__(self, paginator: ProjectPaginator, projects: Sequence[Project]) -> None:
        self._paginator = paginator
        self.projects = list(projects)

    async def collect(
        self,
        participant: str,
        start_date: date,
        end_date: date,
        on_page: Callable[[str], None] | None = None,
    ) -> ParticipantCollection:
        """Fetch and tag the participant's records from every project.

        A project that fails outright contributes no records and is listed
        in ``failures``; the remaining projects are still processed.
        """
        collection = ParticipantCollection()

        for project in self.projects:
            try:
                result = await self._paginator.paginate(
                    participant,
                    project,
                    start_date,
                    end_date,
                    already_collected=len(collection.records),
                    on_page=on_page,
                )
            except Exception as exc:
                logger.warning(
                    "project_collection_failed",
                    project=project.name,
                    domain=project.domain,
                    error=str(exc),
                )
                collection.failures.append(ProjectFailure(project, str(exc)))
                continue

            collection.records.extend(
                record.for_project(project) for record in result.records
            )
            collection.api_calls += result.api_calls
            if result.failure is not None:
                collection.failures.append(ProjectFailure(project, result.failure))

        logger.debug(
            "participant_collected",
            records=len(collection.records),
            api_calls=collection.api_calls,
            failures=len(collection.failures),
        )
        return collection
