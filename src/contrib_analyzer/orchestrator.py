"""Sequential, paced analysis runs over a list of participants.

One participant is collected at a time and one request is in flight at a
time. Fixed pauses between pages and between participants are the only
throttle on the remote projects.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from contrib_analyzer.aggregator import StatisticsAggregator
from contrib_analyzer.collector import ParticipantCollector
from contrib_analyzer.events import Severity, ignore_progress, ignore_status
from contrib_analyzer.exceptions import ParticipantFailure
from contrib_analyzer.logging import participant_logging_context
from contrib_analyzer.models import ReportSettingsSnapshot, RunIssue
from contrib_analyzer.pagination import ProjectPaginator
from contrib_analyzer.report import DEFAULT_TOP_CONTRIBUTORS, build_report

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import date

    from contrib_analyzer.config import Settings
    from contrib_analyzer.events import ProgressCallback, StatusCallback
    from contrib_analyzer.models import ParticipantCollection, Report, RunConfig
    from contrib_analyzer.source import PageFetcher

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_DEFAULT_PARTICIPANT_DELAY = 0.5


def progress_percent(done: int, total: int) -> int:
    """Percentage of ``done`` over ``total``, rounded half up."""
    if total <= 0:
        return 100
    return (200 * done + total) // (2 * total)


class RunOrchestrator:
    """Collect every participant in turn and hand back the report.

    Args:
        collector: Collector used for each participant.
        settings: Settings echoed in the report summary.
        progress: Receives ``(percentage, message, detail)`` updates.
        status: Receives ``(message, severity)`` updates.
        participant_delay: Seconds to wait after a participant that
            produced records.
        top_n: Size of the report's top contributor slice.
    """

    def __init__(
        self,
        collector: ParticipantCollector,
        settings: ReportSettingsSnapshot,
        *,
        progress: ProgressCallback = ignore_progress,
        status: StatusCallback = ignore_status,
        participant_delay: float = _DEFAULT_PARTICIPANT_DELAY,
        top_n: int = DEFAULT_TOP_CONTRIBUTORS,
    ) -> None:
        self._collector = collector
        self._settings = settings
        self._progress = progress
        self._status = status
        self.participant_delay = participant_delay
        self.top_n = top_n

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        fetcher: PageFetcher,
        settings: Settings,
        *,
        progress: ProgressCallback = ignore_progress,
        status: StatusCallback = ignore_status,
    ) -> RunOrchestrator:
        """Wire paginator, collector, and orchestrator for one run config."""
        paginator = ProjectPaginator(
            fetcher,
            max_pages=settings.source.max_pages,
            page_delay=settings.source.page_delay,
            contribution_limit=config.contribution_limit,
            include_minor=config.include_minor,
            include_bot=config.include_bot,
        )
        collector = ParticipantCollector(paginator, config.projects)
        snapshot = ReportSettingsSnapshot(
            projects=[project.name for project in config.projects],
            contribution_limit=config.contribution_limit,
            include_minor=config.include_minor,
            include_bot=config.include_bot,
        )
        return cls(
            collector,
            snapshot,
            progress=progress,
            status=status,
            participant_delay=settings.run.participant_delay,
            top_n=settings.report.top_contributors,
        )

    async def _collect_participant(
        self,
        participant: str,
        start_date: date,
        end_date: date,
        on_page: Callable[[str], None],
    ) -> ParticipantCollection:
        """Collect one participant.

        Raises:
            ParticipantFailure: The collector failed outside the page and
                project failures it contains itself.
        """
        try:
            return await self._collector.collect(
                participant, start_date, end_date, on_page=on_page
            )
        except Exception as exc:
            raise ParticipantFailure(participant, str(exc)) from exc

    async def run(
        self,
        participants: Sequence[str],
        start_date: date,
        end_date: date,
    ) -> Report:
        """Analyse ``participants`` over the inclusive period.

        A failure for one participant is reported and skipped; the run
        always finishes and always returns a report.
        """
        aggregator = StatisticsAggregator()
        issues: list[RunIssue] = []
        total = len(participants)
        total_contributions = 0
        total_api_calls = 0

        logger.info(
            "run_started",
            participants=total,
            projects=len(self._collector.projects),
            start=start_date.isoformat(),
            end=end_date.isoformat(),
        )
        self._progress(0, "Starting...", "")

        for index, participant in enumerate(participants):
            percent = progress_percent(index + 1, total)
            message = f"{participant} - fetching contributions"
            detail = (
                f"Participant {index + 1}/{total} | "
                f"Total contributions: {total_contributions}"
            )
            self._progress(percent, message, detail)

            def on_page(
                page_message: str, percent: int = percent, detail: str = detail
            ) -> None:
                self._progress(percent, page_message, detail)

            with participant_logging_context(participant, index=index) as log:
                try:
                    collection = await self._collect_participant(
                        participant, start_date, end_date, on_page
                    )
                except ParticipantFailure as failure:
                    log.exception("participant_failed", error=str(failure))
                    issues.append(
                        RunIssue(
                            participant=failure.participant,
                            message=str(failure),
                            severity=Severity.ERROR,
                        )
                    )
                    self._status(
                        f"{failure.participant}: error - {failure}", Severity.ERROR
                    )
                    continue

                total_api_calls += collection.api_calls

                for project_failure in collection.failures:
                    issues.append(
                        RunIssue(
                            participant=participant,
                            project=project_failure.project.name,
                            message=project_failure.message,
                            severity=Severity.WARNING,
                        )
                    )
                    self._status(
                        f"{participant} - {project_failure.project.name}: "
                        f"{project_failure.message}",
                        Severity.WARNING,
                    )

                count = len(collection.records)
                if count == 0:
                    log.info("participant_empty", api_calls=collection.api_calls)
                    self._status(f"{participant}: no contributions found", Severity.INFO)
                    continue

                aggregator.add_contributions(participant, collection.records)
                total_contributions += count
                log.info(
                    "participant_collected",
                    contributions=count,
                    api_calls=collection.api_calls,
                )
                self._status(
                    f"{participant}: {count} contributions "
                    f"(API calls: {collection.api_calls})",
                    Severity.SUCCESS,
                )

            await asyncio.sleep(self.participant_delay)

        logger.info(
            "run_completed",
            contributions=total_contributions,
            api_calls=total_api_calls,
            issues=len(issues),
        )
        self._status(
            f"Analysis complete! {total_contributions} total contributions, "
            f"{total_api_calls} API calls",
            Severity.SUCCESS,
        )

        return build_report(
            aggregator,
            start_date=start_date,
            end_date=end_date,
            total_contributions=total_contributions,
            total_api_calls=total_api_calls,
            settings=self._settings,
            issues=issues,
            top_n=self.top_n,
        )
