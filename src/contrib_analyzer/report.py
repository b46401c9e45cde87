"""Build the ranked, presentation-ready report from aggregator state."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from contrib_analyzer.models import (
    DayCount,
    HourCount,
    ParticipantView,
    Period,
    ProjectCount,
    ProjectView,
    Report,
    ReportSettingsSnapshot,
    ReportSummary,
    TimeDistribution,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from contrib_analyzer.aggregator import (
        ParticipantStat,
        ProjectStat,
        StatisticsAggregator,
    )
    from contrib_analyzer.models import RunIssue

DEFAULT_TOP_CONTRIBUTORS = 10


def _hours(counts: Counter[int]) -> list[HourCount]:
    return [HourCount(hour=hour, count=count) for hour, count in sorted(counts.items())]


def _days(counts: Counter[str]) -> list[DayCount]:
    # ISO dates sort chronologically as strings.
    return [DayCount(day=day, count=count) for day, count in sorted(counts.items())]


def participant_view(username: str, stat: ParticipantStat) -> ParticipantView:
    projects = sorted(stat.projects.items(), key=lambda item: item[1], reverse=True)
    return ParticipantView(
        username=username,
        total=stat.total,
        minor=stat.minor,
        bot=stat.bot,
        new=stat.new,
        projects=[ProjectCount(project=name, count=count) for name, count in projects],
        project_count=len(stat.projects),
        contributions=list(stat.contributions),
        by_hour=_hours(stat.by_hour),
        by_day=_days(stat.by_day),
    )


def project_view(name: str, stat: ProjectStat) -> ProjectView:
    # A ProjectStat only exists once a contribution was added, so there is
    # always at least one contributor.
    return ProjectView(
        project=name,
        total_contributions=stat.total,
        unique_contributors=len(stat.contributors),
        avg_per_contributor=stat.total / len(stat.contributors),
        contributions=list(stat.contributions),
    )


def build_report(
    aggregator: StatisticsAggregator,
    *,
    start_date: date,
    end_date: date,
    total_contributions: int,
    total_api_calls: int,
    settings: ReportSettingsSnapshot,
    issues: Iterable[RunIssue] = (),
    top_n: int = DEFAULT_TOP_CONTRIBUTORS,
) -> Report:
    """Produce the final :class:`Report` for one run.

    Participants and projects are ranked by descending contribution count;
    ties keep the order in which they were first aggregated.

    Args:
        aggregator: Aggregator holding the run's statistics.
        start_date: First day of the analysed period.
        end_date: Last day of the analysed period.
        total_contributions: The orchestrator's running contribution total.
        total_api_calls: API calls made over the whole run.
        settings: Run settings echoed in the summary.
        issues: Warnings and errors raised while collecting.
        top_n: Size of the top contributor slice.

    Returns:
        The immutable report snapshot.
    """
    participants = sorted(
        (
            participant_view(username, stat)
            for username, stat in aggregator.participants.items()
        ),
        key=lambda view: view.total,
        reverse=True,
    )
    projects = sorted(
        (project_view(name, stat) for name, stat in aggregator.projects.items()),
        key=lambda view: view.total_contributions,
        reverse=True,
    )

    by_hour: Counter[int] = Counter()
    by_day: Counter[str] = Counter()
    for stat in aggregator.participants.values():
        by_hour.update(stat.by_hour)
        by_day.update(stat.by_day)

    summary = ReportSummary(
        total_participants=len(aggregator.participants),
        total_projects=len(aggregator.projects),
        total_contributions=total_contributions,
        total_api_calls=total_api_calls,
        total_minor=sum(view.minor for view in participants),
        total_bot=sum(view.bot for view in participants),
        total_new=sum(view.new for view in participants),
        period=Period(start=start_date, end=end_date),
        settings=settings,
    )

    return Report(
        summary=summary,
        participants=participants,
        projects=projects,
        top_contributors=participants[:top_n],
        detailed_stats=TimeDistribution(by_hour=_hours(by_hour), by_day=_days(by_day)),
        issues=list(issues),
    )
