"""Incremental per-participant and per-project contribution tallies."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contrib_analyzer.models import ProjectContribution

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contrib_analyzer.models import ContributionRecord


@dataclass(slots=True)
class ParticipantStat:
    """Running totals for one participant."""

    total: int = 0
    minor: int = 0
    bot: int = 0
    new: int = 0
    contributions: list[ContributionRecord] = field(default_factory=list)
    projects: Counter[str] = field(default_factory=Counter)
    by_hour: Counter[int] = field(default_factory=Counter)
    by_day: Counter[str] = field(default_factory=Counter)


@dataclass(slots=True)
class ProjectStat:
    """Running totals for one project."""

    total: int = 0
    contributors: set[str] = field(default_factory=set)
    contributions: list[ProjectContribution] = field(default_factory=list)


class StatisticsAggregator:
    """Fold contribution records into participant and project statistics.

    Both mappings preserve first-seen order, which the report relies on for
    stable ranking. Adding the same records twice counts them twice.
    """

    def __init__(self) -> None:
        self._participants: dict[str, ParticipantStat] = {}
        self._projects: dict[str, ProjectStat] = {}

    @property
    def participants(self) -> dict[str, ParticipantStat]:
        return self._participants

    @property
    def projects(self) -> dict[str, ProjectStat]:
        return self._projects

    def add_contributions(
        self, participant: str, records: Iterable[ContributionRecord]
    ) -> None:
        """Add a batch of records made by ``participant``."""
        for record in records:
            stat = self._participants.get(participant)
            if stat is None:
                stat = self._participants[participant] = ParticipantStat()

            stat.total += 1
            if record.minor:
                stat.minor += 1
            if record.bot:
                stat.bot += 1
            if record.new:
                stat.new += 1
            stat.contributions.append(record)
            stat.projects[record.project] += 1
            stat.by_hour[record.hour] += 1
            stat.by_day[record.day] += 1

            project = self._projects.get(record.project)
            if project is None:
                project = self._projects[record.project] = ProjectStat()
            project.total += 1
            project.contributors.add(participant)
            project.contributions.append(
                ProjectContribution(participant=participant, record=record)
            )
