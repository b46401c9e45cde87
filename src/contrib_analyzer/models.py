"""Data model for contribution records, run configuration, and reports.

Records and report views are pydantic models so the finished ``Report``
serializes directly to JSON. Intermediate fetch results that never leave
the acquisition layer are plain slotted dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from contrib_analyzer.events import Severity

DEFAULT_CONTRIBUTION_LIMIT = 5000


def contribution_limit_or_default(value: Any) -> int:
    """Parse a per-run limit, falling back to the default when unusable."""
    try:
        limit = int(str(value).strip())
    except (TypeError, ValueError):
        return DEFAULT_CONTRIBUTION_LIMIT
    return limit if limit > 0 else DEFAULT_CONTRIBUTION_LIMIT


def _flag(item: dict[str, Any], key: str) -> bool:
    # formatversion=1 marks a set flag with an empty string, formatversion=2
    # with a boolean; an absent key means unset.
    if key not in item:
        return False
    return item[key] is not False and item[key] is not None


# ---------------------------------------------------------------------------
# Projects and records
# ---------------------------------------------------------------------------


class Project(BaseModel):
    """A hosted wiki queried for contributions."""

    model_config = ConfigDict(frozen=True)

    domain: str = Field(description="Host name, e.g. ``ta.wikipedia.org``.")
    name: str = Field(default="", description="Display name.")

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name"):
            return {**data, "name": str(data.get("domain", "")).strip()}
        return data

    @field_validator("domain")
    @classmethod
    def _require_domain(cls, value: str) -> str:
        domain = value.strip()
        if not domain:
            msg = "project domain must not be blank"
            raise ValueError(msg)
        return domain

    @classmethod
    def parse(cls, spec: str) -> Project:
        """Build a project from ``domain`` or ``domain=Display name``."""
        domain, _, name = spec.partition("=")
        return cls(domain=domain.strip(), name=name.strip())


class ContributionRecord(BaseModel):
    """A single edit returned by ``list=usercontribs``."""

    model_config = ConfigDict(frozen=True)

    title: str
    timestamp: datetime
    size: int = 0
    size_delta: int = 0
    minor: bool = False
    bot: bool = False
    new: bool = False
    project_domain: str = ""
    project: str = ""
    comment: str = ""
    revid: int | None = None
    parentid: int | None = None
    pageid: int | None = None
    ns: int | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> ContributionRecord:
        """Normalize one raw ``usercontribs`` entry."""
        return cls(
            title=str(item.get("title", "")),
            timestamp=item["timestamp"],
            size=int(item.get("size", 0) or 0),
            size_delta=int(item.get("sizediff", 0) or 0),
            minor=_flag(item, "minor"),
            bot=_flag(item, "bot"),
            new=_flag(item, "new"),
            comment=str(item.get("comment", "") or ""),
            revid=item.get("revid"),
            parentid=item.get("parentid"),
            pageid=item.get("pageid"),
            ns=item.get("ns"),
            tags=tuple(item.get("tags") or ()),
        )

    def for_project(self, project: Project) -> ContributionRecord:
        """Return a copy tagged with the owning project."""
        return self.model_copy(
            update={"project_domain": project.domain, "project": project.name}
        )

    @property
    def utc_timestamp(self) -> datetime:
        if self.timestamp.tzinfo is None:
            return self.timestamp.replace(tzinfo=UTC)
        return self.timestamp.astimezone(UTC)

    @property
    def hour(self) -> int:
        """Hour of day (0-23, UTC) the edit was made."""
        return self.utc_timestamp.hour

    @property
    def day(self) -> str:
        """ISO calendar date (UTC) the edit was made."""
        return self.utc_timestamp.date().isoformat()


class ProjectContribution(BaseModel):
    """A record attributed to the participant who made it."""

    model_config = ConfigDict(frozen=True)

    participant: str
    record: ContributionRecord


# ---------------------------------------------------------------------------
# Acquisition results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ContributionPage:
    """One page of results and the cursor for the next one, if any."""

    records: list[ContributionRecord]
    cursor: str | None = None


@dataclass(slots=True)
class ProjectFetchResult:
    """Outcome of paginating one (participant, project) pair."""

    records: list[ContributionRecord] = field(default_factory=list)
    api_calls: int = 0
    pages: int = 0
    failure: str | None = None


@dataclass(slots=True)
class ProjectFailure:
    project: Project
    message: str


@dataclass(slots=True)
class ParticipantCollection:
    """Records merged across every project for one participant."""

    records: list[ContributionRecord] = field(default_factory=list)
    api_calls: int = 0
    failures: list[ProjectFailure] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------


class RunConfig(BaseModel):
    """Everything the selection layer hands over to start a run.

    Missing or malformed limits and toggles fall back to their defaults
    instead of failing validation.
    """

    participants: list[str] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    start_date: date
    end_date: date
    contribution_limit: int = DEFAULT_CONTRIBUTION_LIMIT
    include_minor: bool = True
    include_bot: bool = True

    @field_validator("participants", mode="after")
    @classmethod
    def _unique_participants(cls, value: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for raw in value:
            name = raw.strip()
            if name:
                seen.setdefault(name, None)
        return list(seen)

    @field_validator("contribution_limit", mode="before")
    @classmethod
    def _default_limit(cls, value: Any) -> int:
        return contribution_limit_or_default(value)

    @field_validator("include_minor", "include_bot", mode="before")
    @classmethod
    def _default_toggle(cls, value: Any) -> Any:
        if value is None or value == "":
            return True
        return value

    @model_validator(mode="after")
    def _check_period(self) -> RunConfig:
        if self.end_date < self.start_date:
            msg = f"end_date {self.end_date} is before start_date {self.start_date}"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class ProjectCount(BaseModel):
    project: str
    count: int


class HourCount(BaseModel):
    hour: int = Field(ge=0, le=23)
    count: int


class DayCount(BaseModel):
    day: str
    count: int


class ParticipantView(BaseModel):
    """Per-participant statistics as presented in the report."""

    username: str
    total: int
    minor: int
    bot: int
    new: int
    projects: list[ProjectCount]
    project_count: int
    contributions: list[ContributionRecord]
    by_hour: list[HourCount]
    by_day: list[DayCount]


class ProjectView(BaseModel):
    """Per-project statistics as presented in the report."""

    project: str
    total_contributions: int
    unique_contributors: int
    avg_per_contributor: float
    contributions: list[ProjectContribution]


class Period(BaseModel):
    start: date
    end: date


class ReportSettingsSnapshot(BaseModel):
    """Run settings echoed back in the report summary."""

    projects: list[str]
    contribution_limit: int
    include_minor: bool
    include_bot: bool


class ReportSummary(BaseModel):
    total_participants: int
    total_projects: int
    total_contributions: int
    total_api_calls: int
    total_minor: int = 0
    total_bot: int = 0
    total_new: int = 0
    period: Period
    settings: ReportSettingsSnapshot


class TimeDistribution(BaseModel):
    by_hour: list[HourCount] = Field(default_factory=list)
    by_day: list[DayCount] = Field(default_factory=list)


class RunIssue(BaseModel):
    """A warning or error raised while collecting contributions."""

    participant: str
    project: str | None = None
    message: str
    severity: Severity


class Report(BaseModel):
    """Immutable snapshot of one analysis run."""

    model_config = ConfigDict(frozen=True)

    summary: ReportSummary
    participants: list[ParticipantView]
    projects: list[ProjectView]
    top_contributors: list[ParticipantView]
    detailed_stats: TimeDistribution
    issues: list[RunIssue] = Field(default_factory=list)

    def peak_hours(self, limit: int = 5) -> list[HourCount]:
        """Return the busiest hours, highest count first."""
        ranked = sorted(
            self.detailed_stats.by_hour, key=lambda item: item.count, reverse=True
        )
        return ranked[:limit]
