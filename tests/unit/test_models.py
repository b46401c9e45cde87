"""Unit tests for contrib_analyzer.models."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from contrib_analyzer.events import Severity
from contrib_analyzer.models import (
    DEFAULT_CONTRIBUTION_LIMIT,
    ContributionRecord,
    HourCount,
    Period,
    Project,
    Report,
    ReportSettingsSnapshot,
    ReportSummary,
    RunConfig,
    RunIssue,
    TimeDistribution,
)

# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


class TestProject:
    def test_name_defaults_to_domain(self) -> None:
        project = Project(domain="ta.wikipedia.org")
        assert project.name == "ta.wikipedia.org"

    def test_parse_with_display_name(self) -> None:
        project = Project.parse("ta.wikisource.org = Tamil Wikisource")
        assert project.domain == "ta.wikisource.org"
        assert project.name == "Tamil Wikisource"

    def test_parse_bare_domain(self) -> None:
        project = Project.parse("commons.wikimedia.org")
        assert project.name == "commons.wikimedia.org"

    def test_domain_stripped(self) -> None:
        project = Project(domain="  ta.wikipedia.org ")
        assert project.domain == "ta.wikipedia.org"
        assert project.name == "ta.wikipedia.org"

    @pytest.mark.parametrize("spec", ["=Tamil Wikipedia", "  = Name", "", "   "])
    def test_parse_blank_domain_rejected(self, spec: str) -> None:
        with pytest.raises(ValidationError, match="domain must not be blank"):
            Project.parse(spec)

    def test_frozen(self) -> None:
        project = Project(domain="ta.wikipedia.org")
        with pytest.raises(ValidationError):
            project.domain = "en.wikipedia.org"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# ContributionRecord
# ---------------------------------------------------------------------------


class TestContributionRecordFromApi:
    """Raw ``usercontribs`` entries normalize into fixed-shape records."""

    def test_flags_absent_default_false(self) -> None:
        record = ContributionRecord.from_api(
            {"title": "Chennai", "timestamp": "2024-03-01T10:15:00Z", "size": 812}
        )
        assert record.minor is False
        assert record.bot is False
        assert record.new is False
        assert record.size == 812
        assert record.size_delta == 0

    def test_empty_string_flags_are_set(self) -> None:
        record = ContributionRecord.from_api(
            {
                "title": "Chennai",
                "timestamp": "2024-03-01T10:15:00Z",
                "minor": "",
                "new": "",
            }
        )
        assert record.minor is True
        assert record.new is True
        assert record.bot is False

    def test_boolean_flags(self) -> None:
        record = ContributionRecord.from_api(
            {"title": "X", "timestamp": "2024-03-01T10:15:00Z", "bot": True, "minor": False}
        )
        assert record.bot is True
        assert record.minor is False

    def test_sizediff_and_ids(self) -> None:
        record = ContributionRecord.from_api(
            {
                "title": "X",
                "timestamp": "2024-03-01T10:15:00Z",
                "sizediff": -42,
                "revid": 10,
                "parentid": 9,
                "pageid": 3,
                "ns": 0,
                "comment": "typo",
                "tags": ["mobile edit"],
            }
        )
        assert record.size_delta == -42
        assert (record.revid, record.parentid, record.pageid, record.ns) == (10, 9, 3, 0)
        assert record.comment == "typo"
        assert record.tags == ("mobile edit",)


class TestContributionRecordBuckets:
    def test_hour_and_day_use_record_timestamp(self) -> None:
        record = ContributionRecord(
            title="X", timestamp=datetime(2024, 3, 1, 23, 30, tzinfo=UTC)
        )
        assert record.hour == 23
        assert record.day == "2024-03-01"

    def test_offset_timestamp_normalized_to_utc(self) -> None:
        ist = timezone(timedelta(hours=5, minutes=30))
        record = ContributionRecord(
            title="X", timestamp=datetime(2024, 3, 2, 2, 0, tzinfo=ist)
        )
        assert record.hour == 20
        assert record.day == "2024-03-01"

    def test_naive_timestamp_treated_as_utc(self) -> None:
        record = ContributionRecord(title="X", timestamp=datetime(2024, 3, 1, 7, 5))
        assert record.hour == 7

    def test_for_project_tags_copy(self) -> None:
        record = ContributionRecord(
            title="X", timestamp=datetime(2024, 3, 1, tzinfo=UTC)
        )
        tagged = record.for_project(Project.parse("ta.wikipedia.org=Tamil Wikipedia"))
        assert tagged.project_domain == "ta.wikipedia.org"
        assert tagged.project == "Tamil Wikipedia"
        assert record.project == ""


# ---------------------------------------------------------------------------
# RunConfig
# ---------------------------------------------------------------------------


def _config(**overrides: object) -> RunConfig:
    values: dict[str, object] = {
        "participants": ["Alice"],
        "projects": [Project(domain="ta.wikipedia.org")],
        "start_date": date(2024, 3, 1),
        "end_date": date(2024, 3, 31),
    }
    values.update(overrides)
    return RunConfig(**values)


class TestRunConfig:
    def test_defaults(self) -> None:
        config = _config()
        assert config.contribution_limit == DEFAULT_CONTRIBUTION_LIMIT
        assert config.include_minor is True
        assert config.include_bot is True

    @pytest.mark.parametrize("raw", [None, "", "abc", 0, -5, "  "])
    def test_malformed_limit_defaults(self, raw: object) -> None:
        assert _config(contribution_limit=raw).contribution_limit == 5000

    def test_numeric_string_limit(self) -> None:
        assert _config(contribution_limit=" 250 ").contribution_limit == 250

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_toggles_default_true(self, raw: object) -> None:
        config = _config(include_minor=raw, include_bot=raw)
        assert config.include_minor is True
        assert config.include_bot is True

    def test_explicit_toggles_kept(self) -> None:
        config = _config(include_minor=False, include_bot="false")
        assert config.include_minor is False
        assert config.include_bot is False

    def test_participants_deduplicated_in_order(self) -> None:
        config = _config(participants=["Bob", " Alice ", "", "Bob", "Carol"])
        assert config.participants == ["Bob", "Alice", "Carol"]

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(ValidationError, match="before start_date"):
            _config(start_date=date(2024, 3, 2), end_date=date(2024, 3, 1))

    def test_single_day_period_allowed(self) -> None:
        config = _config(start_date=date(2024, 3, 1), end_date=date(2024, 3, 1))
        assert config.start_date == config.end_date


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def _report(by_hour: list[HourCount]) -> Report:
    return Report(
        summary=ReportSummary(
            total_participants=0,
            total_projects=0,
            total_contributions=0,
            total_api_calls=0,
            period=Period(start=date(2024, 3, 1), end=date(2024, 3, 2)),
            settings=ReportSettingsSnapshot(
                projects=[], contribution_limit=5000, include_minor=True, include_bot=True
            ),
        ),
        participants=[],
        projects=[],
        top_contributors=[],
        detailed_stats=TimeDistribution(by_hour=by_hour),
    )


class TestReport:
    def test_peak_hours_ranked(self) -> None:
        report = _report(
            [HourCount(hour=h, count=c) for h, c in [(1, 2), (5, 9), (9, 4), (14, 9)]]
        )
        peaks = report.peak_hours(3)
        assert [p.hour for p in peaks] == [5, 14, 9]

    def test_hour_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HourCount(hour=24, count=1)

    def test_report_is_frozen(self) -> None:
        report = _report([])
        with pytest.raises(ValidationError):
            report.issues = []  # type: ignore[misc]

    def test_json_round_trip_keeps_issue_severity(self) -> None:
        report = _report([]).model_copy(
            update={
                "issues": [
                    RunIssue(participant="Alice", message="boom", severity=Severity.ERROR)
                ]
            }
        )
        restored = Report.model_validate_json(report.model_dump_json())
        assert restored.issues[0].severity is Severity.ERROR
