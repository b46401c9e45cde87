"""Unit tests for contrib_analyzer.exceptions - centralized exception hierarchy."""

from __future__ import annotations

import pytest

from contrib_analyzer.exceptions import (
    ContribAnalyzerError,
    ParticipantFailure,
    SourceError,
    SourceFailure,
    SourceUnavailableError,
)


class TestContribAnalyzerError:
    """Base exception class tests."""

    def test_inherits_from_exception(self) -> None:
        assert issubclass(ContribAnalyzerError, Exception)

    def test_catches_all_subclasses(self) -> None:
        for cls in (SourceFailure, SourceUnavailableError, SourceError):
            with pytest.raises(ContribAnalyzerError):
                raise cls("sub error")

        with pytest.raises(ContribAnalyzerError):
            raise ParticipantFailure("Alice", "boom")


class TestSourceErrors:
    """Page-level failures share one base."""

    def test_unavailable_is_source_failure(self) -> None:
        assert issubclass(SourceUnavailableError, SourceFailure)

    def test_source_error_is_source_failure(self) -> None:
        assert issubclass(SourceError, SourceFailure)

    def test_message_preserved(self) -> None:
        assert str(SourceError("Invalid username")) == "Invalid username"


class TestParticipantFailure:
    """ParticipantFailure keeps the participant."""

    def test_carries_participant(self) -> None:
        err = ParticipantFailure("Alice", "collector crashed")
        assert err.participant == "Alice"
        assert str(err) == "collector crashed"

    def test_not_a_source_failure(self) -> None:
        assert not issubclass(ParticipantFailure, SourceFailure)
