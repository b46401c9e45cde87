"""Centralized exception hierarchy for the contrib-analyzer package.

All domain-specific exceptions inherit from ``ContribAnalyzerError`` so
callers can catch the entire family with a single ``except`` clause.
"""

from __future__ import annotations


class ContribAnalyzerError(Exception):
    """Base exception for all contrib-analyzer errors."""


# ---------------------------------------------------------------------------
# Source errors
# ---------------------------------------------------------------------------


class SourceFailure(ContribAnalyzerError):
    """Base exception for a failed page request against a project."""


class SourceUnavailableError(SourceFailure):
    """Raised when the relay or the project cannot be reached for one page."""


class SourceError(SourceFailure):
    """Raised when the project reports an error for a request."""


# ---------------------------------------------------------------------------
# Collection errors
# ---------------------------------------------------------------------------


class ParticipantFailure(ContribAnalyzerError):
    """Raised when collecting one participant fails unexpectedly.

    Attributes:
        participant: The participant whose collection failed.
    """

    def __init__(self, participant: str, message: str) -> None:
        super().__init__(message)
        self.participant = participant
