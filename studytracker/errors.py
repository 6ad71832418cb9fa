"""
Error taxonomy for StudyTracker.

Record-level failures (ParseFailure, ValidationFailure) are raised while
converting a single feed record and are counted and skipped by the
reconciler. CollaboratorFailure and StoreFailure are surfaced to callers.
"""

from __future__ import annotations


class StudyTrackerError(Exception):
    """Base class for all StudyTracker errors."""

    error_type = "error"


class ParseFailure(StudyTrackerError, ValueError):
    """A field could not be parsed (date string, numeric field)."""

    error_type = "parse"


class DateParseFailure(ParseFailure):
    """No supported date format matched."""

    def __init__(self, value: str | None):
        self.value = value
        super().__init__(f"Could not parse date: {value!r}")


class ValidationFailure(StudyTrackerError, ValueError):
    """A value parsed but violates a session invariant."""

    error_type = "validation"


class CollaboratorFailure(StudyTrackerError):
    """An external collaborator (feed, text generation) failed."""

    error_type = "collaborator"

    def __init__(self, collaborator: str, message: str):
        self.collaborator = collaborator
        super().__init__(f"{collaborator}: {message}")


class StoreFailure(StudyTrackerError):
    """The local store rejected a read or write."""

    error_type = "store"


__all__ = [
    "StudyTrackerError",
    "ParseFailure",
    "DateParseFailure",
    "ValidationFailure",
    "CollaboratorFailure",
    "StoreFailure",
]
