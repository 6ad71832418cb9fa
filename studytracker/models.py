"""
Tool: Study Models
Purpose: Canonical data structures for sessions, feed records, summaries and tips

Usage:
    from studytracker.models import StudySession, ExternalSessionRecord, StudyTip

StudySession is the locally owned record. ExternalSessionRecord is the
transient shape received from the session feed; it is never stored as-is.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class StudySession:
    """
    A validated study session.

    Attributes:
        subject_name: Subject studied (non-empty)
        date: Start instant, timezone-aware (stored as UTC)
        duration: Length in minutes, always > 0
        focus_level: Self-rated focus, 1-5 inclusive
        subject_icon_url: Icon reference resolved from the subject catalog
        notes: Free text, None when blank
        id: Assigned by the store on insert
    """
    subject_name: str
    date: datetime
    duration: int
    focus_level: int
    subject_icon_url: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


class ExternalSessionRecord(BaseModel):
    """
    Session entry as received from the feed, before validation.

    The feed sometimes fills `name` with a subject and sometimes with an
    unrelated label; the subject catalog decides which.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str = Field(default="")
    subject_name: Optional[str] = None
    subject_date: Optional[str] = None
    duration: Optional[int] = None
    level: Optional[int] = None
    notes: Optional[str] = None
    name: Optional[str] = None


@dataclass
class FeedBatch:
    """
    One fetch of the session feed.

    malformed counts entries dropped because their fields failed validation;
    they never appear in records.
    """
    records: list[ExternalSessionRecord] = field(default_factory=list)
    malformed: int = 0


@dataclass(frozen=True)
class SubjectCatalogEntry:
    """Subject offered to the user, derived from the feed."""
    id: str
    name: str
    icon_url: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AggregateSummary:
    """Statistics for one closed time window."""
    window_start: datetime
    window_end: datetime
    total_duration: int = 0
    most_studied_subject: Optional[str] = None
    average_focus: float = 0.0
    session_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_start": self.window_start.isoformat(),
            "window_end": self.window_end.isoformat(),
            "total_duration": self.total_duration,
            "most_studied_subject": self.most_studied_subject,
            "average_focus": round(self.average_focus, 2),
            "session_count": self.session_count,
        }


class TipCategory(StrEnum):
    """What a tip is about."""

    TIME_PATTERN = "time-pattern"
    FOCUS_TREND = "focus-trend"
    SUBJECT_BALANCE = "subject-balance"
    DURATION_OPTIMIZATION = "duration-optimization"


@dataclass(frozen=True)
class StudyTip:
    """Advisory message; rank 1 is shown first."""
    title: str
    description: str
    category: TipCategory
    rank: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "rank": self.rank,
        }


@dataclass
class SyncResult:
    """Outcome of reconciling one feed batch against the local store."""
    to_insert: list[StudySession] = field(default_factory=list)
    skipped_invalid: int = 0
    skipped_duplicate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "to_insert": len(self.to_insert),
            "skipped_invalid": self.skipped_invalid,
            "skipped_duplicate": self.skipped_duplicate,
        }


@dataclass
class SessionFilter:
    """
    Optional criteria for listing sessions. All set criteria must match.

    search_query is a substring match on notes.
    """
    subject: Optional[str] = None
    min_focus: Optional[int] = None
    max_focus: Optional[int] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search_query: Optional[str] = None

    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())
