"""Shared test fixtures for StudyTracker tests.

This module provides common fixtures used across all test modules:
- Database isolation with temporary files
- Session factories and standard session data
- Fake collaborators for the session feed and text generation

Usage:
    def test_something(session_store, make_session):
        session_store.insert(make_session("Physics", duration=60))
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

from studytracker.config_models import StudyTrackerConfig
from studytracker.errors import CollaboratorFailure
from studytracker.models import ExternalSessionRecord, FeedBatch, StudySession
from studytracker.service import StudyContext, StudyService
from studytracker.store import SessionStore


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent

BASE_TIME = datetime(2025, 7, 14, 9, 0, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Database Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Path to a database file inside the test's temporary directory."""
    return tmp_path / "data" / "studytracker.db"


@pytest.fixture
def session_store(temp_db: Path) -> SessionStore:
    """Empty store backed by a temporary database."""
    return SessionStore(temp_db)


# ─────────────────────────────────────────────────────────────────────────────
# Session Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def base_time() -> datetime:
    """2025-07-14 09:00 UTC, a Monday."""
    return BASE_TIME


@pytest.fixture
def make_session():
    """Factory for StudySession with sensible defaults."""

    def _make(
        subject: str = "Physics",
        duration: int = 60,
        focus: int = 3,
        date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> StudySession:
        return StudySession(
            subject_name=subject,
            date=date or BASE_TIME,
            duration=duration,
            focus_level=focus,
            notes=notes,
        )

    return _make


@pytest.fixture
def sample_records() -> list[ExternalSessionRecord]:
    """A feed batch mixing good, ambiguous and broken records."""
    return [
        ExternalSessionRecord(
            id="1", subject_name="Physics", subject_date="2025-07-14T09:00:00.000Z",
            duration=60, level=4, notes="Kinematics",
        ),
        ExternalSessionRecord(
            id="2", subject_name="Mathematics", subject_date="2025-07-15T10:00:00Z",
            duration=45, level=7, notes="  ",
        ),
        ExternalSessionRecord(
            id="3", subject_name="", name="chemistry", subject_date="2025-07-16",
            duration=30,
        ),
        ExternalSessionRecord(
            id="4", subject_name="", name="Jane Doe", subject_date="2025-07-16",
            duration=30, level=3,
        ),
        ExternalSessionRecord(
            id="5", subject_name="History", subject_date="not a date", duration=50, level=3,
        ),
        ExternalSessionRecord(
            id="6", subject_name="Art", subject_date="2025-07-17T00:00:00+07:00", duration=0, level=3,
        ),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Collaborator Fakes
# ─────────────────────────────────────────────────────────────────────────────


class FakeFeed:
    """In-memory session feed; set `error` to make it fail, `malformed` to report dropped entries."""

    def __init__(self, records: Optional[list[ExternalSessionRecord]] = None):
        self.records = records or []
        self.malformed = 0
        self.error: Optional[CollaboratorFailure] = None
        self.calls = 0

    async def get_external_sessions(self) -> FeedBatch:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return FeedBatch(records=list(self.records), malformed=self.malformed)


class FakeGenerator:
    """Text generator returning a canned reply; set `error` to make it fail."""

    def __init__(self, reply: str = ""):
        self.reply = reply
        self.error: Optional[Exception] = None
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_feed(sample_records) -> FakeFeed:
    return FakeFeed(sample_records)


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator(
        "Here are some tips:\n"
        "1. Morning Focus: Study hard topics before noon.\n"
        "2. Take Breaks: Pause every 45 minutes.\n"
        "Good luck!"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Service Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def utc_config(temp_db: Path) -> StudyTrackerConfig:
    """Defaults, with UTC as the local zone and the temporary database."""
    return StudyTrackerConfig(
        storage={"db_path": str(temp_db)},
        analysis={"timezone": "UTC"},
    )


@pytest.fixture
def study_context(utc_config, session_store, fake_feed, fake_generator) -> StudyContext:
    return StudyContext(
        config=utc_config,
        store=session_store,
        feed=fake_feed,
        generator=fake_generator,
    )


@pytest.fixture
def study_service(study_context) -> StudyService:
    return StudyService(study_context)
