"""
Tool: Session Reconciler
Purpose: Turn feed records into StudySessions and drop the ones already stored

Per-record pipeline:
    1. Normalize the date (unparseable -> skipped)
    2. Resolve the subject (subject_name, else a recognised `name`)
    3. Duration must be > 0 (missing counts as 0)
    4. Focus level clamped to 1-5, default 3
    5. Icon from the subject catalog
    6. Blank notes become None

Candidates are then compared against the existing sessions. Two sessions
are the same session when subject and duration match exactly and the
timestamps are less than a minute apart. Notes and focus are ignored.

A bad record never aborts the batch; it is counted in skipped_invalid.

Usage:
    from studytracker.sync.reconciler import reconcile

    result = reconcile(feed_records, store.get_all())
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, tzinfo
from typing import Optional

from studytracker import DEFAULT_FOCUS, MAX_FOCUS, MIN_FOCUS
from studytracker.errors import ParseFailure, ValidationFailure
from studytracker.models import ExternalSessionRecord, StudySession, SyncResult
from studytracker.sync import DUPLICATE_WINDOW_SECONDS
from studytracker.sync.date_normalizer import normalize_date
from studytracker.sync.subject_catalog import icon_for, resolve_subject_name


logger = logging.getLogger(__name__)


def clamp_focus(level: Optional[int]) -> int:
    """Clamp a focus rating into the 1-5 scale, defaulting when absent."""
    if level is None:
        return DEFAULT_FOCUS
    return max(MIN_FOCUS, min(MAX_FOCUS, level))


def convert_record(record: ExternalSessionRecord, local_tz: Optional[tzinfo] = None) -> StudySession:
    """
    Convert one feed record into a candidate session.

    Raises:
        DateParseFailure: subject_date missing or in no supported format
        ValidationFailure: no usable subject, or duration <= 0
    """
    date = normalize_date(record.subject_date, local_tz)

    subject_name = resolve_subject_name(record)
    if subject_name is None:
        raise ValidationFailure(f"Record {record.id!r} has no recognisable subject")

    duration = record.duration or 0
    if duration <= 0:
        raise ValidationFailure(f"Record {record.id!r} has non-positive duration {duration}")

    notes = record.notes if record.notes and record.notes.strip() else None

    return StudySession(
        subject_name=subject_name,
        subject_icon_url=icon_for(subject_name),
        date=date,
        duration=duration,
        focus_level=clamp_focus(record.level),
        notes=notes,
    )


def is_duplicate(
    first: StudySession,
    second: StudySession,
    window_seconds: int = DUPLICATE_WINDOW_SECONDS,
) -> bool:
    """Same subject, same duration, less than window_seconds apart."""
    return (
        first.subject_name == second.subject_name
        and first.duration == second.duration
        and abs((first.date - second.date).total_seconds()) < window_seconds
    )


class _DuplicateIndex:
    """Timestamps of known sessions grouped by (subject, duration)."""

    def __init__(self, sessions: Iterable[StudySession], window_seconds: int):
        self.window_seconds = window_seconds
        self._dates: dict[tuple[str, int], list[datetime]] = defaultdict(list)
        for session in sessions:
            self.add(session)

    def add(self, session: StudySession) -> None:
        self._dates[(session.subject_name, session.duration)].append(session.date)

    def contains(self, session: StudySession) -> bool:
        for date in self._dates.get((session.subject_name, session.duration), ()):
            if abs((date - session.date).total_seconds()) < self.window_seconds:
                return True
        return False


def reconcile(
    records: Iterable[ExternalSessionRecord],
    existing_sessions: Iterable[StudySession],
    local_tz: Optional[tzinfo] = None,
    window_seconds: int = DUPLICATE_WINDOW_SECONDS,
) -> SyncResult:
    """
    Decide which feed records should be inserted into the local store.

    Accepted candidates join the comparison set, so a record repeated
    within the same batch is only inserted once.

    Args:
        records: Feed records, in feed order
        existing_sessions: Snapshot of the local store
        local_tz: Zone for dates without offset
        window_seconds: Duplicate time tolerance

    Returns:
        SyncResult with sessions to insert and skip counts
    """
    result = SyncResult()
    index = _DuplicateIndex(existing_sessions, window_seconds)

    for position, record in enumerate(records):
        try:
            candidate = convert_record(record, local_tz)
        except (ParseFailure, ValidationFailure) as e:
            logger.debug(f"Skipping feed record {position}: {e}")
            result.skipped_invalid += 1
            continue

        if index.contains(candidate):
            result.skipped_duplicate += 1
            continue

        index.add(candidate)
        result.to_insert.append(candidate)

    logger.info(
        f"Reconciled feed batch: {len(result.to_insert)} new, "
        f"{result.skipped_duplicate} duplicate(s), {result.skipped_invalid} invalid"
    )
    return result
