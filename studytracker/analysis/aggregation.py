"""
Tool: Session Aggregation
Purpose: Window-scoped statistics over the session history

All functions are pure: they take the session set and a closed window and
recompute from scratch on every call.

Ties for most-studied subject go to the alphabetically first name, so the
result never depends on store ordering.

Usage:
    from studytracker.analysis.aggregation import compute_summary
    from studytracker.windows import current_week

    summary = compute_summary(store.get_all(), current_week())
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Optional

from studytracker.models import AggregateSummary, StudySession
from studytracker.windows import TimeWindow


def sessions_in_window(sessions: Iterable[StudySession], window: TimeWindow) -> list[StudySession]:
    return [s for s in sessions if window.contains(s.date)]


def total_duration(sessions: Iterable[StudySession], window: TimeWindow) -> int:
    """Sum of minutes in the window, 0 if none."""
    return sum(s.duration for s in sessions_in_window(sessions, window))


def per_subject_durations(sessions: Iterable[StudySession], window: TimeWindow) -> dict[str, int]:
    """Summed minutes per subject present in the window."""
    totals: dict[str, int] = defaultdict(int)
    for session in sessions_in_window(sessions, window):
        totals[session.subject_name] += session.duration
    return dict(totals)


def top_subject(durations: dict[str, int]) -> Optional[str]:
    """Subject with the largest total; ties go to the alphabetically first name."""
    if not durations:
        return None
    return min(durations, key=lambda name: (-durations[name], name))


def most_studied_subject(sessions: Iterable[StudySession], window: TimeWindow) -> Optional[str]:
    return top_subject(per_subject_durations(sessions, window))


def average_focus(sessions: Iterable[StudySession], window: TimeWindow) -> float:
    """Mean focus level in the window, 0.0 if none."""
    levels = [s.focus_level for s in sessions_in_window(sessions, window)]
    if not levels:
        return 0.0
    return sum(levels) / len(levels)


def compute_summary(sessions: Iterable[StudySession], window: TimeWindow) -> AggregateSummary:
    """Total, most-studied subject and average focus for one window."""
    in_window = sessions_in_window(sessions, window)
    return AggregateSummary(
        window_start=window.start,
        window_end=window.end,
        total_duration=total_duration(in_window, window),
        most_studied_subject=most_studied_subject(in_window, window),
        average_focus=average_focus(in_window, window),
        session_count=len(in_window),
    )


def weekly_breakdown(sessions: Iterable[StudySession], window: TimeWindow) -> list[dict]:
    """
    Per-subject minutes for charting, largest first.

    Returns:
        list of {"subject_name": str, "total_duration": int}
    """
    durations = per_subject_durations(sessions, window)
    ordered = sorted(durations.items(), key=lambda item: (-item[1], item[0]))
    return [{"subject_name": name, "total_duration": total} for name, total in ordered]
