"""
Tool: Heuristic Tip Analyzer
Purpose: Detect study patterns in the session history and phrase them as tips

Detectors, evaluated in this order (earlier tips win when capping at 3):
- peak_focus_time: hour of day with the highest summed focus
- focus_decline: last 5 sessions vs the 5 before them
- subject_imbalance: one subject dominating total study time
- long_session_fatigue: sessions > 2h rated lower than sessions < 30 min

Fewer than 3 sessions is not enough signal; no tips are produced.

Usage:
    from studytracker.analysis.tip_analyzer import analyze_study_patterns

    tips = analyze_study_patterns(store.get_all())
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import tzinfo
from typing import Any, Optional

from studytracker.analysis import MAX_TIPS, MIN_SESSIONS_FOR_TIPS, time_of_day_label
from studytracker.analysis.aggregation import top_subject
from studytracker.models import StudySession, StudyTip, TipCategory


logger = logging.getLogger(__name__)

# Detector thresholds
PEAK_MIN_AVERAGE_FOCUS = 4.0
PEAK_MIN_SESSIONS = 3
TREND_WINDOW = 5
TREND_DROP = 0.5
IMBALANCE_SHARE_PERCENT = 60
LONG_SESSION_MINUTES = 120
SHORT_SESSION_MINUTES = 30


def _mean(values: Sequence[int]) -> float:
    return sum(values) / len(values)


def detect_peak_focus_time(sessions: Sequence[StudySession], tz: Optional[tzinfo] = None) -> Optional[dict[str, Any]]:
    """Hour with the largest summed focus, if it is consistently high."""
    by_hour: dict[int, list[int]] = defaultdict(list)
    for session in sessions:
        by_hour[session.date.astimezone(tz).hour].append(session.focus_level)

    if not by_hour:
        return None

    # Ties go to the earlier hour
    hour = min(by_hour, key=lambda h: (-sum(by_hour[h]), h))
    levels = by_hour[hour]
    avg_focus = _mean(levels)

    if avg_focus < PEAK_MIN_AVERAGE_FOCUS or len(levels) < PEAK_MIN_SESSIONS:
        return None

    return {
        "hour": hour,
        "label": time_of_day_label(hour),
        "average_focus": avg_focus,
        "session_count": len(levels),
    }


def detect_focus_decline(sessions: Sequence[StudySession]) -> Optional[dict[str, Any]]:
    """Recent sessions rated noticeably lower than the ones before them."""
    by_recency = sorted(sessions, key=lambda s: s.date, reverse=True)
    recent = by_recency[:TREND_WINDOW]
    older = by_recency[TREND_WINDOW:TREND_WINDOW * 2]

    if not recent or not older:
        return None

    recent_avg = _mean([s.focus_level for s in recent])
    older_avg = _mean([s.focus_level for s in older])

    if recent_avg >= older_avg - TREND_DROP:
        return None

    return {"recent_average": recent_avg, "older_average": older_avg}


def detect_subject_imbalance(sessions: Sequence[StudySession]) -> Optional[dict[str, Any]]:
    """One subject taking more than 60% of all study time."""
    durations: dict[str, int] = defaultdict(int)
    for session in sessions:
        durations[session.subject_name] += session.duration

    if len(durations) < 2:
        return None

    subject = top_subject(durations)
    share = durations[subject] / sum(durations.values()) * 100

    if share <= IMBALANCE_SHARE_PERCENT:
        return None

    return {"subject": subject, "share_percent": share, "subject_count": len(durations)}


def detect_long_session_fatigue(sessions: Sequence[StudySession]) -> Optional[dict[str, Any]]:
    """Focus in sessions over two hours lower than in sessions under half an hour."""
    long_levels = [s.focus_level for s in sessions if s.duration > LONG_SESSION_MINUTES]
    short_levels = [s.focus_level for s in sessions if s.duration < SHORT_SESSION_MINUTES]

    if not long_levels or not short_levels:
        return None

    long_avg = _mean(long_levels)
    short_avg = _mean(short_levels)

    if long_avg >= short_avg:
        return None

    return {"long_average": long_avg, "short_average": short_avg}


def _peak_focus_tip(found: dict[str, Any]) -> tuple[str, str, TipCategory]:
    return (
        "Peak Focus Time",
        f"You show your highest focus during the {found['label']} ({found['hour']}:00), "
        f"averaging {found['average_focus']:.1f}/5 over {found['session_count']} sessions. "
        "Consider scheduling important study sessions during this time.",
        TipCategory.TIME_PATTERN,
    )


def _focus_decline_tip(found: dict[str, Any]) -> tuple[str, str, TipCategory]:
    return (
        "Focus Level Trend",
        f"Your average focus dropped from {found['older_average']:.1f} to "
        f"{found['recent_average']:.1f} over your latest sessions. "
        "Consider taking breaks between sessions or adjusting your study environment.",
        TipCategory.FOCUS_TREND,
    )


def _subject_imbalance_tip(found: dict[str, Any]) -> tuple[str, str, TipCategory]:
    return (
        "Subject Balance",
        f"{found['subject']} takes up {int(found['share_percent'])}% of your study time. "
        "Consider diversifying your subjects for better overall progress.",
        TipCategory.SUBJECT_BALANCE,
    )


def _long_session_tip(found: dict[str, Any]) -> tuple[str, str, TipCategory]:
    return (
        "Optimal Session Duration",
        f"Your focus averages {found['long_average']:.1f} in sessions longer than 2 hours "
        f"but {found['short_average']:.1f} in sessions under 30 minutes. "
        "Consider breaking long sessions into shorter, focused blocks with breaks.",
        TipCategory.DURATION_OPTIMIZATION,
    )


def analyze_study_patterns(
    sessions: Sequence[StudySession],
    tz: Optional[tzinfo] = None,
    max_tips: int = MAX_TIPS,
    min_sessions: int = MIN_SESSIONS_FOR_TIPS,
) -> list[StudyTip]:
    """
    Run every detector and return the tips that fired, ranked.

    Args:
        sessions: Full session history, any order
        tz: Zone used for hour-of-day grouping (default: host zone)
        max_tips: Cap on returned tips
        min_sessions: Below this, return no tips

    Returns:
        list of StudyTip, rank 1 first
    """
    if len(sessions) < min_sessions:
        return []

    detectors = [
        (lambda: detect_peak_focus_time(sessions, tz), _peak_focus_tip),
        (lambda: detect_focus_decline(sessions), _focus_decline_tip),
        (lambda: detect_subject_imbalance(sessions), _subject_imbalance_tip),
        (lambda: detect_long_session_fatigue(sessions), _long_session_tip),
    ]

    tips: list[StudyTip] = []
    for detect, phrase in detectors:
        found = detect()
        if found is None:
            continue
        title, description, category = phrase(found)
        tips.append(StudyTip(title=title, description=description, category=category, rank=len(tips) + 1))
        if len(tips) >= max_tips:
            break

    logger.debug(f"Heuristic analysis of {len(sessions)} sessions produced {len(tips)} tip(s)")
    return tips
