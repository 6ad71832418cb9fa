"""Analysis Tools - Statistics and study tips from the session history

Components:
    aggregation.py: Totals, averages and per-subject breakdowns for a window
    tip_analyzer.py: Heuristic pattern detection over the full history
    ai_tips.py: Tips from a text-generation collaborator

Graceful degradation:
    Fewer than MIN_SESSIONS_FOR_TIPS sessions produce no tips at all.
    When AI tips fail the service falls back to the heuristic analyzer.
"""

MIN_SESSIONS_FOR_TIPS = 3
MAX_TIPS = 3

# Hour boundaries for time-of-day labels
MORNING_END_HOUR = 12
AFTERNOON_END_HOUR = 18

__all__ = [
    "MIN_SESSIONS_FOR_TIPS",
    "MAX_TIPS",
    "MORNING_END_HOUR",
    "AFTERNOON_END_HOUR",
    "time_of_day_label",
]


def time_of_day_label(hour: int) -> str:
    """morning before noon, afternoon before 18:00, evening otherwise."""
    if hour < MORNING_END_HOUR:
        return "morning"
    if hour < AFTERNOON_END_HOUR:
        return "afternoon"
    return "evening"
