"""
Time windows for aggregation.

A window is a closed [start, end] interval. The summary uses the current
calendar week (starting Sunday); the weekly breakdown uses the last seven
days plus today. Without an explicit zone, day boundaries follow the host.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from studytracker.sync.date_normalizer import localize


END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval of instants."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} is after end {self.end}")

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


def _today(now: Optional[datetime], tz: Optional[tzinfo]) -> date:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(tz).date()


def _day_window(first: date, last: date, tz: Optional[tzinfo]) -> TimeWindow:
    return TimeWindow(
        start=localize(datetime.combine(first, time.min), tz),
        end=localize(datetime.combine(last, END_OF_DAY), tz),
    )


def current_week(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> TimeWindow:
    """Sunday 00:00 of the current week through the end of today."""
    today = _today(now, tz)
    # weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (today.weekday() + 1) % 7
    return _day_window(today - timedelta(days=days_since_sunday), today, tz)


def last_seven_days(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> TimeWindow:
    """Midnight seven days ago through the end of today."""
    today = _today(now, tz)
    return _day_window(today - timedelta(days=7), today, tz)
