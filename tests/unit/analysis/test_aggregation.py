"""Tests for studytracker/analysis/aggregation.py"""

from datetime import datetime, timedelta, timezone

import pytest

from studytracker.analysis.aggregation import (
    average_focus,
    compute_summary,
    most_studied_subject,
    per_subject_durations,
    top_subject,
    total_duration,
    weekly_breakdown,
)
from studytracker.windows import TimeWindow


T = datetime(2025, 7, 14, 9, 0, tzinfo=timezone.utc)
WEEK = TimeWindow(start=T - timedelta(days=1), end=T + timedelta(days=5))


@pytest.fixture
def week_sessions(make_session):
    return [
        make_session("Mathematics", duration=60, focus=4, date=T),
        make_session("Mathematics", duration=30, focus=2, date=T + timedelta(days=1)),
        make_session("Mathematics", duration=10, focus=5, date=T + timedelta(days=2)),
        make_session("Physics", duration=90, focus=3, date=T + timedelta(days=3)),
    ]


class TestSummary:
    def test_week_figures(self, week_sessions):
        summary = compute_summary(week_sessions, WEEK)

        assert summary.total_duration == 190
        assert summary.most_studied_subject == "Mathematics"
        assert summary.average_focus == pytest.approx(3.5)
        assert summary.session_count == 4
        assert summary.window_start == WEEK.start
        assert summary.window_end == WEEK.end

    def test_empty_window(self, week_sessions):
        empty = TimeWindow(start=T + timedelta(days=30), end=T + timedelta(days=37))
        summary = compute_summary(week_sessions, empty)

        assert summary.total_duration == 0
        assert summary.most_studied_subject is None
        assert summary.average_focus == 0.0
        assert summary.session_count == 0

    def test_sessions_outside_window_ignored(self, week_sessions, make_session):
        sessions = week_sessions + [make_session("Art", duration=500, focus=1, date=T - timedelta(days=3))]

        assert total_duration(sessions, WEEK) == 190
        assert most_studied_subject(sessions, WEEK) == "Mathematics"
        assert average_focus(sessions, WEEK) == pytest.approx(3.5)

    def test_window_bounds_inclusive(self, make_session):
        window = TimeWindow(start=T, end=T + timedelta(hours=1))
        sessions = [
            make_session(duration=10, date=T),
            make_session(duration=20, date=T + timedelta(hours=1)),
            make_session(duration=40, date=T + timedelta(hours=1, microseconds=1)),
        ]
        assert total_duration(sessions, window) == 30

    def test_to_dict_rounds_average(self, week_sessions):
        sessions = week_sessions[:3]  # focus 4, 2, 5
        data = compute_summary(sessions, WEEK).to_dict()

        assert data["average_focus"] == 3.67
        assert data["window_start"] == WEEK.start.isoformat()


class TestMostStudied:
    def test_tie_goes_to_alphabetically_first(self, make_session):
        sessions = [
            make_session("Physics", duration=60, date=T),
            make_session("Chemistry", duration=60, date=T + timedelta(hours=2)),
        ]
        assert most_studied_subject(sessions, WEEK) == "Chemistry"
        assert most_studied_subject(list(reversed(sessions)), WEEK) == "Chemistry"

    def test_top_subject_empty(self):
        assert top_subject({}) is None

    def test_per_subject_durations(self, week_sessions):
        assert per_subject_durations(week_sessions, WEEK) == {"Mathematics": 100, "Physics": 90}


class TestWeeklyBreakdown:
    def test_largest_first(self, week_sessions):
        assert weekly_breakdown(week_sessions, WEEK) == [
            {"subject_name": "Mathematics", "total_duration": 100},
            {"subject_name": "Physics", "total_duration": 90},
        ]

    def test_ties_ordered_by_name(self, make_session):
        sessions = [
            make_session("Physics", duration=45, date=T),
            make_session("Biology", duration=45, date=T),
        ]
        names = [row["subject_name"] for row in weekly_breakdown(sessions, WEEK)]
        assert names == ["Biology", "Physics"]

    def test_empty(self):
        assert weekly_breakdown([], WEEK) == []
