from datetime import datetime, timezone

import pytest

from resilience_hub.core.emotions import CoreEmotion
from resilience_hub.services.trends import (
    enumerate_buckets,
    mood_trends,
    practice_accuracy_trends,
    practice_score_trends,
    practice_trends,
)
from tests.mocks import days_ago, make_emotion, make_reframe

# The fixed `now` is Wednesday 2026-10-14 12:00 UTC.


class TestEnumerateBuckets:
    """Tests for enumerate_buckets."""

    def test_week_is_seven_days_ending_today(self, now):
        buckets = enumerate_buckets("week", now)

        assert len(buckets) == 7
        assert [b.label for b in buckets] == ["Thu", "Fri", "Sat", "Sun", "Mon", "Tue", "Wed"]
        assert buckets[0].start == datetime(2026, 10, 8, tzinfo=timezone.utc)
        assert buckets[-1].end == datetime(2026, 10, 14, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_month_is_four_monday_weeks(self, now):
        buckets = enumerate_buckets("month", now)

        assert [b.label for b in buckets] == ["Week 1", "Week 2", "Week 3", "Week 4"]
        assert buckets[0].start == datetime(2026, 9, 21, tzinfo=timezone.utc)
        assert all(b.start.weekday() == 0 for b in buckets)
        # The current week runs to Sunday even though it is not over yet
        assert buckets[-1].end == datetime(2026, 10, 18, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_year_is_twelve_months_ending_this_month(self, now):
        buckets = enumerate_buckets("year", now)

        assert len(buckets) == 12
        assert buckets[0].label == "Nov"
        assert buckets[-1].label == "Oct"
        assert buckets[0].start == datetime(2025, 11, 1, tzinfo=timezone.utc)
        assert buckets[-1].end == datetime(2026, 10, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_buckets_do_not_overlap(self, now):
        for time_range in ("week", "month", "year"):
            buckets = enumerate_buckets(time_range, now)
            for earlier, later in zip(buckets, buckets[1:]):
                assert earlier.end < later.start

    def test_year_crosses_december(self):
        buckets = enumerate_buckets("year", datetime(2026, 2, 10, tzinfo=timezone.utc))
        assert [b.label for b in buckets][:3] == ["Mar", "Apr", "May"]
        assert buckets[-1].end == datetime(2026, 2, 28, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_unknown_range_raises(self, now):
        with pytest.raises(ValueError):
            enumerate_buckets("quarter", now)


class TestMoodTrends:
    """Tests for mood_trends."""

    def test_week_means_per_emotion(self, now):
        emotions = [
            make_emotion(record_id=1, core_emotion="Joy", intensity=8, at=now),
            make_emotion(record_id=2, core_emotion="Joy", intensity=6, at=now),
            make_emotion(record_id=3, core_emotion="Bored", intensity=9, at=now),
            make_emotion(record_id=4, core_emotion="Fear", intensity=4, at=days_ago(1)),
            make_emotion(record_id=5, core_emotion="Joy", intensity=10, at=days_ago(7)),
        ]
        trends = mood_trends(emotions, "week", now)

        assert len(trends.points) == 7

        today, yesterday = trends.points[-1], trends.points[-2]
        assert today.count == 2
        assert today.intensities["Joy"] == 7.0
        assert today.intensities["Fear"] == 0
        assert today.counts["Joy"] == 2
        assert today.counts["Fear"] == 0
        assert yesterday.count == 1
        assert yesterday.intensities["Fear"] == 4.0
        assert yesterday.counts["Fear"] == 1

        # The week-old Joy falls before the first bucket
        assert sum(point.count for point in trends.points) == 3

    def test_every_point_lists_every_emotion(self, now):
        trends = mood_trends([], "month", now)

        assert len(trends.points) == 4
        for point in trends.points:
            assert set(point.intensities) == {emotion.value for emotion in CoreEmotion}
            assert set(point.counts) == {emotion.value for emotion in CoreEmotion}
            assert point.count == 0

    def test_legend_carries_chart_colours(self, now):
        legend = mood_trends([], "week", now).legend

        assert len(legend) == 8
        assert legend[0].name == "Joy"
        assert legend[0].color == "#FFC107"

    def test_intensity_rounds_to_one_decimal(self, now):
        emotions = [
            make_emotion(record_id=i, core_emotion="Anger", intensity=value, at=now)
            for i, value in enumerate([3, 3, 4], start=1)
        ]
        trends = mood_trends(emotions, "week", now)
        assert trends.points[-1].intensities["Anger"] == 3.3


class TestPracticeTrends:
    """Tests for practice_score_trends and practice_accuracy_trends."""

    @pytest.fixture
    def results(self, now):
        return [
            make_reframe(record_id=1, score=80, correct=4, total=5, at=now),
            make_reframe(record_id=2, score=60, correct=1, total=5, at=days_ago(1)),
            make_reframe(record_id=3, score=90, correct=3, total=3, at=days_ago(10)),
        ]

    def test_score_per_week(self, results, now):
        score = practice_score_trends(results, "month", now)

        assert [point.value for point in score] == [0, 90.0, 0, 70.0]
        assert [point.sessions for point in score] == [0, 1, 0, 2]

    def test_accuracy_is_pooled(self, results, now):
        accuracy = practice_accuracy_trends(results, "month", now)

        assert accuracy[-1].value == 50.0
        assert accuracy[1].value == 100.0
        assert accuracy[0].value == 0

    def test_pooled_differs_from_mean_of_ratios(self, now):
        results = [
            make_reframe(record_id=1, correct=1, total=1, at=now),
            make_reframe(record_id=2, correct=0, total=3, at=now),
        ]
        accuracy = practice_accuracy_trends(results, "week", now)
        assert accuracy[-1].value == 25.0

    def test_combined_view(self, results, now):
        trends = practice_trends(results, "year", now)

        assert trends.time_range == "year"
        assert len(trends.score) == 12
        assert len(trends.accuracy) == 12
        assert trends.score[-1].sessions == 3
        assert trends.score[-2].sessions == 0
