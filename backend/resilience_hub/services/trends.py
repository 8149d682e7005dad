from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from resilience_hub.core.emotions import EMOTION_METADATA, CoreEmotion, parse_core_emotion
from resilience_hub.schemas.insights import (
    BucketValue,
    EmotionLegendItem,
    MoodTrendPoint,
    MoodTrends,
    PracticeTrends,
    TrendRange,
)
from resilience_hub.schemas.records import EmotionRecord, ReframePracticeResult, as_utc
from resilience_hub.utils.numbers import mean, round_half_up

# Fixed English labels, strftime("%a") would follow the server locale
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_LABELS   = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                  "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

WEEK_BUCKETS  = 7
MONTH_BUCKETS = 4
YEAR_BUCKETS  = 12

_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class Bucket:
    """A closed calendar interval [start, end] with its chart label."""
    label: str
    start: datetime
    end  : datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def enumerate_buckets(time_range: TrendRange, now: Optional[datetime] = None) -> list[Bucket]:
    """
    Lists the calendar buckets of a range, oldest first.

    - week:  7 days, the last one being today.
    - month: 4 Monday-to-Sunday weeks, the last one being the current week.
    - year:  12 calendar months, the last one being the current month.

    The number of buckets depends only on the range, never on the data.
    """
    now   = datetime.now(timezone.utc) if now is None else as_utc(now)
    today = _start_of_day(now)

    if time_range == "week":
        buckets = []
        for offset in range(WEEK_BUCKETS - 1, -1, -1):
            day = today - timedelta(days=offset)
            buckets.append(Bucket(
                label = WEEKDAY_LABELS[day.weekday()],
                start = day,
                end   = day + timedelta(days=1) - _TICK,
            ))
        return buckets

    if time_range == "month":
        current_monday = today - timedelta(days=today.weekday())
        buckets = []
        for index, weeks_back in enumerate(range(MONTH_BUCKETS - 1, -1, -1)):
            monday = current_monday - timedelta(weeks=weeks_back)
            buckets.append(Bucket(
                label = f"Week {index + 1}",
                start = monday,
                end   = monday + timedelta(weeks=1) - _TICK,
            ))
        return buckets

    if time_range == "year":
        buckets = []
        for months_back in range(YEAR_BUCKETS - 1, -1, -1):
            year, month = _shift_month(today.year, today.month, -months_back)
            next_year, next_month = _shift_month(year, month, 1)
            start = today.replace(year=year, month=month, day=1)
            buckets.append(Bucket(
                label = MONTH_LABELS[month - 1],
                start = start,
                end   = start.replace(year=next_year, month=next_month) - _TICK,
            ))
        return buckets

    raise ValueError(f"Unknown trend range: {time_range!r}")


def mood_trends(
    emotions: Sequence[EmotionRecord],
    time_range: TrendRange = "week",
    now: Optional[datetime] = None
) -> MoodTrends:
    """
    Mean intensity and record count per core emotion for every bucket of
    the range.

    Labels that do not map to a CoreEmotion are ignored. Emotions without
    records in a bucket report 0.
    """
    buckets = enumerate_buckets(time_range, now)
    points  = []

    for bucket in buckets:
        in_bucket = [
            (parse_core_emotion(e.core_emotion), e.intensity)
            for e in emotions
            if bucket.contains(e.occurred_at)
        ]
        known = [(emotion, intensity) for emotion, intensity in in_bucket if emotion is not None]

        intensities = {
            emotion.value: round_half_up(
                mean(intensity for label, intensity in known if label is emotion), 1
            )
            for emotion in CoreEmotion
        }

        counts = Counter(emotion.value for emotion, _ in known)

        points.append(MoodTrendPoint(
            label       = bucket.label,
            start       = bucket.start,
            end         = bucket.end,
            count       = len(known),
            counts      = {emotion.value: counts[emotion.value] for emotion in CoreEmotion},
            intensities = intensities,
        ))

    legend = tuple(
        EmotionLegendItem(name=emotion.value, color=EMOTION_METADATA[emotion].color)
        for emotion in CoreEmotion
    )

    return MoodTrends(time_range=time_range, legend=legend, points=tuple(points))


def _results_in(bucket: Bucket, results: Sequence[ReframePracticeResult]) -> list[ReframePracticeResult]:
    return [r for r in results if bucket.contains(r.created_at)]


def practice_score_trends(
    results: Sequence[ReframePracticeResult],
    time_range: TrendRange = "month",
    now: Optional[datetime] = None
) -> tuple[BucketValue, ...]:
    """Mean practice score per bucket, 0 for buckets without sessions."""
    values = []

    for bucket in enumerate_buckets(time_range, now):
        sessions = _results_in(bucket, results)
        values.append(BucketValue(
            label    = bucket.label,
            start    = bucket.start,
            end      = bucket.end,
            value    = round_half_up(mean(r.score for r in sessions), 1),
            sessions = len(sessions),
        ))

    return tuple(values)


def practice_accuracy_trends(
    results: Sequence[ReframePracticeResult],
    time_range: TrendRange = "month",
    now: Optional[datetime] = None
) -> tuple[BucketValue, ...]:
    """
    Pooled accuracy per bucket: all correct answers over all questions of
    the bucket, as a percentage.
    """
    values = []

    for bucket in enumerate_buckets(time_range, now):
        sessions = _results_in(bucket, results)

        accuracy = 0.0
        if sessions:
            correct  = sum(r.correct_answers for r in sessions)
            total    = sum(r.total_questions for r in sessions)
            accuracy = correct / total * 100

        values.append(BucketValue(
            label    = bucket.label,
            start    = bucket.start,
            end      = bucket.end,
            value    = round_half_up(accuracy, 1),
            sessions = len(sessions),
        ))

    return tuple(values)


def practice_trends(
    results: Sequence[ReframePracticeResult],
    time_range: TrendRange = "month",
    now: Optional[datetime] = None
) -> PracticeTrends:
    now = datetime.now(timezone.utc) if now is None else as_utc(now)
    return PracticeTrends(
        time_range = time_range,
        score      = practice_score_trends(results, time_range, now),
        accuracy   = practice_accuracy_trends(results, time_range, now),
    )
