from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from resilience_hub.core.emotions import format_distortion_name
from resilience_hub.schemas.insights import (
    CalendarDay,
    DistortionCount,
    PracticeOverview,
    PracticeSummary,
)
from resilience_hub.schemas.records import ReframePracticeResult, as_utc
from resilience_hub.services.trends import MONTH_LABELS
from resilience_hub.utils.numbers import mean, round_half_up

CALENDAR_DAYS           = 30
DISTORTION_LIMIT        = 10
SCENARIO_DISTORTION_KEY = "cognitiveDistortion"


def _resolve_now(now: Optional[datetime]) -> datetime:
    return datetime.now(timezone.utc) if now is None else as_utc(now)


def pooled_accuracy(results: Sequence[ReframePracticeResult]) -> float:
    """All correct answers over all questions, as a percentage."""
    if not results:
        return 0.0
    correct = sum(r.correct_answers for r in results)
    total   = sum(r.total_questions for r in results)
    return correct / total * 100


def current_streak(practice_days: Iterable[date], today: date) -> int:
    """
    Consecutive practice days ending today. A streak that ended yesterday
    is still alive, the user simply has not practiced yet today.
    """
    days = set(practice_days)

    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)

    return streak


def practice_summary(
    results: Sequence[ReframePracticeResult],
    now: Optional[datetime] = None
) -> PracticeSummary:
    """
    Headline numbers of the reframe practice page.

    Args:
        results: Every practice result of the active user.
        now:     Reference time, defaults to the current UTC time.

    Returns:
        PracticeSummary, all zeros when there is no practice yet.
    """
    if not results:
        return PracticeSummary()

    now = _resolve_now(now)

    return PracticeSummary(
        total_sessions = len(results),
        avg_score      = round_half_up(mean(r.score for r in results), 1),
        avg_accuracy   = round_half_up(pooled_accuracy(results), 1),
        current_streak = current_streak((r.created_at.date() for r in results), now.date()),
    )


def distortions_practiced(
    results: Sequence[ReframePracticeResult],
    limit: int = DISTORTION_LIMIT
) -> tuple[DistortionCount, ...]:
    """
    How often each cognitive distortion came up across practice scenarios,
    most frequent first. Scenarios without a distortion are skipped.
    """
    counts: Counter = Counter()

    for result in results:
        for scenario in result.scenario_data:
            if not isinstance(scenario, dict):
                continue
            distortion = scenario.get(SCENARIO_DISTORTION_KEY)
            if distortion:
                counts[format_distortion_name(str(distortion))] += 1

    return tuple(
        DistortionCount(name=name, count=count)
        for name, count in counts.most_common(limit)
    )


def practice_calendar(
    results: Sequence[ReframePracticeResult],
    now: Optional[datetime] = None,
    days: int = CALENDAR_DAYS
) -> tuple[CalendarDay, ...]:
    """One entry per day, oldest first, ending today."""
    today = _resolve_now(now).date()

    by_day: dict[date, list[float]] = {}
    for result in results:
        by_day.setdefault(result.created_at.date(), []).append(result.score)

    calendar = []
    for offset in range(days - 1, -1, -1):
        day    = today - timedelta(days=offset)
        scores = by_day.get(day, [])
        calendar.append(CalendarDay(
            day      = day,
            label    = f"{MONTH_LABELS[day.month - 1]} {day.day}",
            score    = round_half_up(mean(scores), 1),
            sessions = len(scores),
        ))

    return tuple(calendar)


def build_practice_overview(
    results: Sequence[ReframePracticeResult],
    now: Optional[datetime] = None
) -> PracticeOverview:
    now = _resolve_now(now)
    return PracticeOverview(
        summary     = practice_summary(results, now),
        distortions = distortions_practiced(results),
        calendar    = practice_calendar(results, now),
    )
