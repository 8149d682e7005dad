from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence, TypeVar

from resilience_hub.core.emotions import (
    EMOTION_METADATA,
    NEGATIVE_EMOTIONS,
    POSITIVE_EMOTIONS,
    format_distortion_name,
    parse_core_emotion,
)
from resilience_hub.core.logging import get_logger
from resilience_hub.models.goals import COMPLETED_GOAL_STATUSES, GOAL_STATUSES
from resilience_hub.schemas.insights import (
    DistortionEmotionCount,
    EmotionalBalance,
    EmotionInsights,
    EmotionShare,
    EmotionStats,
    GoalProgress,
    GoalStats,
    IntensityChange,
    JournalStats,
    ModuleStats,
    ProgressInsights,
    ProgressRange,
    ReframeStats,
    ThoughtChallengeRate,
    ThoughtImprovement,
    ThoughtInsights,
    ThoughtStats,
    TimeOfDayCount,
    TimelineItem,
    TopDistortion,
)
from resilience_hub.schemas.records import (
    EmotionRecord,
    Goal,
    JournalEntry,
    ReframePracticeResult,
    ThoughtRecord,
    as_utc,
)
from resilience_hub.utils.numbers import mean, percentage, round_half_up

logger = get_logger(__name__)

# Window length per range, "all" has none
RANGE_DAYS = {"week": 7, "month": 30}

# Where the window is split into "previous" and "recent" for the balance.
# "all" has no natural midpoint, the last 30 days count as recent.
BALANCE_SPLIT_DAYS = {"week": 3, "month": 15, "all": 30}

TIMELINE_LIMIT = 30

# Trailing practices compared against the earlier ones in the reframe card
RECENT_PRACTICE_COUNT = 5

TIMELINE_STYLE = {
    "emotion": ("Heart",     "#3b82f6"),
    "thought": ("Brain",     "#9333ea"),
    "journal": ("BookOpen",  "#eab308"),
    "goal"   : ("Target",    "#6366f1"),
    "reframe": ("Lightbulb", "#16a34a"),
}

Dated = TypeVar("Dated", EmotionRecord, ThoughtRecord, JournalEntry, Goal, ReframePracticeResult)


def _resolve_now(now: Optional[datetime]) -> datetime:
    return datetime.now(timezone.utc) if now is None else as_utc(now)


def filter_by_range(records: Iterable[Dated], time_range: ProgressRange, now: datetime) -> list[Dated]:
    """
    Keeps the records dated within the last 7 ("week") or 30 ("month")
    days of now. "all" keeps everything.
    """
    if time_range == "all":
        return list(records)

    if time_range not in RANGE_DAYS:
        raise ValueError(f"Unknown time range: {time_range!r}")

    start = now - timedelta(days=RANGE_DAYS[time_range])

    return [record for record in records if record.date >= start]


def _intensity_change(recent: list[EmotionRecord], previous: list[EmotionRecord], family: frozenset) -> IntensityChange:

    current_mean  = mean(e.intensity for e in recent if parse_core_emotion(e.core_emotion) in family)
    previous_mean = mean(e.intensity for e in previous if parse_core_emotion(e.core_emotion) in family)
    change        = current_mean - previous_mean

    # No baseline means no meaningful percentage, report 0
    change_percent = (change / previous_mean * 100) if previous_mean > 0 else 0.0

    return IntensityChange(
        current        = round_half_up(current_mean, 1),
        previous       = round_half_up(previous_mean, 1),
        change         = round_half_up(change, 1),
        change_percent = round_half_up(change_percent),
    )


def compute_emotional_balance(
    emotions: Sequence[EmotionRecord],
    time_range: ProgressRange,
    now: datetime
) -> EmotionalBalance:
    """
    Compares mean intensity of positive (Joy, Love) and negative
    (Sadness, Fear, Anger, Disgust) emotions between the recent and the
    previous part of the window. Any other label is left out.

    Args:
        emotions:   Records already filtered to the window.
        time_range: Decides where the window is split.
        now:        Reference time.

    Returns:
        EmotionalBalance, all zeros for an empty input.
    """
    if not emotions:
        return EmotionalBalance()

    split = now - timedelta(days=BALANCE_SPLIT_DAYS[time_range])

    recent   = [e for e in emotions if e.occurred_at >= split]
    previous = [e for e in emotions if e.occurred_at < split]

    classified = [parse_core_emotion(e.core_emotion) for e in emotions]

    return EmotionalBalance(
        negative_intensity = _intensity_change(recent, previous, NEGATIVE_EMOTIONS),
        positive_intensity = _intensity_change(recent, previous, POSITIVE_EMOTIONS),
        negative_frequency = sum(1 for emotion in classified if emotion in NEGATIVE_EMOTIONS),
        positive_frequency = sum(1 for emotion in classified if emotion in POSITIVE_EMOTIONS),
    )


def compute_thought_challenge_rate(thoughts: Sequence[ThoughtRecord]) -> ThoughtChallengeRate:
    """Share of thought records with evidence or an alternative perspective."""
    if not thoughts:
        return ThoughtChallengeRate()

    challenged = sum(1 for thought in thoughts if thought.is_challenged)

    return ThoughtChallengeRate(
        rate       = percentage(challenged, len(thoughts)),
        challenged = challenged,
        total      = len(thoughts),
    )


def compute_goal_progress(goals: Sequence[Goal]) -> GoalProgress:
    """
    Buckets every goal into exactly one of completed (completed or
    approved), in_progress, pending or other.
    """
    if not goals:
        return GoalProgress()

    completed   = sum(1 for goal in goals if goal.status in COMPLETED_GOAL_STATUSES)
    in_progress = sum(1 for goal in goals if goal.status == "in_progress")
    pending     = sum(1 for goal in goals if goal.status == "pending")

    return GoalProgress(
        completion_rate = percentage(completed, len(goals)),
        completed       = completed,
        in_progress     = in_progress,
        pending         = pending,
        other           = sum(1 for goal in goals if goal.status not in GOAL_STATUSES),
        total           = len(goals),
    )


def _timeline_item(kind: str, record_id: int, date: datetime, title: str) -> TimelineItem:
    icon, color = TIMELINE_STYLE[kind]
    return TimelineItem(
        id    = f"{kind}-{record_id}",
        type  = kind,
        date  = date,
        title = title,
        icon  = icon,
        color = color,
    )


def _format_points(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else str(score)


def build_timeline(
    emotions: Sequence[EmotionRecord],
    thoughts: Sequence[ThoughtRecord],
    journals: Sequence[JournalEntry],
    goals: Sequence[Goal],
    reframe_results: Sequence[ReframePracticeResult],
    limit: int = TIMELINE_LIMIT
) -> tuple[TimelineItem, ...]:
    """
    Merges all collections into one activity feed, newest first, capped at
    `limit` entries across every type combined.
    """
    items: list[TimelineItem] = []

    items.extend(
        _timeline_item("emotion", e.id, e.occurred_at, f"Tracked {e.core_emotion}")
        for e in emotions
    )
    items.extend(
        _timeline_item("thought", t.id, t.created_at, "Recorded thought")
        for t in thoughts
    )
    items.extend(
        _timeline_item("journal", j.id, j.created_at, j.title)
        for j in journals
    )
    items.extend(
        _timeline_item("goal", g.id, g.created_at, f"Created goal: {g.title}")
        for g in goals
    )
    items.extend(
        _timeline_item("reframe", r.id, r.created_at, f"Practiced reframing ({_format_points(r.score)} pts)")
        for r in reframe_results
    )

    items.sort(key=lambda item: item.date, reverse=True)

    return tuple(items[:limit])


def count_distortions(thoughts: Iterable[ThoughtRecord]) -> Counter:
    """Occurrences per distortion key, in first-seen order."""
    counts: Counter = Counter()
    for thought in thoughts:
        counts.update(thought.cognitive_distortions)
    return counts


def find_top_distortion(thoughts: Sequence[ThoughtRecord]) -> Optional[TopDistortion]:
    """
    Most frequent cognitive distortion across the thought records.
    On a tie the distortion seen first wins.
    """
    counts = count_distortions(thoughts)

    if not counts:
        return None

    # max() keeps the first maximal item and Counter preserves insertion order
    key, count = max(counts.items(), key=lambda item: item[1])

    return TopDistortion(
        key        = key,
        name       = format_distortion_name(key),
        count      = count,
        percentage = percentage(count, len(thoughts)),
    )


def build_progress_insights(
    emotions: Sequence[EmotionRecord],
    thoughts: Sequence[ThoughtRecord],
    journals: Sequence[JournalEntry],
    goals: Sequence[Goal],
    reframe_results: Sequence[ReframePracticeResult],
    time_range: ProgressRange = "month",
    now: Optional[datetime] = None
) -> ProgressInsights:
    """
    Reduces the five record collections into the progress dashboard summary.

    Everything is recomputed from the raw collections on every call.

    Args:
        emotions, thoughts, journals, goals, reframe_results:
                    Normalized records of one user, any order.
        time_range: "week", "month" or "all".
        now:        Reference time, defaults to the current UTC time.

    Returns:
        An immutable ProgressInsights object.
    """
    now = _resolve_now(now)

    emotions        = filter_by_range(emotions, time_range, now)
    thoughts        = filter_by_range(thoughts, time_range, now)
    journals        = filter_by_range(journals, time_range, now)
    goals           = filter_by_range(goals, time_range, now)
    reframe_results = filter_by_range(reframe_results, time_range, now)

    total = len(emotions) + len(thoughts) + len(journals) + len(goals) + len(reframe_results)

    insights = ProgressInsights(
        time_range               = time_range,
        generated_at             = now,
        total_activities         = total,
        emotion_count            = len(emotions),
        thought_count            = len(thoughts),
        journal_count            = len(journals),
        goal_count               = len(goals),
        reframe_count            = len(reframe_results),
        emotional_balance        = compute_emotional_balance(emotions, time_range, now),
        thought_challenge_rate   = compute_thought_challenge_rate(thoughts),
        goal_progress            = compute_goal_progress(goals),
        timeline                 = build_timeline(emotions, thoughts, journals, goals, reframe_results),
        top_cognitive_distortion = find_top_distortion(thoughts),
    )

    logger.debug(f"Progress insights built. range={time_range} activities={total}")

    return insights


# MODULE STATS

def _emotion_stats(emotions: Sequence[EmotionRecord]) -> EmotionStats:
    if not emotions:
        return EmotionStats()

    labels = Counter(e.core_emotion for e in emotions)
    most_common, _ = max(labels.items(), key=lambda item: item[1])

    return EmotionStats(
        total             = len(emotions),
        average_intensity = round_half_up(mean(e.intensity for e in emotions)),
        most_common       = most_common,
    )


def _thought_stats(thoughts: Sequence[ThoughtRecord]) -> ThoughtStats:
    top = find_top_distortion(thoughts)
    return ThoughtStats(
        total                 = len(thoughts),
        challenged_percentage = compute_thought_challenge_rate(thoughts).rate,
        top_distortion        = top.name if top else None,
    )


def _journal_stats(journals: Sequence[JournalEntry]) -> JournalStats:
    moods = [j.mood for j in journals if j.mood]
    tags  = Counter(tag for j in journals for tag in j.tags)

    top_tag = max(tags.items(), key=lambda item: item[1])[0] if tags else None

    return JournalStats(
        total        = len(journals),
        average_mood = round_half_up(mean(moods), 1),
        top_tag      = top_tag,
    )


def _goal_stats(goals: Sequence[Goal]) -> GoalStats:
    progress = compute_goal_progress(goals)
    return GoalStats(
        total                = progress.total,
        completed            = progress.completed,
        completed_percentage = progress.completion_rate,
    )


def _reframe_stats(results: Sequence[ReframePracticeResult]) -> ReframeStats:
    ordered = sorted(results, key=lambda r: r.created_at)
    scores  = [r.score for r in ordered if r.score]

    recent_avg = mean(scores[-RECENT_PRACTICE_COUNT:])
    older_avg  = mean(scores[:-RECENT_PRACTICE_COUNT])

    improvement = 0
    if older_avg > 0 and recent_avg > 0:
        improvement = round_half_up((recent_avg - older_avg) / older_avg * 100)

    return ReframeStats(
        total_practices        = len(results),
        average_score          = round_half_up(mean(scores)),
        improvement_percentage = improvement,
    )


def build_module_stats(
    emotions: Sequence[EmotionRecord],
    thoughts: Sequence[ThoughtRecord],
    journals: Sequence[JournalEntry],
    goals: Sequence[Goal],
    reframe_results: Sequence[ReframePracticeResult]
) -> ModuleStats:
    """
    One headline summary per module card. Works on the full history,
    no time window.
    """
    return ModuleStats(
        emotions = _emotion_stats(emotions),
        thoughts = _thought_stats(thoughts),
        journal  = _journal_stats(journals),
        goals    = _goal_stats(goals),
        reframe  = _reframe_stats(reframe_results),
    )


# EMOTION AND THOUGHT INSIGHTS

UNKNOWN_EMOTION_COLOR = "#999999"

# (label, first hour, end hour), UTC
TIME_OF_DAY_SLOTS = (
    ("Morning (6-12)",    6, 12),
    ("Afternoon (12-18)", 12, 18),
    ("Evening (18-24)",   18, 24),
    ("Night (0-6)",       0, 6),
)


def _emotion_label(label: str) -> str:
    emotion = parse_core_emotion(label)
    return emotion.value if emotion else label.strip()


def emotion_distribution(emotions: Sequence[EmotionRecord]) -> tuple[EmotionShare, ...]:
    """
    Records per emotion with its chart colour, most frequent first.
    Labels outside the wheel are kept under their own name in grey.
    """
    counts = Counter(_emotion_label(e.core_emotion) for e in emotions)

    shares = []
    for name, count in counts.most_common():
        emotion = parse_core_emotion(name)
        shares.append(EmotionShare(
            name  = name,
            count = count,
            color = EMOTION_METADATA[emotion].color if emotion else UNKNOWN_EMOTION_COLOR,
        ))

    return tuple(shares)


def time_of_day_patterns(emotions: Sequence[EmotionRecord]) -> tuple[TimeOfDayCount, ...]:
    """Records per part of the day. Every slot is listed, empty ones with 0."""
    counts: Counter = Counter()

    for e in emotions:
        hour = e.occurred_at.hour
        for slot, first, end in TIME_OF_DAY_SLOTS:
            if first <= hour < end:
                counts[slot] += 1
                break

    return tuple(
        TimeOfDayCount(slot=slot, count=counts[slot])
        for slot, _, _ in TIME_OF_DAY_SLOTS
    )


def distortion_emotion_correlation(
    thoughts: Sequence[ThoughtRecord],
    emotions: Sequence[EmotionRecord]
) -> tuple[DistortionEmotionCount, ...]:
    """
    How often each distortion co-occurs with each emotion, through the
    thought record's link to the emotion that triggered it.

    The link is not enforced by the records backend. Thoughts without a
    link, or whose linked emotion is not among `emotions`, are skipped.
    """
    emotion_by_id = {e.id: _emotion_label(e.core_emotion) for e in emotions}

    pairs: Counter = Counter()
    dangling = 0

    for thought in thoughts:
        if thought.emotion_record_id is None:
            continue

        emotion = emotion_by_id.get(thought.emotion_record_id)
        if emotion is None:
            dangling += 1
            continue

        for distortion in thought.cognitive_distortions:
            pairs[(format_distortion_name(distortion), emotion)] += 1

    if dangling:
        logger.debug(f"Skipped {dangling} thought records linked to missing emotions")

    return tuple(
        DistortionEmotionCount(distortion=distortion, emotion=emotion, count=count)
        for (distortion, emotion), count in pairs.items()
    )


def thought_improvement(thoughts: Sequence[ThoughtRecord]) -> ThoughtImprovement:
    """
    Reflection outcome of challenged thoughts. An unrated thought counts
    as a rating of 0.
    """
    challenged = [t for t in thoughts if t.is_challenged]

    if not challenged:
        return ThoughtImprovement()

    return ThoughtImprovement(
        avg_reflection_rating = round_half_up(mean(t.reflection_rating or 0 for t in challenged), 1),
        total_challenged      = len(challenged),
        challenge_rate        = round_half_up(len(challenged) / len(thoughts) * 100, 1),
    )


def build_emotion_insights(emotions: Sequence[EmotionRecord]) -> EmotionInsights:
    """Emotion page breakdowns over the full history."""
    return EmotionInsights(
        total        = len(emotions),
        distribution = emotion_distribution(emotions),
        time_of_day  = time_of_day_patterns(emotions),
    )


def build_thought_insights(
    thoughts: Sequence[ThoughtRecord],
    emotions: Sequence[EmotionRecord]
) -> ThoughtInsights:
    """Thought page breakdowns over the full history."""
    return ThoughtInsights(
        total               = len(thoughts),
        improvement         = thought_improvement(thoughts),
        distortion_emotions = distortion_emotion_correlation(thoughts, emotions),
    )
