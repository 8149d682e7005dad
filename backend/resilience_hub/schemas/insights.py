from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from resilience_hub.schemas.records import (
    EmotionRecord,
    Goal,
    JournalEntry,
    ReframePracticeResult,
    ThoughtRecord,
)

ProgressRange = Literal["week", "month", "all"]
TrendRange    = Literal["week", "month", "year"]
TimelineType  = Literal["emotion", "thought", "journal", "goal", "reframe"]


class FrozenModel(BaseModel):
    """Summary objects are built once per request and never mutated."""
    model_config = ConfigDict(frozen=True)


# PROGRESS INSIGHTS

class IntensityChange(FrozenModel):
    current       : float = 0.0
    previous      : float = 0.0
    change        : float = 0.0
    change_percent: int   = 0


class EmotionalBalance(FrozenModel):
    """
    Mean intensity of positive and negative emotions in the recent half of
    the window compared with the previous half.
    """
    negative_intensity: IntensityChange = IntensityChange()
    positive_intensity: IntensityChange = IntensityChange()
    negative_frequency: int = 0
    positive_frequency: int = 0


class ThoughtChallengeRate(FrozenModel):
    rate      : int = 0
    challenged: int = 0
    total     : int = 0


class GoalProgress(FrozenModel):
    completion_rate: int = 0
    completed      : int = 0
    in_progress    : int = 0
    pending        : int = 0
    other          : int = 0
    total          : int = 0


class TimelineItem(FrozenModel):
    id   : str
    type : TimelineType
    date : datetime
    title: str
    icon : str
    color: str


class TopDistortion(FrozenModel):
    key       : str
    name      : str
    count     : int
    percentage: int


class ProgressInsights(FrozenModel):
    time_range            : ProgressRange
    generated_at          : datetime
    total_activities      : int
    emotion_count         : int
    thought_count         : int
    journal_count         : int
    goal_count            : int
    reframe_count         : int
    emotional_balance     : EmotionalBalance
    thought_challenge_rate: ThoughtChallengeRate
    goal_progress         : GoalProgress
    timeline              : tuple[TimelineItem, ...]
    top_cognitive_distortion: Optional[TopDistortion] = None


class ProgressComputeRequest(BaseModel):
    """
    Raw record collections posted for a stateless computation.
    Records go through the same normalization as database rows.
    """
    model_config = ConfigDict(populate_by_name=True)

    time_range     : ProgressRange = Field(default="month", alias="timeRange")
    emotions       : list[EmotionRecord] = Field(default_factory=list)
    thoughts       : list[ThoughtRecord] = Field(default_factory=list)
    journals       : list[JournalEntry] = Field(default_factory=list)
    goals          : list[Goal] = Field(default_factory=list)
    reframe_results: list[ReframePracticeResult] = Field(default_factory=list, alias="reframeResults")


# TRENDS

class EmotionLegendItem(FrozenModel):
    name : str
    color: str


class MoodTrendPoint(FrozenModel):
    label      : str
    start      : datetime
    end        : datetime
    count      : int
    counts     : dict[str, int]
    intensities: dict[str, float]


class MoodTrends(FrozenModel):
    time_range: TrendRange
    legend    : tuple[EmotionLegendItem, ...]
    points    : tuple[MoodTrendPoint, ...]


class BucketValue(FrozenModel):
    label   : str
    start   : datetime
    end     : datetime
    value   : float
    sessions: int


class PracticeTrends(FrozenModel):
    time_range: TrendRange
    score     : tuple[BucketValue, ...]
    accuracy  : tuple[BucketValue, ...]


# REFRAME PRACTICE

class PracticeSummary(FrozenModel):
    total_sessions: int   = 0
    avg_score     : float = 0.0
    avg_accuracy  : float = 0.0
    current_streak: int   = 0


class DistortionCount(FrozenModel):
    name : str
    count: int


class CalendarDay(FrozenModel):
    day     : date
    label   : str
    score   : float
    sessions: int


class PracticeOverview(FrozenModel):
    summary    : PracticeSummary
    distortions: tuple[DistortionCount, ...]
    calendar   : tuple[CalendarDay, ...]


# MODULE STATS

class EmotionStats(FrozenModel):
    total            : int = 0
    average_intensity: int = 0
    most_common      : Optional[str] = None


class ThoughtStats(FrozenModel):
    total                : int = 0
    challenged_percentage: int = 0
    top_distortion       : Optional[str] = None


class JournalStats(FrozenModel):
    total       : int = 0
    average_mood: float = 0.0
    top_tag     : Optional[str] = None


class GoalStats(FrozenModel):
    total               : int = 0
    completed           : int = 0
    completed_percentage: int = 0


class ReframeStats(FrozenModel):
    total_practices       : int = 0
    average_score         : int = 0
    improvement_percentage: int = 0


class ModuleStats(FrozenModel):
    emotions: EmotionStats
    thoughts: ThoughtStats
    journal : JournalStats
    goals   : GoalStats
    reframe : ReframeStats


# EMOTION AND THOUGHT INSIGHTS

class EmotionShare(FrozenModel):
    name : str
    count: int
    color: str


class TimeOfDayCount(FrozenModel):
    slot : str
    count: int


class EmotionInsights(FrozenModel):
    total       : int
    distribution: tuple[EmotionShare, ...]
    time_of_day : tuple[TimeOfDayCount, ...]


class DistortionEmotionCount(FrozenModel):
    distortion: str
    emotion   : str
    count     : int


class ThoughtImprovement(FrozenModel):
    avg_reflection_rating: float = 0.0
    total_challenged     : int   = 0
    challenge_rate       : float = 0.0


class ThoughtInsights(FrozenModel):
    total              : int
    improvement        : ThoughtImprovement
    distortion_emotions: tuple[DistortionEmotionCount, ...]


# SESSION

class ActiveUserResponse(FrozenModel):
    user_id               : int
    role                  : str
    active_user_id        : int
    is_viewing_client_data: bool
    api_path              : str


class ViewingClientIn(BaseModel):
    client_id: int = Field(..., gt=0, description="Id of the client to open dashboards for.")
