from typing import Callable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resilience_hub.api.dependencies import get_active_user, get_current_active_user
from resilience_hub.core.database import get_db
from resilience_hub.core.logging import get_logger
from resilience_hub.models.users import User
from resilience_hub.schemas.insights import (
    EmotionInsights,
    ModuleStats,
    MoodTrends,
    PracticeOverview,
    PracticeTrends,
    ProgressComputeRequest,
    ProgressInsights,
    ProgressRange,
    ThoughtInsights,
    TrendRange,
)
from resilience_hub.services.active_user import ActiveUser
from resilience_hub.services.insights import (
    build_emotion_insights,
    build_module_stats,
    build_progress_insights,
    build_thought_insights,
)
from resilience_hub.services.practice import build_practice_overview
from resilience_hub.services.records import (
    fetch_emotions,
    fetch_reframe_results,
    fetch_thoughts,
    fetch_user_records,
)
from resilience_hub.services.trends import mood_trends, practice_trends

router = APIRouter()
logger = get_logger(__name__)

# Dashboard aggregations for the resolved active user.
#
# Endpoints:
#   GET  /api/v1/insights/progress          -> progress dashboard summary
#   GET  /api/v1/insights/mood-trends       -> mean intensity per emotion per bucket
#   GET  /api/v1/insights/practice/trends   -> reframe score and accuracy per bucket
#   GET  /api/v1/insights/practice/summary  -> practice headline, distortions, calendar
#   GET  /api/v1/insights/modules           -> one summary per module card
#   GET  /api/v1/insights/emotions          -> emotion distribution and time of day
#   GET  /api/v1/insights/thoughts          -> reflection outcome and distortion-emotion pairs
#   POST /api/v1/insights/compute           -> progress summary over posted records

T = TypeVar("T")


def _run(what: str, active: ActiveUser, compute: Callable[[], T]) -> T:
    """
    Runs one aggregation and maps failures onto HTTP errors.
    Database outages become 503, anything else a logged 500.
    """
    try:
        return compute()
    except SQLAlchemyError as e:
        logger.error(
            f"{what} failed, database unavailable: {e}",
            extra={"user_id": active.user_id, "active_user_id": active.active_user_id}
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Records database unavailable."
        )
    except Exception as e:
        logger.error(
            f"{what} failed: {e}",
            extra={"user_id": active.user_id, "active_user_id": active.active_user_id},
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{what} failed. See server logs for details."
        )


# GET /api/v1/insights/progress

@router.get("/progress", response_model=ProgressInsights, status_code=status.HTTP_200_OK)
def get_progress_insights(
    time_range: ProgressRange = Query(
        default="month",
        description="Window of the summary: week (7 days), month (30 days) or all."
    ),
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> ProgressInsights:
    """
    Progress dashboard summary: activity counts, emotional balance,
    thought challenge rate, goal progress, recent timeline and the most
    frequent cognitive distortion.
    """
    logger.info(
        f"Progress insights requested. range={time_range}",
        extra={"user_id": active.user_id, "active_user_id": active.active_user_id}
    )

    def compute() -> ProgressInsights:
        records = fetch_user_records(db, active.active_user_id)
        return build_progress_insights(
            emotions        = records.emotions,
            thoughts        = records.thoughts,
            journals        = records.journals,
            goals           = records.goals,
            reframe_results = records.reframe_results,
            time_range      = time_range,
        )

    return _run("Progress insights", active, compute)


# GET /api/v1/insights/mood-trends

@router.get("/mood-trends", response_model=MoodTrends, status_code=status.HTTP_200_OK)
def get_mood_trends(
    time_range: TrendRange = Query(
        default="week",
        description="week (7 days), month (4 weeks) or year (12 months)."
    ),
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> MoodTrends:
    """Mean intensity of every core emotion in each calendar bucket."""
    return _run(
        "Mood trends",
        active,
        lambda: mood_trends(fetch_emotions(db, active.active_user_id), time_range)
    )


# GET /api/v1/insights/practice/trends

@router.get("/practice/trends", response_model=PracticeTrends, status_code=status.HTTP_200_OK)
def get_practice_trends(
    time_range: TrendRange = Query(default="month"),
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> PracticeTrends:
    """Reframe practice score and pooled accuracy per calendar bucket."""
    return _run(
        "Practice trends",
        active,
        lambda: practice_trends(fetch_reframe_results(db, active.active_user_id), time_range)
    )


# GET /api/v1/insights/practice/summary

@router.get("/practice/summary", response_model=PracticeOverview, status_code=status.HTTP_200_OK)
def get_practice_summary(
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> PracticeOverview:
    return _run(
        "Practice summary",
        active,
        lambda: build_practice_overview(fetch_reframe_results(db, active.active_user_id))
    )


# GET /api/v1/insights/modules

@router.get("/modules", response_model=ModuleStats, status_code=status.HTTP_200_OK)
def get_module_stats(
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> ModuleStats:
    """Headline numbers for each module card, over the full history."""

    def compute() -> ModuleStats:
        records = fetch_user_records(db, active.active_user_id)
        return build_module_stats(
            emotions        = records.emotions,
            thoughts        = records.thoughts,
            journals        = records.journals,
            goals           = records.goals,
            reframe_results = records.reframe_results,
        )

    return _run("Module stats", active, compute)


# GET /api/v1/insights/emotions

@router.get("/emotions", response_model=EmotionInsights, status_code=status.HTTP_200_OK)
def get_emotion_insights(
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> EmotionInsights:
    """Emotion distribution with chart colours and records per part of the day."""
    return _run(
        "Emotion insights",
        active,
        lambda: build_emotion_insights(fetch_emotions(db, active.active_user_id))
    )


# GET /api/v1/insights/thoughts

@router.get("/thoughts", response_model=ThoughtInsights, status_code=status.HTTP_200_OK)
def get_thought_insights(
    active: ActiveUser = Depends(get_active_user),
    db    : Session    = Depends(get_db)
) -> ThoughtInsights:
    """
    Reflection outcome of challenged thoughts and how distortions pair up
    with the emotions that triggered them.
    """

    def compute() -> ThoughtInsights:
        return build_thought_insights(
            thoughts = fetch_thoughts(db, active.active_user_id),
            emotions = fetch_emotions(db, active.active_user_id),
        )

    return _run("Thought insights", active, compute)


# POST /api/v1/insights/compute

@router.post("/compute", response_model=ProgressInsights, status_code=status.HTTP_200_OK)
def compute_progress_insights(
    body        : ProgressComputeRequest,
    current_user: User = Depends(get_current_active_user)
) -> ProgressInsights:
    """
    Stateless variant of /progress: the caller posts the raw record
    collections (camelCase or snake_case) and gets the same summary back.
    Nothing is read from or written to the database.
    """
    logger.info(
        f"Progress computation over posted records. range={body.time_range}",
        extra={"user_id": current_user.id}
    )

    return build_progress_insights(
        emotions        = body.emotions,
        thoughts        = body.thoughts,
        journals        = body.journals,
        goals           = body.goals,
        reframe_results = body.reframe_results,
        time_range      = body.time_range,
    )
