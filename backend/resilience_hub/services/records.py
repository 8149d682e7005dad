from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from resilience_hub.core.logging import get_logger
from resilience_hub.models.emotions import EmotionRecord as EmotionRow
from resilience_hub.models.goals import Goal as GoalRow
from resilience_hub.models.journal import JournalEntry as JournalRow
from resilience_hub.models.reframe import ReframePracticeResult as ReframeRow
from resilience_hub.models.thoughts import ThoughtRecord as ThoughtRow
from resilience_hub.schemas.records import (
    EmotionRecord,
    Goal,
    JournalEntry,
    ReframePracticeResult,
    ThoughtRecord,
)

logger = get_logger(__name__)

# Upper bound per collection. One person cannot realistically produce
# more than this, it only protects the process from runaway rows.
MAX_ROWS_PER_COLLECTION = 5000


@dataclass(frozen=True)
class UserRecords:
    """The five record collections of one user, already normalized."""
    emotions       : list[EmotionRecord] = field(default_factory=list)
    thoughts       : list[ThoughtRecord] = field(default_factory=list)
    journals       : list[JournalEntry] = field(default_factory=list)
    goals          : list[Goal] = field(default_factory=list)
    reframe_results: list[ReframePracticeResult] = field(default_factory=list)


def _row_to_dict(row: Any) -> dict:
    """Column values of an ORM row keyed by attribute name."""
    return {
        attr.key: getattr(row, attr.key)
        for attr in row.__mapper__.column_attrs
    }


def fetch_emotions(db: Session, user_id: int) -> list[EmotionRecord]:
    rows = (
        db.query(EmotionRow)
        .filter(EmotionRow.user_id == user_id)
        .order_by(EmotionRow.timestamp.desc())
        .limit(MAX_ROWS_PER_COLLECTION)
        .all()
    )
    return [EmotionRecord.model_validate(_row_to_dict(row)) for row in rows]


def fetch_thoughts(db: Session, user_id: int) -> list[ThoughtRecord]:
    rows = (
        db.query(ThoughtRow)
        .filter(ThoughtRow.user_id == user_id)
        .order_by(ThoughtRow.created_at.desc())
        .limit(MAX_ROWS_PER_COLLECTION)
        .all()
    )
    return [ThoughtRecord.model_validate(_row_to_dict(row)) for row in rows]


def fetch_journals(db: Session, user_id: int) -> list[JournalEntry]:
    rows = (
        db.query(JournalRow)
        .filter(JournalRow.user_id == user_id)
        .order_by(JournalRow.created_at.desc())
        .limit(MAX_ROWS_PER_COLLECTION)
        .all()
    )
    return [JournalEntry.model_validate(_row_to_dict(row)) for row in rows]


def fetch_goals(db: Session, user_id: int) -> list[Goal]:
    rows = (
        db.query(GoalRow)
        .filter(GoalRow.user_id == user_id)
        .order_by(GoalRow.created_at.desc())
        .limit(MAX_ROWS_PER_COLLECTION)
        .all()
    )
    return [Goal.model_validate(_row_to_dict(row)) for row in rows]


def fetch_reframe_results(db: Session, user_id: int) -> list[ReframePracticeResult]:
    rows = (
        db.query(ReframeRow)
        .filter(ReframeRow.user_id == user_id)
        .order_by(ReframeRow.created_at.desc())
        .limit(MAX_ROWS_PER_COLLECTION)
        .all()
    )
    return [ReframePracticeResult.model_validate(_row_to_dict(row)) for row in rows]


def fetch_user_records(db: Session, user_id: int) -> UserRecords:
    """
    Loads every record collection of a user and normalizes it.

    Args:
        db:      Active SQLAlchemy session.
        user_id: The already-resolved active user id. Access control is the
                 caller's job, this function trusts the id it is given.

    Returns:
        UserRecords with each collection ordered newest first.
    """
    records = UserRecords(
        emotions        = fetch_emotions(db, user_id),
        thoughts        = fetch_thoughts(db, user_id),
        journals        = fetch_journals(db, user_id),
        goals           = fetch_goals(db, user_id),
        reframe_results = fetch_reframe_results(db, user_id),
    )

    logger.info(
        f"Fetched records. emotions={len(records.emotions)} "
        f"thoughts={len(records.thoughts)} journals={len(records.journals)} "
        f"goals={len(records.goals)} reframe={len(records.reframe_results)}",
        extra={"active_user_id": user_id}
    )

    return records
