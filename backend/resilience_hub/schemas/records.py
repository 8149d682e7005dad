"""
Canonical record shapes consumed by the aggregation services.

The records backend is inconsistent about field names: dates arrive as
``timestamp`` or ``createdAt`` depending on the record type, and practice
results report ``correctAnswers``/``totalQuestions`` from one endpoint and
``correctCount``/``totalCount`` from another. Every record is validated
through one of these models right after it is fetched, so the services
only ever see one stable shape.

Both camelCase (API payloads) and snake_case (database rows) keys are
accepted.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _first_present(data: dict, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _first_truthy(data: dict, *keys: str, default: Any) -> Any:
    # A stored 0 in one spelling falls through to the other spelling
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return default


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RecordBase(BaseModel):
    """
    Shared configuration for all ingested records.
    Records are immutable once normalized.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: int
    user_id: Optional[int] = None


class DatedRecord(RecordBase):
    """
    Records dated by their creation time. ``timestamp`` is accepted as a
    last resort for rows that only carry that column.
    """
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _pick_created_at(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["created_at"] = _first_present(data, "createdAt", "created_at", "timestamp")
            data.pop("createdAt", None)
        return data

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EmotionRecord(RecordBase):
    """
    An emotion logged through the wheel. ``occurred_at`` is the moment the
    emotion was felt (``timestamp``), falling back to ``createdAt``.
    """
    core_emotion: str
    intensity: float = Field(..., ge=0, le=10)
    occurred_at: datetime
    situation: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _pick_occurred_at(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["occurred_at"] = _first_present(
                data, "timestamp", "createdAt", "created_at", "occurredAt", "occurred_at"
            )
            data.pop("occurredAt", None)
        return data

    @field_validator("occurred_at")
    @classmethod
    def _occurred_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def date(self) -> datetime:
        return self.occurred_at


class ThoughtRecord(DatedRecord):
    emotion_record_id: Optional[int] = None
    automatic_thoughts: str = ""
    cognitive_distortions: list[str] = Field(default_factory=list)
    evidence_for: Optional[str] = None
    evidence_against: Optional[str] = None
    alternative_perspective: Optional[str] = None
    reflection_rating: Optional[float] = None

    @field_validator("cognitive_distortions", mode="before")
    @classmethod
    def _null_distortions(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def date(self) -> datetime:
        return self.created_at

    @property
    def is_challenged(self) -> bool:
        """A thought counts as challenged once any challenge field has text."""
        return any(
            field is not None and field.strip() != ""
            for field in (self.evidence_for, self.evidence_against, self.alternative_perspective)
        )


class JournalEntry(DatedRecord):
    title: str = ""
    content: str = ""
    mood: Optional[float] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def date(self) -> datetime:
        return self.created_at


class Goal(DatedRecord):
    title: str = ""
    status: str = "pending"

    @property
    def date(self) -> datetime:
        return self.created_at


class ReframePracticeResult(DatedRecord):
    """
    A finished reframe-coach session.

    ``total_questions`` is never 0: a missing or zero denominator becomes 1
    so accuracy can always be computed.
    """
    thought_record_id: Optional[int] = None
    assignment_id: Optional[int] = None
    score: float = 0.0
    correct_answers: int = 0
    total_questions: int = 1
    streak_count: int = 0
    scenario_data: list[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _reconcile_counts(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["correct_answers"] = _first_truthy(
                data, "correctAnswers", "correctCount", "correct_answers", default=0
            )
            data["total_questions"] = _first_truthy(
                data, "totalQuestions", "totalCount", "total_questions", default=1
            )
            for alias in ("correctAnswers", "correctCount", "totalQuestions", "totalCount"):
                data.pop(alias, None)
            for key in ("score", "streakCount", "streak_count"):
                if key in data and data[key] is None:
                    data[key] = 0
        return data

    @field_validator("scenario_data", mode="before")
    @classmethod
    def _null_scenarios(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def date(self) -> datetime:
        return self.created_at
