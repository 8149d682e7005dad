from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey
from sqlalchemy.sql import func

from resilience_hub.core.database import Base, JSONColumn


class ReframePracticeResult(Base):
    """
    SQLAlchemy mapping of reframe_practice_results.

    One row per completed reframe-coach session. scenario_data keeps the
    scenarios that were played, each one tagged with the cognitive
    distortion it exercised.
    """

    __tablename__ = "reframe_practice_results"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Either comes from a therapist assignment or from a user's own thought record.
    thought_record_id = Column(Integer, nullable=True)
    assignment_id = Column(Integer, nullable=True)

    score = Column(Float, nullable=False, default=0)

    correct_answers = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)

    streak_count = Column(Integer, nullable=False, default=0)

    scenario_data = Column(JSONColumn, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True
    )

    def __repr__(self) -> str:
        return (
            f"<ReframePracticeResult("
            f"id={self.id}, "
            f"user_id={self.user_id}, "
            f"score={self.score})>"
        )
