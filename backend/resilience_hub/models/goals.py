from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from resilience_hub.core.database import Base

GOAL_STATUSES = ("pending", "in_progress", "completed", "approved")

# "approved" is a reviewed "completed", progress summaries count both as done
COMPLETED_GOAL_STATUSES = frozenset({"completed", "approved"})

class Goal(Base):
    """
    SQLAlchemy mapping of goals (SMART goals).
    "approved" is set by the therapist once a completed goal is reviewed.
    """
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)

    # One of GOAL_STATUSES
    status = Column(String, nullable=False, default="pending")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
