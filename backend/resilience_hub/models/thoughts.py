from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from resilience_hub.core.database import Base, JSONColumn

class ThoughtRecord(Base):
    """
    SQLAlchemy mapping of thought_records (CBT thought records).
    """
    __tablename__ = "thought_records"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Optional link to the emotion that triggered the record. The records
    # backend does not enforce it, a dangling id is read as "no link".
    emotion_record_id = Column(Integer, nullable=True)

    automatic_thoughts = Column(Text, nullable=False)

    # List of distortion keys, e.g. ["catastrophizing", "mind-reading"]
    cognitive_distortions = Column(JSONColumn, nullable=True)

    # Challenge fields, any of them filled means the thought was challenged
    evidence_for = Column(Text, nullable=True)
    evidence_against = Column(Text, nullable=True)
    alternative_perspective = Column(Text, nullable=True)

    reflection_rating = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
