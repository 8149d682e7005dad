from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from resilience_hub.core.database import Base

class EmotionRecord(Base):
    """
    SQLAlchemy mapping of emotion_records.
    One row per emotion logged through the emotion wheel form.
    """
    __tablename__ = "emotion_records"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Wheel levels, from the broad category inwards
    core_emotion = Column(String, nullable=False, index=True)
    primary_emotion = Column(String, nullable=True)
    tertiary_emotion = Column(String, nullable=True)

    # 0-10 self-reported intensity
    intensity = Column(Integer, nullable=False)

    situation = Column(Text, nullable=True)

    # When the emotion was felt, may differ from when it was logged
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
