from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from resilience_hub.core.database import Base, JSONColumn

class JournalEntry(Base):
    """
    SQLAlchemy mapping of journal_entries.
    """
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)

    # Optional 1-10 mood self-rating
    mood = Column(Integer, nullable=True)

    # Tags the user kept after reviewing the suggestions
    tags = Column("user_selected_tags", JSONColumn, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
