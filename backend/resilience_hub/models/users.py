from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from resilience_hub.core.database import Base

USER_ROLES = ("client", "therapist", "admin")

class User(Base):
    """
    SQLAlchemy mapping of the users table owned by the records backend.
    This service only writes current_viewing_client_id, the persisted
    therapist/admin viewing selection.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)

    # One of USER_ROLES
    role = Column(String, nullable=False, default="client")

    # The therapist a client is assigned to. This is the grant that lets
    # a therapist open the client's dashboards.
    therapist_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Server-side "viewing client" selection, survives page reloads and
    # replaces the browser-stored value.
    current_viewing_client_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
