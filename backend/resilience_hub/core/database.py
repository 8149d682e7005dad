from sqlalchemy import JSON, create_engine, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import sessionmaker, declarative_base
from resilience_hub.core.config import settings
from resilience_hub.core.logging import get_logger

logger = get_logger(__name__)

# Create the SQLAlchemy engine
# pool_pre_ping=True ensures that connections are validated before being used,
# preventing errors if the PostgreSQL container restarts or a connection drops.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=15
)

# SessionLocal is a factory for new Session objects
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all declarative SQLAlchemy models
Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in the test-suite)
JSONColumn = JSON().with_variant(JSONB(), "postgresql")

def init_db():
    """
    Verifies that the records database is reachable at startup.
    The tables are owned and migrated by the records backend, so this
    service never creates or alters them.
    """
    try:

        with engine.connect() as connection:

            connection.execute(text("SELECT 1"))

        logger.info("Successfully connected to the records database.")

    except Exception as e:

        logger.error(f"Failed to connect to the records database: {e}")

        raise e

def get_db():
    """
    FastAPI dependency function to provide a database session per request.
    Yields a session and safely closes it after the HTTP request completes,
    preventing connection exhaustion.
    """
    db = SessionLocal()
    try:

        yield db

    finally:

        db.close()
