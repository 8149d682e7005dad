import logging
import logging.handlers
import sys
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from resilience_hub.core.config import settings

# --- Logging Configuration ---

LOG_DIR      = Path(settings.LOG_DIR)
LOG_FILE     = LOG_DIR / "insights.log"
LOG_LEVEL    = settings.LOG_LEVEL.upper()
ENVIRONMENT  = settings.ENVIRONMENT

LOG_MAX_BYTES    = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5


class DevFormatter(logging.Formatter):

    LEVEL_COLORS = {
        "DEBUG"    : "\033[94m",   # BLUE
        "INFO"     : "\033[92m",   # GREEN
        "WARNING"  : "\033[93m",   # YELLOW
        "ERROR"    : "\033[91m",   # RED
        "CRITICAL" : "\033[95m",   # MAGENTA
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:

        color     = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level     = f"{color}{record.levelname:<8}{self.RESET}"
        name      = record.name[:40]

        message = record.getMessage()

        if hasattr(record, "user_id"):
            message += f"  [user={record.user_id}]"

        # Traceback goes on the following lines
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return f"{timestamp} | {level} | {name:<40} | {message}"



class JSONFormatter(logging.Formatter):

    """
    Production formatter, one JSON object per line so the log shipper
    can index the fields directly.

    Example line:
    {
        "timestamp": "2026-10-17T10:32:11.123000+00:00",
        "level": "INFO",
        "logger": "resilience_hub.services.insights",
        "message": "Progress insights built. range=month activities=42",
        "environment": "production",
        "service": "resiliencehub-insights",
        "user_id": 7
    }
    """

    def format(self, record: logging.LogRecord) -> str:

        log_entry: dict[str, Any] = {
            "timestamp"   : datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level"       : record.levelname,
            "logger"      : record.name,
            "message"     : record.getMessage(),
            "environment" : ENVIRONMENT,
            "service"     : "resiliencehub-insights",
        }

        if hasattr(record, "user_id"):
            log_entry["user_id"] = record.user_id

        if hasattr(record, "active_user_id"):
            log_entry["active_user_id"] = record.active_user_id

        if hasattr(record, "endpoint"):
            log_entry["endpoint"] = record.endpoint

        if hasattr(record, "duration_ms"):
            log_entry["duration_ms"] = record.duration_ms

        if record.exc_info:

            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


# Main SetUp

def setup_logging() -> None:

    """
    Initialize the application's logging system.

    Called once from the lifespan in main.py, before the first request
    is served.

    Configures two handlers:

    - StreamHandler: stdout -> docker compose logs / container runtime

    - RotatingFileHandler: LOG_DIR/insights.log -> mounted volume on the host

    """

    formatter: logging.Formatter
    if ENVIRONMENT == "production":
        formatter = JSONFormatter()
    else:
        formatter = DevFormatter()

    numeric_level = getattr(logging, LOG_LEVEL, logging.INFO)

    # --- Handler 1: stdout ---
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(numeric_level)
    stream_handler.setFormatter(formatter)

    # --- Handler 2: rotating file ---
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename    = LOG_FILE,
            maxBytes    = LOG_MAX_BYTES,
            backupCount = LOG_BACKUP_COUNT,
            encoding    = "utf-8"
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        handlers: list[logging.Handler] = [stream_handler, file_handler]
    except PermissionError:
        # Log directory not mounted or read-only: keep going on stdout only
        handlers = [stream_handler]
        logging.warning(
            f"Could not create log file at {LOG_FILE}. "
            f"Check the volume mount. Continuing with stdout only."
        )

    logging.basicConfig(
        level    = numeric_level,
        handlers = handlers,
        force    = True   # uvicorn installs its own handlers first
    )

    # Quiet down chatty third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging initialized. "
        f"env={ENVIRONMENT}  level={LOG_LEVEL}  "
        f"file={LOG_FILE}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger named after the calling module.
    """
    return logging.getLogger(name)
