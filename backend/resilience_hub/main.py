from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from sqlalchemy import text

from resilience_hub.core.config import settings
from resilience_hub.core.database import get_db, init_db
from resilience_hub.api.routers import insights, session
from resilience_hub.core.logging import setup_logging, get_logger


logger = get_logger(__name__)

# --- Application Lifecycle (Lifespan) ---
@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Lifecycle manager for the FastAPI application.
    Configures logging and checks the records database before the first
    request is served.
    """
    setup_logging()
    logger.info("Checking connection to the records database...")
    init_db()
    logger.info("Application ready. Docs at /docs")
    yield
    logger.info("Shutting down...")

# --- FastAPI Instance ---
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Progress insights, trends and practice summaries for the ResilienceHub dashboards",
    version=settings.VERSION,
    lifespan=lifespan
)

# --- CORS Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- REST API Routers ---
app.include_router(session.router, prefix="/api/v1/session", tags=["Session"])
app.include_router(insights.router, prefix="/api/v1/insights", tags=["Insights"])

# --- Root Endpoint ---
@app.get("/", tags=["System"])
async def root():
    """Basic root endpoint for service discovery."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME} API",
        "status": "active",
        "docs": "/docs"
    }

# --- Health Check Endpoint ---
@app.get("/api/v1/health", tags=["System"])
def health_check(db: Session = Depends(get_db)):
    """
    Verifies the operational status of the API and its connection to the
    records database.
    """
    try:
        db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "database": "connected",
            "environment": settings.ENVIRONMENT
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail="Database connection failed"
        )
