"""Main FastAPI application for the Closer drill engine."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Depends
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from closer.routers import play, review, vocabulary
from closer.db.init_db import init_db
from closer.db.database import get_db
from closer.logging_config import setup_logging, get_logger
from closer.config import settings
from closer.rate_limit import limiter

# Set up logging on module import
log_level = settings.LOG_LEVEL if settings.LOG_LEVEL else None
setup_logging(log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and seed the starter deck on startup."""
    logger.info("Application startup initiated")
    try:
        init_db()
        logger.info("Database initialization completed successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        raise

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title="Closer Drill API",
    description="""
    Vocabulary and grammar drill game backend.

    ## Features

    - **Spaced Repetition**: forgetting-curve scheduling over a five-stage ladder
    - **For You Mode**: questions biased toward the learner's weak categories
    - **Leaderboard**: runs ranked by score, ties broken by faster time
    - **Free Play Quota**: unlimited first week, then one free play per day

    ## Review Flow

    1. **Fetch Queue**: GET `/api/review/{learner_id}/queue`
    2. **Answer**: POST `/api/review/{learner_id}/answer` (omit `choice_index` on timeout)
    3. **Progress**: GET `/api/review/{learner_id}/progress`
    """,
    version="0.3.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_tags=[
        {"name": "play", "description": "Answer logging, questions, runs and quota"},
        {"name": "review", "description": "Spaced-repetition review"},
        {"name": "vocabulary", "description": "Per-learner word registration"},
        {"name": "health", "description": "Service health and readiness checks"},
    ]
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
logger.info("Rate limiting enabled: default 100 requests/minute per IP")

app.include_router(play.router)
app.include_router(review.router)
app.include_router(vocabulary.router)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@app.get("/health", tags=["health"])
async def health_check(db: Session = Depends(get_db)):
    """Health check with database verification.

    Returns:
        200 OK: Service is healthy and database is accessible
        503 Service Unavailable: Database connection failed
    """
    try:
        db.execute(text("SELECT 1"))
        logger.debug("Health check passed")
        return {
            "status": "healthy",
            "database": "connected",
            "timestamp": _timestamp(),
            "environment": settings.ENVIRONMENT
        }
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
                "timestamp": _timestamp()
            }
        )


@app.get("/readiness", tags=["health"])
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check for container orchestration."""
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready", "timestamp": _timestamp()}
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "error": str(e)}
        )
