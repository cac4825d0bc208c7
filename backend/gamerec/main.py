"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from gamerec import models  # noqa: F401  (registers tables on Base.metadata)
from gamerec.api import router as api_router
from gamerec.core.config import get_settings
from gamerec.core.database import Base, SessionLocal, engine
from gamerec.core.errors import register_exception_handlers
from gamerec.core.logging import get_logger, setup_logging
from gamerec.core.middleware import RequestLoggingMiddleware

settings = get_settings()

# Set up logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        f"Starting {settings.APP_NAME}",
        extra={
            "extra_fields": {
                "environment": settings.ENVIRONMENT,
                "debug": settings.DEBUG,
                "cors_origins": settings.cors_origins_list,
            }
        },
    )

    # No migrations; make sure the tables exist
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables verified/created")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}", exc_info=e)

    if not settings.RAWG_API_KEY:
        logger.warning("RAWG_API_KEY is not set, catalog requests will be rejected upstream")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Game tracking and personalized game recommendations",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for load balancers and monitoring.

    Returns basic application health status.
    """
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health/ready")
async def readiness_check():
    """
    Readiness check endpoint.

    Ready means the database answers. A missing catalog key is reported but
    does not fail the probe, since auth and history endpoints still work.
    """
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"
    finally:
        db.close()

    return {
        "status": "ready" if db_status == "connected" else "not_ready",
        "checks": {
            "database": db_status,
            "catalog": "configured" if settings.RAWG_API_KEY else "missing_api_key",
        },
    }


# Include API routes
app.include_router(api_router, prefix=settings.API_PREFIX)
