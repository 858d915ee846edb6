"""
FastAPI application for the NFL roster sync service.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from roster_sync.api.routes import sync
from roster_sync.core.config import settings
from roster_sync.core.logging import configure_logging

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    missing = settings.validate_required_settings()
    if missing:
        logger.warning(f"Missing required settings: {', '.join(missing)}")

    from roster_sync.core.database import init_db
    init_db()

    if settings.SCHEDULER_ENABLED:
        from roster_sync.core.scheduler import start_scheduler
        await start_scheduler()
        logger.info("Sync scheduler started")

    yield

    if settings.SCHEDULER_ENABLED:
        from roster_sync.core.scheduler import stop_scheduler
        await stop_scheduler()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="ESPN roster and player stats synchronization with confidence-scored player matching",
    lifespan=lifespan
)

app.include_router(sync.router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict:
    from roster_sync.core.circuit_breaker import get_all_breaker_states
    from roster_sync.core.scheduler import get_scheduler

    scheduler = get_scheduler()
    return {
        'status': 'ok',
        'version': settings.APP_VERSION,
        'circuit_breakers': get_all_breaker_states(),
        'scheduler_running': bool(scheduler and scheduler.running),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "roster_sync.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
