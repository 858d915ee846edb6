"""Wiring of the production SyncCoordinator.

One coordinator per process: the single-run lock lives on the instance,
so the API, the scheduler and the CLI must share it.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from roster_sync.core.config import default_matching_options, default_sync_options, settings
from roster_sync.core.database import get_session_factory
from roster_sync.repositories.sync_repository import SqlAlchemyPersistence
from roster_sync.services.sync.adapters.espn_adapter import EspnDataSource
from roster_sync.services.sync.orchestrator import SyncCoordinator

logger = logging.getLogger(__name__)

_coordinator: Optional[SyncCoordinator] = None


def build_coordinator(db: Optional[Session] = None) -> SyncCoordinator:
    """Coordinator over ESPN and the configured database."""
    session = db or get_session_factory()()
    return SyncCoordinator(
        data_source=EspnDataSource(),
        persistence=SqlAlchemyPersistence(session),
        matching_options=default_matching_options(),
        default_options=default_sync_options(),
        weeks_in_season=settings.WEEKS_IN_SEASON,
    )


def get_coordinator() -> SyncCoordinator:
    """Process-wide coordinator, created on first use."""
    global _coordinator
    if _coordinator is None:
        _coordinator = build_coordinator()
        logger.info("Sync coordinator initialized")
    return _coordinator
