"""
Repository layer for data access.

Usage:
    from roster_sync.repositories.sync_repository import SqlAlchemyPersistence
    from roster_sync.core.database import get_session_factory

    persistence = SqlAlchemyPersistence(get_session_factory()())
"""
from roster_sync.repositories.base import BaseRepository
