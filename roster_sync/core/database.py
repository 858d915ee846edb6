"""
Database configuration and session management.
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

_engine = None
_SessionLocal = None


def get_engine():
    """Get or create the database engine."""
    global _engine, _SessionLocal

    if _engine is None:
        from roster_sync.core.config import settings

        connect_args = {}
        if settings.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,  # Verify connections before using
            connect_args=connect_args,
            echo=os.getenv("SQL_ECHO", "false").lower() == "true"
        )
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _engine


def get_session_factory() -> sessionmaker:
    get_engine()
    return _SessionLocal


def init_db():
    """Create any missing tables."""
    from roster_sync.models.models import Base
    Base.metadata.create_all(bind=get_engine(), checkfirst=True)
