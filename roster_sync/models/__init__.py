"""
Models for the roster sync service.

- sync: domain types shared by matching, stats and orchestration
- options: per-run option models
- models: SQLAlchemy tables
"""
from roster_sync.models.sync import (
    CombinedStatRecord,
    ExternalPlayer,
    GameRef,
    MatchCandidate,
    MatchMethod,
    MatchResult,
    RawStatRecord,
    RosterCandidate,
    StatCategory,
    SyncReport,
    SyncResult,
    SyncStatus,
    SyncType,
    ValidationResult,
)
from roster_sync.models.options import PlayerMatchingOptions, SyncOptions
