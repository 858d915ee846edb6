"""
Database models for the NFL roster sync service.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer,
    String, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RosterPlayer(Base):
    """Roster player, optionally linked to a provider (ESPN) player id."""
    __tablename__ = "roster_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(50), unique=True, nullable=True, index=True)  # ESPN athlete id
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="", index=True)
    team = Column(String(4), nullable=True, index=True)  # Team abbreviation
    position = Column(String(10), nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    data_source = Column(String(20), nullable=False, default="espn")  # espn, manual
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    stats = relationship("PlayerGameStats", back_populates="player", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PlayerGameStats(Base):
    """Combined per-game stats for one player."""
    __tablename__ = "player_game_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    roster_player_id = Column(Integer, ForeignKey("roster_players.id", ondelete="CASCADE"), nullable=True, index=True)
    external_player_id = Column(String(50), nullable=False)
    game_id = Column(String(50), nullable=False, index=True)
    season = Column(Integer, nullable=True, index=True)
    week = Column(Integer, nullable=True)
    player_name = Column(String(200), nullable=True)
    team = Column(String(4), nullable=True)
    position = Column(String(10), nullable=True)
    categories = Column(JSON, nullable=False, default=list)  # ["passing", "rushing"]
    stats = Column(JSON, nullable=False, default=dict)  # {"passingYards": 301.0, ...}
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    player = relationship("RosterPlayer", back_populates="stats")

    __table_args__ = (
        UniqueConstraint('external_player_id', 'game_id', name='uq_player_game_stats'),
        Index('ix_player_game_stats_season_week', 'season', 'week'),
    )


class SyncReportRecord(Base):
    """Stored outcome of one sync run."""
    __tablename__ = "sync_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sync_id = Column(String(36), unique=True, nullable=False, index=True)
    sync_type = Column(String(20), nullable=False, index=True)  # players, player_stats, full
    status = Column(String(30), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    records_processed = Column(Integer, nullable=False, default=0)
    players_processed = Column(Integer, nullable=False, default=0)
    players_updated = Column(Integer, nullable=False, default=0)
    new_players_added = Column(Integer, nullable=False, default=0)
    stats_records_processed = Column(Integer, nullable=False, default=0)
    stats_upserted = Column(Integer, nullable=False, default=0)
    records_skipped = Column(Integer, nullable=False, default=0)
    matching_errors = Column(Integer, nullable=False, default=0)
    data_errors = Column(Integer, nullable=False, default=0)
    api_errors = Column(Integer, nullable=False, default=0)
    success_rate = Column(Float, nullable=False, default=100.0)
    errors = Column(JSON, nullable=False, default=list)
    warnings = Column(JSON, nullable=False, default=list)
    player_issues = Column(JSON, nullable=False, default=list)
    options = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
