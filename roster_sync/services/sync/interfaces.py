"""
Collaborator contracts consumed by the sync layer.

The orchestrator only talks to a DataSource (the provider) and a
Persistence (the roster store). Concrete implementations live in
services.sync.adapters and repositories; tests use in-memory fakes.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from roster_sync.models.sync import (
    CombinedStatRecord, ExternalPlayer, GameRef, RawStatRecord,
    RosterCandidate, SyncReport, SyncResult, SyncType
)


class DataSource(ABC):
    """Read-only access to the upstream sports-data provider."""

    @abstractmethod
    async def fetch_roster(self) -> List[ExternalPlayer]:
        """Fetch every rostered player."""

    @abstractmethod
    async def fetch_games_for_week(self, season: int, week: int) -> List[GameRef]:
        """Fetch the regular-season games of one week."""

    @abstractmethod
    async def fetch_games_for_date(self, day: date) -> List[GameRef]:
        """Fetch the games played on one calendar day."""

    @abstractmethod
    async def fetch_raw_stats(self, game_id: str) -> List[RawStatRecord]:
        """Fetch per-category stat slices for one game."""

    async def ping(self) -> bool:
        """Connectivity probe; providers override with a cheap request."""
        return True

    async def close(self):
        """Release provider resources (HTTP clients)."""


class Persistence(ABC):
    """Roster store the sync writes into."""

    @abstractmethod
    async def find_link_by_external_id(self, external_id: str) -> Optional[int]:
        """Roster id already linked to an external id, if any."""

    @abstractmethod
    async def find_active_candidates(self) -> List[RosterCandidate]:
        """All active roster players."""

    @abstractmethod
    async def create_candidate(self, player: ExternalPlayer) -> int:
        """Insert a new roster player linked to the external id."""

    @abstractmethod
    async def update_linkage(self, candidate_id: int, player: ExternalPlayer) -> bool:
        """Link an existing roster player to an external player."""

    @abstractmethod
    async def upsert_stats(self, records: Sequence[CombinedStatRecord]) -> int:
        """Insert or update combined stat records; returns rows written."""

    @abstractmethod
    async def save_sync_report(self, result: SyncResult) -> bool:
        """Persist the final state of a run."""

    async def get_sync_reports(
        self,
        limit: int = 50,
        sync_type: Optional[SyncType] = None
    ) -> List[SyncReport]:
        """Stored reports, newest first."""
        return []
