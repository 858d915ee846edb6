"""Shared pytest fixtures for roster sync tests."""
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from roster_sync.models.sync import (
    CombinedStatRecord, ExternalPlayer, GameRef, RawStatRecord, RosterCandidate,
    SyncReport, SyncResult, SyncType
)
from roster_sync.services.sync.interfaces import DataSource, Persistence

FIXED_NOW = datetime(2025, 10, 6, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create fresh test database session with isolated in-memory database."""
    from roster_sync.models.models import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


# =============================================================================
# IN-MEMORY COLLABORATORS
# =============================================================================

class FakeDataSource(DataSource):
    """DataSource serving canned rosters, games and boxscore slices."""

    def __init__(
        self,
        roster: Optional[List[ExternalPlayer]] = None,
        games_by_week: Optional[Dict[tuple, List[GameRef]]] = None,
        games_by_date: Optional[Dict[date, List[GameRef]]] = None,
        stats_by_game: Optional[Dict[str, List[RawStatRecord]]] = None,
        reachable: bool = True
    ):
        self.roster = roster or []
        self.games_by_week = games_by_week or {}
        self.games_by_date = games_by_date or {}
        self.stats_by_game = stats_by_game or {}
        self.reachable = reachable
        self.failing_games = set()
        self.failing_dates = set()
        self.stats_requests: List[str] = []

    async def ping(self) -> bool:
        return self.reachable

    async def fetch_roster(self) -> List[ExternalPlayer]:
        return list(self.roster)

    async def fetch_games_for_week(self, season: int, week: int) -> List[GameRef]:
        return list(self.games_by_week.get((season, week), []))

    async def fetch_games_for_date(self, day: date) -> List[GameRef]:
        if day in self.failing_dates:
            raise RuntimeError(f"scoreboard unavailable for {day}")
        return list(self.games_by_date.get(day, []))

    async def fetch_raw_stats(self, game_id: str) -> List[RawStatRecord]:
        self.stats_requests.append(game_id)
        if game_id in self.failing_games:
            raise RuntimeError(f"summary unavailable for {game_id}")
        return list(self.stats_by_game.get(game_id, []))


class FakePersistence(Persistence):
    """Dictionary-backed roster store."""

    def __init__(self, candidates: Optional[List[RosterCandidate]] = None, links: Optional[Dict[str, int]] = None):
        self.candidates = list(candidates or [])
        self.links = dict(links or {})
        self.stats: Dict[tuple, CombinedStatRecord] = {}
        self.reports: List[SyncReport] = []
        self.created: List[ExternalPlayer] = []
        self.upsert_calls = 0
        self.fail_report_save = False
        self.fail_upsert = False
        self._next_id = max([c.id for c in self.candidates], default=0) + 1

    async def find_link_by_external_id(self, external_id: str) -> Optional[int]:
        return self.links.get(external_id)

    async def find_active_candidates(self) -> List[RosterCandidate]:
        return [c for c in self.candidates if c.active]

    async def create_candidate(self, player: ExternalPlayer) -> int:
        new_id = self._next_id
        self._next_id += 1
        self.candidates.append(RosterCandidate(
            id=new_id,
            first_name=player.first_name,
            last_name=player.last_name,
            team_abbreviation=player.team_abbreviation,
            position=player.position,
        ))
        self.links[player.external_id] = new_id
        self.created.append(player)
        return new_id

    async def update_linkage(self, candidate_id: int, player: ExternalPlayer) -> bool:
        if not any(c.id == candidate_id for c in self.candidates):
            return False
        linked = self.links.get(player.external_id)
        if linked is not None and linked != candidate_id:
            return False
        if any(cid == candidate_id and ext != player.external_id for ext, cid in self.links.items()):
            return False
        self.links[player.external_id] = candidate_id
        return True

    async def upsert_stats(self, records: Sequence[CombinedStatRecord]) -> int:
        self.upsert_calls += 1
        if self.fail_upsert:
            raise RuntimeError("database is locked")
        for record in records:
            self.stats[record.key] = record
        return len(records)

    async def save_sync_report(self, result: SyncResult) -> bool:
        if self.fail_report_save:
            raise RuntimeError("disk full")
        self.reports.append(SyncReport.from_result(result))
        return True

    async def get_sync_reports(self, limit: int = 50, sync_type: Optional[SyncType] = None) -> List[SyncReport]:
        reports = [r for r in reversed(self.reports) if sync_type is None or r.sync_type == sync_type]
        return reports[:limit]


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def roster_candidates() -> List[RosterCandidate]:
    """A small roster of existing players."""
    return [
        RosterCandidate(id=1, first_name="Patrick", last_name="Mahomes", team_abbreviation="KC", position="QB"),
        RosterCandidate(id=2, first_name="Travis", last_name="Kelce", team_abbreviation="KC", position="TE"),
        RosterCandidate(id=3, first_name="Josh", last_name="Allen", team_abbreviation="BUF", position="QB"),
        RosterCandidate(id=4, first_name="Michael", last_name="Pittman", team_abbreviation="IND", position="WR"),
    ]


@pytest.fixture
def fake_persistence(roster_candidates) -> FakePersistence:
    return FakePersistence(candidates=roster_candidates)


def raw_stat(player_id: str, game_id: str, category, fields, **kwargs) -> RawStatRecord:
    """Helper to build a RawStatRecord with sensible metadata defaults."""
    defaults = {
        'player_name': "Patrick Mahomes",
        'team_abbreviation': "KC",
        'position': "QB",
        'season': 2025,
        'week': 5,
    }
    defaults.update(kwargs)
    return RawStatRecord(
        player_id=player_id,
        game_id=game_id,
        category=category,
        fields=fields,
        **defaults,
    )
