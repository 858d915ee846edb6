"""
SQLAlchemy implementation of the sync Persistence contract.

Roster linkage lives on RosterPlayer.external_id (unique), combined stats
are upserted keyed by (external_player_id, game_id), and every finished
run is stored as a SyncReportRecord.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from roster_sync.models.models import PlayerGameStats, RosterPlayer, SyncReportRecord
from roster_sync.models.sync import (
    CombinedStatRecord, ExternalPlayer, RosterCandidate, SyncReport,
    SyncResult, SyncStatus, SyncType
)
from roster_sync.repositories.base import BaseRepository
from roster_sync.services.sync.interfaces import Persistence
from roster_sync.services.sync.utils.name_normalizer import extract_player_name_parts

logger = logging.getLogger(__name__)


class RosterPlayerRepository(BaseRepository[RosterPlayer]):
    def __init__(self, db: Session):
        super().__init__(RosterPlayer, db)

    def find_by_external_id(self, external_id: str) -> Optional[RosterPlayer]:
        return self.find_one_by(external_id=external_id)

    def find_active(self) -> List[RosterPlayer]:
        return self.find_all_by(order_by='id', active=True)


class PlayerGameStatsRepository(BaseRepository[PlayerGameStats]):
    def __init__(self, db: Session):
        super().__init__(PlayerGameStats, db)

    def find_by_key(self, external_player_id: str, game_id: str) -> Optional[PlayerGameStats]:
        return self.find_one_by(external_player_id=external_player_id, game_id=game_id)


class SyncReportRepository(BaseRepository[SyncReportRecord]):
    def __init__(self, db: Session):
        super().__init__(SyncReportRecord, db)

    def find_by_sync_id(self, sync_id: str) -> Optional[SyncReportRecord]:
        return self.find_one_by(sync_id=sync_id)

    def find_recent(self, limit: int, sync_type: Optional[SyncType] = None) -> List[SyncReportRecord]:
        filters = {'sync_type': sync_type.value} if sync_type else {}
        return self.find_all_by(limit=limit, order_by='-start_time', **filters)


class SqlAlchemyPersistence(Persistence):
    """
    Persistence backed by a SQLAlchemy session.

    Each write commits on success and rolls back before re-raising on
    failure, so one bad batch does not poison the session for the rest
    of the run.
    """

    def __init__(self, db: Session):
        """
        Initialize the persistence layer.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.players = RosterPlayerRepository(db)
        self.stats = PlayerGameStatsRepository(db)
        self.reports = SyncReportRepository(db)

    async def find_link_by_external_id(self, external_id: str) -> Optional[int]:
        player = self.players.find_by_external_id(external_id)
        return player.id if player else None

    async def find_active_candidates(self) -> List[RosterCandidate]:
        return [
            RosterCandidate(
                id=p.id,
                first_name=p.first_name,
                last_name=p.last_name,
                team_abbreviation=p.team,
                position=p.position,
                active=p.active,
            )
            for p in self.players.find_active()
        ]

    async def create_candidate(self, player: ExternalPlayer) -> int:
        first, last = player.first_name, player.last_name
        if not first and not last:
            first, last = extract_player_name_parts(player.display_name)

        try:
            created = self.players.create(
                external_id=player.external_id,
                first_name=first or "",
                last_name=last or "",
                team=player.team_abbreviation,
                position=player.position,
                active=player.active,
                data_source="espn",
                last_synced_at=datetime.now(timezone.utc),
            )
            self.players.commit()
        except Exception:
            self.players.rollback()
            raise

        logger.debug(f"Created roster player {created.id} for external id {player.external_id}")
        return created.id

    async def update_linkage(self, candidate_id: int, player: ExternalPlayer) -> bool:
        roster_player = self.players.find_by_id(candidate_id)
        if roster_player is None:
            logger.warning(f"Cannot link missing roster player {candidate_id}")
            return False

        if roster_player.external_id and roster_player.external_id != player.external_id:
            logger.warning(
                f"Roster player {candidate_id} is already linked to external id {roster_player.external_id}"
            )
            return False

        linked = self.players.find_by_external_id(player.external_id)
        if linked is not None and linked.id != candidate_id:
            logger.warning(
                f"External id {player.external_id} is already linked to roster player {linked.id}"
            )
            return False

        values = {
            'external_id': player.external_id,
            'last_synced_at': datetime.now(timezone.utc),
        }
        # Only refresh attributes the provider actually sent
        if player.team_abbreviation:
            values['team'] = player.team_abbreviation
        if player.position:
            values['position'] = player.position
        if player.first_name or player.last_name:
            values['active'] = player.active

        try:
            self.players.update_fields(roster_player, values)
            self.players.commit()
        except Exception:
            self.players.rollback()
            raise

        return True

    async def upsert_stats(self, records: Sequence[CombinedStatRecord]) -> int:
        written = 0
        try:
            for record in records:
                values = {
                    'roster_player_id': record.roster_player_id,
                    'season': record.season,
                    'week': record.week,
                    'player_name': record.player_name,
                    'team': record.team_abbreviation,
                    'position': record.position,
                    'categories': [c.value for c in record.categories],
                    'stats': dict(record.stats),
                }

                existing = self.stats.find_by_key(record.player_id, record.game_id)
                if existing is None:
                    self.stats.create(
                        external_player_id=record.player_id,
                        game_id=record.game_id,
                        **values,
                    )
                else:
                    self.stats.update_fields(existing, values)
                written += 1

            self.stats.commit()
        except Exception:
            self.stats.rollback()
            raise

        return written

    async def save_sync_report(self, result: SyncResult) -> bool:
        report = SyncReport.from_result(result)
        values = {
            'sync_type': report.sync_type.value,
            'status': report.status.value,
            'start_time': report.start_time,
            'end_time': report.end_time,
            'records_processed': report.records_processed,
            'players_processed': report.players_processed,
            'players_updated': report.players_updated,
            'new_players_added': report.new_players_added,
            'stats_records_processed': report.stats_records_processed,
            'stats_upserted': report.stats_upserted,
            'records_skipped': report.records_skipped,
            'matching_errors': report.matching_errors,
            'data_errors': report.data_errors,
            'api_errors': report.api_errors,
            'success_rate': report.success_rate,
            'errors': list(report.errors),
            'warnings': list(report.warnings),
            'player_issues': list(report.player_issues),
            'options': report.options,
        }

        try:
            existing = self.reports.find_by_sync_id(report.sync_id)
            if existing is None:
                self.reports.create(sync_id=report.sync_id, **values)
            else:
                self.reports.update_fields(existing, values)
            self.reports.commit()
        except Exception:
            self.reports.rollback()
            raise

        return True

    async def get_sync_reports(
        self,
        limit: int = 50,
        sync_type: Optional[SyncType] = None
    ) -> List[SyncReport]:
        return [self._to_report(r) for r in self.reports.find_recent(limit, sync_type)]

    @staticmethod
    def _to_report(record: SyncReportRecord) -> SyncReport:
        return SyncReport(
            sync_id=record.sync_id,
            sync_type=SyncType(record.sync_type),
            status=SyncStatus(record.status),
            start_time=record.start_time,
            end_time=record.end_time,
            records_processed=record.records_processed,
            players_processed=record.players_processed,
            players_updated=record.players_updated,
            new_players_added=record.new_players_added,
            stats_records_processed=record.stats_records_processed,
            stats_upserted=record.stats_upserted,
            records_skipped=record.records_skipped,
            matching_errors=record.matching_errors,
            data_errors=record.data_errors,
            api_errors=record.api_errors,
            success_rate=record.success_rate,
            errors=tuple(record.errors or ()),
            warnings=tuple(record.warnings or ()),
            player_issues=tuple(record.player_issues or ()),
            options=record.options,
        )
