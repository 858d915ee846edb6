"""Sync orchestrator for roster and player stats synchronization.

This orchestrator coordinates:
- Roster fetching and player identity linking via PlayerMatcher
- Per-game stats fetching, combination and validation
- Batching with an inter-batch delay against the provider
- Cooperative cancellation and partial-failure accounting
- Sync report persistence

Only one run is active per coordinator; a second request while a run is
in progress fails immediately instead of queueing.

Sync Schedule (recommended cron):
- players: "0 9 * * *" (daily roster refresh)
- player_stats: "0 10 * * *" (previous day's games)
- full: on demand (season backfill)
"""
import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence

from roster_sync.core.logging import clear_correlation_id, set_correlation_id
from roster_sync.models.options import PlayerMatchingOptions, SyncOptions
from roster_sync.models.sync import (
    CombinedStatRecord, ExternalPlayer, GameRef, MatchResult, PlayerIssueType,
    PlayerSyncIssue, RosterCandidate, SyncReport, SyncResult, SyncStatus,
    SyncType, utcnow
)
from roster_sync.services.sync.cancellation import CancellationToken
from roster_sync.services.sync.exceptions import (
    ConcurrencyConflictError, DataValidationError, MatchingAmbiguityError,
    SyncConfigurationError, TransientProviderError
)
from roster_sync.services.sync.interfaces import DataSource, Persistence
from roster_sync.services.sync.matchers.player_matcher import PlayerMatcher
from roster_sync.services.sync.stats.combiner import combine_all
from roster_sync.services.sync.stats.validator import validate

logger = logging.getLogger(__name__)

ALREADY_RUNNING_ERROR = "Another sync operation is already running"
WEEKS_IN_SEASON = 18
MIN_SEASON = 1920
MAX_WEEK = 22


def determine_sync_status(result: SyncResult) -> SyncStatus:
    """
    Derive the final status of a run from its counters.

    - errors and success rate above 50% of processed records → PARTIALLY_COMPLETED
    - errors otherwise → FAILED
    - warnings only → COMPLETED_WITH_WARNINGS
    - clean → COMPLETED
    """
    if result.total_errors > 0:
        if result.records_processed > 0 and result.success_rate > 50:
            return SyncStatus.PARTIALLY_COMPLETED
        return SyncStatus.FAILED

    if result.warnings:
        return SyncStatus.COMPLETED_WITH_WARNINGS

    return SyncStatus.COMPLETED


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


@dataclass
class _StageContext:
    """Mutable state shared by the items of one stage."""
    options: SyncOptions
    tokens: tuple
    candidates: Optional[List[RosterCandidate]] = None
    provisional_ids: Iterator[int] = field(default_factory=lambda: itertools.count(-1, -1))
    batches_written: int = 0

    @property
    def cancelled(self) -> bool:
        return any(token.is_cancelled for token in self.tokens)


class SyncCoordinator:
    """
    Coordinates sync runs between the provider and the roster store.

    This is the main entry point for the sync layer.
    All sync operations should go through this coordinator.
    """

    def __init__(
        self,
        data_source: DataSource,
        persistence: Persistence,
        matcher: Optional[PlayerMatcher] = None,
        matching_options: Optional[PlayerMatchingOptions] = None,
        default_options: Optional[SyncOptions] = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        weeks_in_season: int = WEEKS_IN_SEASON
    ):
        """
        Initialize the sync coordinator.

        Args:
            data_source: Provider to read rosters, games and stats from
            persistence: Roster store to write linkage, stats and reports to
            matcher: Player matcher (built from matching_options if omitted)
            matching_options: Options for the default matcher
            default_options: SyncOptions used when a run passes none
            clock: Source of aware UTC timestamps
            sleep: Coroutine used for the inter-batch delay
            weeks_in_season: Weeks covered by full_sync
        """
        self.data_source = data_source
        self.persistence = persistence
        self.matcher = matcher or PlayerMatcher(
            options=matching_options, persistence=persistence, clock=clock
        )
        self.default_options = default_options or SyncOptions()
        self.clock = clock
        self.sleep = sleep
        self.weeks_in_season = weeks_in_season

        self._lock = threading.Lock()
        self._current: Optional[SyncResult] = None
        self._current_token: Optional[CancellationToken] = None

    # =========================================================================
    # PUBLIC OPERATIONS
    # =========================================================================

    async def sync_players(
        self,
        options: Optional[SyncOptions] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> SyncResult:
        """
        Sync the provider roster into the roster store.

        Per player: reuse an existing link by external id, else match
        against active roster players, else create a new roster player.

        Args:
            options: Run options (coordinator defaults if omitted)
            cancel_token: Caller-side cancellation

        Returns:
            Final SyncResult
        """
        return await self._execute(
            SyncType.PLAYERS, options, cancel_token,
            lambda result, ctx: self._run_players(result, ctx),
        )

    async def sync_player_stats(
        self,
        season: int,
        week: int,
        options: Optional[SyncOptions] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> SyncResult:
        """
        Sync player stats for every game of one week.

        Args:
            season: Season year (e.g. 2025)
            week: Week number
            options: Run options
            cancel_token: Caller-side cancellation

        Returns:
            Final SyncResult
        """
        return await self._execute(
            SyncType.PLAYER_STATS, options, cancel_token,
            lambda result, ctx: self._run_week_stats(result, ctx, season, week),
        )

    async def sync_player_stats_for_date_range(
        self,
        start_date: date,
        end_date: date,
        options: Optional[SyncOptions] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> SyncResult:
        """
        Sync player stats for every game played between two dates (inclusive).

        A failed day is recorded and the range continues.

        Returns:
            Final SyncResult
        """
        return await self._execute(
            SyncType.PLAYER_STATS, options, cancel_token,
            lambda result, ctx: self._run_date_range_stats(result, ctx, start_date, end_date),
        )

    async def full_sync(
        self,
        season: int,
        options: Optional[SyncOptions] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> SyncResult:
        """
        Sync the roster, then stats for every week of a season.

        Each stage runs with its own counters which are folded into the
        returned result. A failed stage stops the run unless
        options.continue_on_error is set.

        Returns:
            Final SyncResult
        """
        return await self._execute(
            SyncType.FULL, options, cancel_token,
            lambda result, ctx: self._run_full(result, ctx, season),
        )

    def cancel_running_sync(self) -> bool:
        """Request cancellation of the active run; False when idle."""
        token = self._current_token
        if self._current is None or token is None:
            return False

        token.cancel()
        logger.warning(f"Cancellation requested for sync {self._current.sync_id}")
        return True

    def is_sync_running(self) -> bool:
        return self._lock.locked()

    def get_sync_status(self) -> Dict[str, Any]:
        """Snapshot of the coordinator state."""
        current = self._current
        if current is None:
            return {
                'state': SyncStatus.IDLE.value,
                'sync_id': None,
                'sync_type': None,
                'started_at': None,
                'records_processed': 0,
            }

        return {
            'state': SyncStatus.RUNNING.value,
            'sync_id': current.sync_id,
            'sync_type': current.sync_type.value,
            'started_at': current.start_time.isoformat(),
            'records_processed': current.records_processed,
            'players_processed': current.players_processed,
            'stats_records_processed': current.stats_records_processed,
            'cancel_requested': bool(self._current_token and self._current_token.is_cancelled),
        }

    async def get_last_sync_report(self, sync_type: Optional[SyncType] = None) -> Optional[SyncReport]:
        reports = await self.persistence.get_sync_reports(limit=1, sync_type=sync_type)
        return reports[0] if reports else None

    async def get_sync_history(
        self,
        limit: int = 50,
        sync_type: Optional[SyncType] = None
    ) -> List[SyncReport]:
        if limit < 1:
            raise SyncConfigurationError("limit must be at least 1")
        return list(await self.persistence.get_sync_reports(limit=limit, sync_type=sync_type))

    async def validate_connectivity(self) -> bool:
        """Probe the data source; never raises."""
        try:
            reachable = bool(await self.data_source.ping())
        except Exception as e:
            logger.error(f"Data source connectivity check failed: {e}")
            return False

        if not reachable:
            logger.error("Data source connectivity check failed")
        return reachable

    # =========================================================================
    # RUN LIFECYCLE
    # =========================================================================

    async def _execute(
        self,
        sync_type: SyncType,
        options: Optional[SyncOptions],
        cancel_token: Optional[CancellationToken],
        stage: Callable[[SyncResult, _StageContext], Awaitable[None]]
    ) -> SyncResult:
        options = options or self.default_options
        result = SyncResult(
            sync_type=sync_type,
            start_time=self.clock(),
            options=options.model_dump(),
        )

        try:
            self._acquire()
        except ConcurrencyConflictError as e:
            logger.warning(f"Rejected {sync_type.value} sync: {e}")
            result.add_error(str(e))
            result.status = SyncStatus.FAILED
            result.end_time = self.clock()
            return result

        internal_token = CancellationToken()
        tokens = (internal_token,) if cancel_token is None else (internal_token, cancel_token)
        ctx = _StageContext(options=options, tokens=tokens)

        self._current = result
        self._current_token = internal_token
        correlation_token = set_correlation_id(result.sync_id)

        try:
            logger.info(
                f"Starting {sync_type.value} sync {result.sync_id} "
                f"(batch_size={options.batch_size}, dry_run={options.dry_run})"
            )

            aborted = await self._guarded(
                result,
                asyncio.wait_for(stage(result, ctx), timeout=options.timeout_minutes * 60),
            )
            self._finalize(result, aborted)

            logger.info(
                f"Finished {sync_type.value} sync {result.sync_id}: {result.status.value} "
                f"processed={result.records_processed} updated={result.players_updated} "
                f"added={result.new_players_added} stats={result.stats_upserted} "
                f"errors={result.total_errors} warnings={len(result.warnings)} "
                f"({result.duration.total_seconds():.1f}s)"
            )

            await self._save_report(result)
            return result

        finally:
            clear_correlation_id(correlation_token)
            self._current = None
            self._current_token = None
            self._lock.release()

    def _acquire(self):
        if not self._lock.acquire(blocking=False):
            raise ConcurrencyConflictError(ALREADY_RUNNING_ERROR)

    async def _guarded(self, result: SyncResult, work: Awaitable[None]) -> bool:
        """
        Await one unit of run work, folding run-level failures into result.

        Returns:
            True if the work aborted the run
        """
        try:
            await work
            return False
        except SyncConfigurationError as e:
            logger.error(f"Invalid sync configuration: {e}")
            result.add_error(f"Configuration error: {e}")
            return True
        except DataValidationError as e:
            logger.error(f"Sync aborted on invalid data: {e}")
            result.add_error(f"Aborted: {e}")
            return True
        except TransientProviderError as e:
            logger.error(f"Provider request failed: {e}")
            result.api_errors += 1
            result.add_error(f"Provider error: {e}")
            return False
        except asyncio.TimeoutError:
            timeout = (result.options or {}).get('timeout_minutes')
            logger.error(f"Sync {result.sync_id} timed out after {timeout} minutes")
            result.add_error(f"Sync timed out after {timeout} minutes")
            return True
        except Exception as e:
            logger.exception(f"Unexpected error during sync {result.sync_id}: {e}")
            result.add_error(f"Unexpected error: {e}")
            return True

    def _finalize(self, result: SyncResult, aborted: bool):
        result.end_time = self.clock()
        if result.status == SyncStatus.CANCELLED:
            return
        result.status = SyncStatus.FAILED if aborted else determine_sync_status(result)

    async def _save_report(self, result: SyncResult):
        try:
            saved = await self.persistence.save_sync_report(result)
        except Exception as e:
            logger.error(f"Failed to save sync report {result.sync_id}: {e}")
            return

        if not saved:
            logger.warning(f"Sync report {result.sync_id} was not saved")

    def _cancel(self, result: SyncResult, where: str):
        result.status = SyncStatus.CANCELLED
        result.add_warning(f"Sync cancelled {where}")
        logger.warning(f"Sync {result.sync_id} cancelled {where}")

    async def _pause(self, ctx: _StageContext):
        await self.sleep(ctx.options.retry_delay_seconds)

    # =========================================================================
    # PLAYERS
    # =========================================================================

    async def _run_players(self, result: SyncResult, ctx: _StageContext):
        options = ctx.options

        if not await self.validate_connectivity():
            raise TransientProviderError("Data source connectivity check failed")

        roster = await self.data_source.fetch_roster()
        players = self._filter_roster(roster, options)
        result.records_processed += len(players)
        result.records_skipped += len(roster) - len(players)

        ctx.candidates = list(await self.persistence.find_active_candidates())

        batches = list(chunked(players, options.batch_size))
        logger.info(
            f"Syncing {len(players)} players in {len(batches)} batches "
            f"against {len(ctx.candidates)} roster players"
        )

        for index, batch in enumerate(batches):
            if index > 0:
                await self._pause(ctx)
            if ctx.cancelled:
                self._cancel(result, f"before player batch {index + 1} of {len(batches)}")
                return

            for player in batch:
                await self._sync_player(result, ctx, player)

            logger.info(
                f"Player batch {index + 1}/{len(batches)} complete: "
                f"{result.players_processed} processed, {result.players_updated} updated, "
                f"{result.new_players_added} added"
            )

    def _filter_roster(self, roster: Sequence[ExternalPlayer], options: SyncOptions) -> List[ExternalPlayer]:
        players = list(roster)

        if options.skip_inactives:
            players = [p for p in players if p.active]

        if options.player_ids:
            wanted_ids = {str(pid) for pid in options.player_ids}
            players = [p for p in players if p.external_id in wanted_ids]

        if options.team_abbreviations:
            wanted_teams = {t.upper() for t in options.team_abbreviations}
            players = [
                p for p in players
                if p.team_abbreviation and p.team_abbreviation.upper() in wanted_teams
            ]

        return players

    async def _sync_player(self, result: SyncResult, ctx: _StageContext, player: ExternalPlayer):
        result.players_processed += 1
        try:
            if not player.external_id or not player.full_name:
                result.player_issues.append(PlayerSyncIssue(
                    external_id=player.external_id or "",
                    player_name=player.full_name,
                    issue_type=PlayerIssueType.INCOMPLETE_DATA,
                    description="Provider record is missing an id or a name",
                    requires_manual_intervention=False,
                ))
                raise DataValidationError("Player record is missing an id or a name")

            linked_id = await self.persistence.find_link_by_external_id(player.external_id)
            if linked_id is not None:
                await self._write_linkage(result, ctx, linked_id, player)
                result.players_updated += 1
                return

            match = self.matcher.match(player, ctx.candidates or [], matched_at=self.clock())
            if match.is_match:
                self._flag_review(result, match)
                await self._write_linkage(result, ctx, match.matched_candidate_id, player)
                result.players_updated += 1
            else:
                await self._create_player(result, ctx, player, match)

        except MatchingAmbiguityError as e:
            logger.warning(f"Could not resolve player {player.full_name} ({player.external_id}): {e}")
            result.matching_errors += 1
            result.add_error(f"Player {player.external_id}: {e}")

        except Exception as e:
            logger.error(f"Error syncing player {player.full_name} ({player.external_id}): {e}")
            result.data_errors += 1
            result.add_error(f"Player {player.external_id}: {e}")
            if not ctx.options.skip_invalid_records:
                raise DataValidationError(
                    f"Player {player.external_id} failed and skip_invalid_records is off"
                ) from e

    async def _write_linkage(
        self,
        result: SyncResult,
        ctx: _StageContext,
        candidate_id: int,
        player: ExternalPlayer
    ):
        if ctx.options.dry_run:
            return
        linked = await self.persistence.update_linkage(candidate_id, player)
        if not linked:
            # existing links are never overwritten
            result.player_issues.append(PlayerSyncIssue(
                external_id=player.external_id,
                player_name=player.full_name,
                issue_type=PlayerIssueType.MULTIPLE_MATCHES,
                description=f"Roster player {candidate_id} is missing or already linked to another provider id",
                requires_manual_intervention=True,
            ))
            raise MatchingAmbiguityError(
                f"Roster player {candidate_id} refused link to {player.external_id}"
            )

    async def _create_player(
        self,
        result: SyncResult,
        ctx: _StageContext,
        player: ExternalPlayer,
        match: MatchResult
    ) -> int:
        if ctx.options.dry_run:
            new_id = next(ctx.provisional_ids)
        else:
            try:
                new_id = await self.persistence.create_candidate(player)
            except Exception as e:
                raise DataValidationError(f"Could not create roster player: {e}") from e

        result.new_players_added += 1
        result.player_issues.append(PlayerSyncIssue(
            external_id=player.external_id,
            player_name=player.full_name,
            issue_type=PlayerIssueType.NO_MATCH,
            description=f"No roster match (best score {match.confidence_score:.2f}); created new player",
            requires_manual_intervention=False,
            alternates=match.alternates,
        ))

        if ctx.candidates is not None:
            ctx.candidates.append(RosterCandidate(
                id=new_id,
                first_name=player.first_name,
                last_name=player.last_name,
                team_abbreviation=player.team_abbreviation,
                position=player.position,
                active=player.active,
            ))

        logger.info(f"Created roster player {new_id} for {player.full_name} ({player.external_id})")
        return new_id

    def _flag_review(self, result: SyncResult, match: MatchResult):
        if not match.requires_manual_review:
            return

        close = bool(match.alternates) and (
            match.confidence_score - match.alternates[0].score
            < self.matcher.options.manual_review_threshold
        )
        issue_type = PlayerIssueType.MULTIPLE_MATCHES if close else PlayerIssueType.LOW_CONFIDENCE_MATCH

        result.add_warning(
            f"Player {match.external_name} ({match.external_id}) linked to "
            f"{match.matched_candidate_id} via {match.method.value} "
            f"with confidence {match.confidence_score:.2f}; manual review required"
        )
        result.player_issues.append(PlayerSyncIssue(
            external_id=match.external_id,
            player_name=match.external_name,
            issue_type=issue_type,
            description="; ".join(match.reasons) or "Low confidence match",
            requires_manual_intervention=True,
            alternates=match.alternates,
        ))

    # =========================================================================
    # PLAYER STATS
    # =========================================================================

    def _check_season(self, season: int):
        latest = self.clock().year + 1
        if not isinstance(season, int) or not MIN_SEASON <= season <= latest:
            raise SyncConfigurationError(f"Season {season} is not in valid range ({MIN_SEASON}-{latest})")

    def _check_week(self, week: int):
        if not isinstance(week, int) or not 1 <= week <= MAX_WEEK:
            raise SyncConfigurationError(f"Week {week} is not in valid range (1-{MAX_WEEK})")

    async def _run_week_stats(self, result: SyncResult, ctx: _StageContext, season: int, week: int):
        self._check_season(season)
        self._check_week(week)

        games = await self.data_source.fetch_games_for_week(season, week)
        logger.info(f"Syncing stats for {len(games)} games in {season} week {week}")
        await self._process_games(result, ctx, games, label=f"{season} week {week}")

    async def _run_date_range_stats(
        self,
        result: SyncResult,
        ctx: _StageContext,
        start_date: date,
        end_date: date
    ):
        if start_date is None or end_date is None or start_date > end_date:
            raise SyncConfigurationError(f"Invalid date range {start_date} to {end_date}")

        days = (end_date - start_date).days + 1
        logger.info(f"Syncing stats for {days} days ({start_date} to {end_date})")

        for offset in range(days):
            day = start_date + timedelta(days=offset)
            if ctx.cancelled:
                self._cancel(result, f"before {day.isoformat()}")
                return

            try:
                games = await self.data_source.fetch_games_for_date(day)
            except Exception as e:
                logger.error(f"Failed to fetch games for {day}: {e}")
                result.api_errors += 1
                result.add_error(f"Games for {day.isoformat()}: {e}")
                continue

            if not await self._process_games(result, ctx, games, label=day.isoformat()):
                return

    async def _process_games(
        self,
        result: SyncResult,
        ctx: _StageContext,
        games: Sequence[GameRef],
        label: str
    ) -> bool:
        """
        Fetch, combine, validate, link and upsert stats for each game.

        Returns:
            False if the run was cancelled
        """
        for game in games:
            if ctx.cancelled:
                self._cancel(result, f"before game {game.game_id} ({label})")
                return False

            try:
                raw = await self.data_source.fetch_raw_stats(game.game_id)
            except Exception as e:
                logger.error(f"Failed to fetch stats for game {game.game_id}: {e}")
                result.api_errors += 1
                result.add_error(f"Game {game.game_id}: {e}")
                continue

            ready = []
            for record in combine_all(raw):
                record = self._fill_game_context(record, game)
                result.stats_records_processed += 1
                result.records_processed += 1

                if ctx.options.validate_data and not self._accept_record(result, ctx, record):
                    continue

                roster_id = await self._resolve_stats_player(result, ctx, record)
                if roster_id is None:
                    result.records_skipped += 1
                    continue

                ready.append(replace(record, roster_player_id=roster_id))

            if not await self._upsert(result, ctx, ready):
                return False

            logger.debug(f"Game {game.game_id}: {len(ready)} stat records ready")

        return True

    @staticmethod
    def _fill_game_context(record: CombinedStatRecord, game: GameRef) -> CombinedStatRecord:
        if record.season is not None and record.week is not None:
            return record
        return replace(
            record,
            season=record.season if record.season is not None else game.season,
            week=record.week if record.week is not None else game.week,
        )

    def _accept_record(self, result: SyncResult, ctx: _StageContext, record: CombinedStatRecord) -> bool:
        validation = validate(record, today=self.clock().date())

        for warning in validation.warnings:
            result.add_warning(f"Stats {record.player_id}/{record.game_id}: {warning}")

        if validation.is_valid:
            return True

        message = "; ".join(validation.errors)
        result.data_errors += 1
        result.records_skipped += 1
        result.add_error(f"Stats {record.player_id}/{record.game_id}: {message}")
        result.player_issues.append(PlayerSyncIssue(
            external_id=record.player_id,
            player_name=record.player_name,
            issue_type=PlayerIssueType.VALIDATION_ERROR,
            description=message,
            requires_manual_intervention=False,
        ))

        if not ctx.options.skip_invalid_records:
            raise DataValidationError(
                f"Invalid stats for {record.player_id} in game {record.game_id}",
                errors=validation.errors,
            )
        return False

    async def _resolve_stats_player(
        self,
        result: SyncResult,
        ctx: _StageContext,
        record: CombinedStatRecord
    ) -> Optional[int]:
        player = record.as_external_player()
        try:
            linked_id = await self.persistence.find_link_by_external_id(record.player_id)
            if linked_id is not None:
                return linked_id

            if ctx.candidates is None:
                ctx.candidates = list(await self.persistence.find_active_candidates())

            match = self.matcher.match(player, ctx.candidates, matched_at=self.clock())
            if match.is_match:
                self._flag_review(result, match)
                await self._write_linkage(result, ctx, match.matched_candidate_id, player)
                return match.matched_candidate_id

            return await self._create_player(result, ctx, player, match)

        except DataValidationError as e:
            logger.warning(f"Could not add stats player {record.player_name} ({record.player_id}): {e}")
            result.data_errors += 1
            result.add_error(f"Stats player {record.player_id}: {e}")
            return None

        except Exception as e:
            logger.warning(f"Could not resolve stats player {record.player_name} ({record.player_id}): {e}")
            result.matching_errors += 1
            result.add_error(f"Stats player {record.player_id}: {e}")
            return None

    async def _upsert(self, result: SyncResult, ctx: _StageContext, records: List[CombinedStatRecord]) -> bool:
        for batch in chunked(records, ctx.options.batch_size):
            if ctx.batches_written > 0:
                await self._pause(ctx)
            if ctx.cancelled:
                self._cancel(result, "before stats upsert batch")
                return False

            ctx.batches_written += 1
            if ctx.options.dry_run:
                result.stats_upserted += len(batch)
                continue

            try:
                result.stats_upserted += await self.persistence.upsert_stats(list(batch))
            except Exception as e:
                logger.error(f"Failed to upsert {len(batch)} stat records: {e}")
                result.data_errors += 1
                result.add_error(f"Upsert of {len(batch)} stat records failed: {e}")

        return True

    # =========================================================================
    # FULL SYNC
    # =========================================================================

    async def _run_full(self, result: SyncResult, ctx: _StageContext, season: int):
        self._check_season(season)

        stages = [(SyncType.PLAYERS, "players", lambda sub: self._run_players(sub, ctx))]
        for week in range(1, self.weeks_in_season + 1):
            stages.append((
                SyncType.PLAYER_STATS,
                f"week {week}",
                lambda sub, week=week: self._run_week_stats(sub, ctx, season, week),
            ))

        for sync_type, label, run in stages:
            if ctx.cancelled:
                self._cancel(result, f"before {label}")
                return

            sub = SyncResult(sync_type=sync_type, start_time=self.clock(), options=result.options)
            # stats stages reuse the roster loaded by earlier stages
            aborted = await self._guarded(sub, run(sub))
            self._finalize(sub, aborted)
            result.absorb(sub)

            logger.info(f"Full sync stage {label}: {sub.status.value}")

            if sub.status == SyncStatus.CANCELLED:
                result.status = SyncStatus.CANCELLED
                return

            if sub.status == SyncStatus.FAILED and not ctx.options.continue_on_error:
                raise DataValidationError(f"Full sync stopped after failed stage: {label}")
