"""
Scheduled sync jobs.

Jobs:
- Daily roster sync (players)
- Daily stats sync for the previous day's games

Scheduler: APScheduler AsyncIOScheduler. Each job has max_instances=1,
and the coordinator's own lock rejects overlap with API or CLI runs.
"""
import logging
from datetime import date, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from roster_sync.core.config import settings
from roster_sync.models.sync import SyncResult
from roster_sync.services.sync.orchestrator import SyncCoordinator

logger = logging.getLogger(__name__)


class SyncScheduler:
    """
    Owns the APScheduler instance and the sync job definitions.

    The coordinator is resolved lazily so tests can inject a fake.
    """

    def __init__(
        self,
        coordinator_factory: Optional[Callable[[], SyncCoordinator]] = None,
        timezone: Optional[str] = None,
        today: Callable[[], date] = date.today
    ):
        if coordinator_factory is None:
            from roster_sync.services.sync.factory import get_coordinator
            coordinator_factory = get_coordinator

        self.coordinator_factory = coordinator_factory
        self.timezone = timezone or settings.SCHEDULER_TIMEZONE
        self.today = today
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self.scheduler = AsyncIOScheduler(
            timezone=self.timezone,
            job_defaults={
                'coalesce': True,  # Combine missed runs into one
                'max_instances': 1,
                'misfire_grace_time': 600,
            }
        )
        self._add_jobs()
        self.scheduler.start()
        self.running = True

        for job in self.scheduler.get_jobs():
            logger.info(f"Scheduled job {job.id}: {job.trigger}")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Scheduler stopped")

    def _add_jobs(self):
        self.scheduler.add_job(
            self.run_player_sync,
            trigger=CronTrigger(hour=settings.PLAYER_SYNC_CRON_HOUR, minute=0, timezone=self.timezone),
            id='player_sync',
            name='Daily roster sync',
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.run_stats_sync,
            trigger=CronTrigger(hour=settings.STATS_SYNC_CRON_HOUR, minute=0, timezone=self.timezone),
            id='stats_sync',
            name="Previous day's stats sync",
            replace_existing=True,
        )

    async def run_player_sync(self) -> Optional[SyncResult]:
        """Job: sync the roster."""
        try:
            result = await self.coordinator_factory().sync_players()
        except Exception as e:
            logger.error(f"Scheduled player sync failed: {e}")
            return None

        logger.info(
            f"Scheduled player sync {result.sync_id}: {result.status.value} "
            f"({result.players_updated} updated, {result.new_players_added} added)"
        )
        return result

    async def run_stats_sync(self, day: Optional[date] = None) -> Optional[SyncResult]:
        """Job: sync stats for one day (yesterday by default)."""
        day = day or self.today() - timedelta(days=1)
        try:
            result = await self.coordinator_factory().sync_player_stats_for_date_range(day, day)
        except Exception as e:
            logger.error(f"Scheduled stats sync for {day} failed: {e}")
            return None

        logger.info(
            f"Scheduled stats sync {result.sync_id} for {day}: {result.status.value} "
            f"({result.stats_upserted} records)"
        )
        return result


_scheduler: Optional[SyncScheduler] = None


async def start_scheduler() -> SyncScheduler:
    """Start the global scheduler."""
    global _scheduler
    if _scheduler is None:
        _scheduler = SyncScheduler()
        await _scheduler.start()
    return _scheduler


async def stop_scheduler():
    """Stop the global scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None


def get_scheduler() -> Optional[SyncScheduler]:
    return _scheduler
