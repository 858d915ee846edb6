"""
Run a roster or stats sync from the command line.

Usage:
    python scripts/run_sync.py players [--dry-run] [--team KC --team BUF]
    python scripts/run_sync.py stats --season 2025 --week 5
    python scripts/run_sync.py range --start 2025-10-05 --end 2025-10-06
    python scripts/run_sync.py full --season 2025 [--stop-on-error]
    python scripts/run_sync.py history [--limit 10]
"""
import sys
import argparse
import asyncio
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from roster_sync.core.config import default_sync_options, settings
from roster_sync.core.database import init_db
from roster_sync.core.logging import configure_logging
from roster_sync.models.sync import SyncResult, SyncStatus
from roster_sync.services.sync.factory import build_coordinator

STATUS_ICONS = {
    SyncStatus.COMPLETED: "✅",
    SyncStatus.COMPLETED_WITH_WARNINGS: "⚠️",
    SyncStatus.PARTIALLY_COMPLETED: "⚠️",
    SyncStatus.FAILED: "❌",
    SyncStatus.CANCELLED: "⏹️",
}


def print_result(result: SyncResult, max_messages: int = 10):
    icon = STATUS_ICONS.get(result.status, "")
    print()
    print(f"{icon} {result.sync_type.value} sync {result.sync_id}: {result.status.value}")
    print(f"  Processed:       {result.records_processed}")
    print(f"  Players updated: {result.players_updated}")
    print(f"  Players added:   {result.new_players_added}")
    print(f"  Stats upserted:  {result.stats_upserted}")
    print(f"  Skipped:         {result.records_skipped}")
    print(f"  Errors:          data={result.data_errors} matching={result.matching_errors} api={result.api_errors}")
    print(f"  Success rate:    {result.success_rate:.1f}%")
    print(f"  Duration:        {result.duration.total_seconds():.1f}s")

    for label, messages in (("Errors", result.errors), ("Warnings", result.warnings)):
        if messages:
            print(f"  {label} (first {min(len(messages), max_messages)} of {len(messages)}):")
            for message in messages[:max_messages]:
                print(f"    - {message}")


async def main(args) -> int:
    init_db()
    coordinator = build_coordinator()

    if args.command == "history":
        reports = await coordinator.get_sync_history(limit=args.limit)
        if not reports:
            print("No sync reports found")
        for report in reports:
            print(
                f"{report.start_time:%Y-%m-%d %H:%M} {report.sync_type.value:<13} "
                f"{report.status.value:<24} processed={report.records_processed} "
                f"errors={report.data_errors + report.matching_errors + report.api_errors}"
            )
        return 0

    options = default_sync_options(
        dry_run=args.dry_run or None,
        batch_size=args.batch_size,
        continue_on_error=False if args.stop_on_error else None,
        team_abbreviations=args.team,
    )

    if options.dry_run:
        print("🔍 Dry run - nothing will be written")

    if args.command == "players":
        result = await coordinator.sync_players(options)
    elif args.command == "stats":
        result = await coordinator.sync_player_stats(args.season, args.week, options)
    elif args.command == "range":
        result = await coordinator.sync_player_stats_for_date_range(args.start, args.end, options)
    else:
        result = await coordinator.full_sync(args.season, options)

    print_result(result)
    await coordinator.data_source.close()
    return 0 if result.status != SyncStatus.FAILED else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sync NFL rosters and player stats from ESPN")
    parser.add_argument('--log-level', default=settings.LOG_LEVEL, help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_run_options(sub):
        sub.add_argument('--dry-run', action='store_true', help='Simulate without saving')
        sub.add_argument('--batch-size', type=int, default=None, help='Records per batch')
        sub.add_argument('--team', action='append', default=None, help='Limit to team abbreviation (repeatable)')
        sub.add_argument('--stop-on-error', action='store_true', help='Stop a full sync after a failed stage')

    add_run_options(subparsers.add_parser('players', help='Sync rosters'))

    stats = subparsers.add_parser('stats', help='Sync one week of stats')
    stats.add_argument('--season', type=int, default=settings.CURRENT_SEASON)
    stats.add_argument('--week', type=int, required=True)
    add_run_options(stats)

    date_range = subparsers.add_parser('range', help='Sync stats for a date range')
    date_range.add_argument('--start', type=date.fromisoformat, required=True)
    date_range.add_argument('--end', type=date.fromisoformat, required=True)
    add_run_options(date_range)

    full = subparsers.add_parser('full', help='Sync rosters and every week of a season')
    full.add_argument('--season', type=int, default=settings.CURRENT_SEASON)
    add_run_options(full)

    history = subparsers.add_parser('history', help='Show recent sync reports')
    history.add_argument('--limit', type=int, default=20)

    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()
    configure_logging(level=args.log_level, json_output=False)
    sys.exit(asyncio.run(main(args)))
