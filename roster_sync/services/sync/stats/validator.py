"""Sanity validation for combined stat records.

Errors mark a record as unusable (it is skipped, or aborts the run when
skip_invalid_records is off). Warnings flag unusual but possible values.
A category the player did not record is never an error.
"""
import logging
from datetime import date
from typing import Optional

from roster_sync.models.sync import CombinedStatRecord, ValidationResult
from roster_sync.services.sync.stats.categories import (
    COUNTING_STATS, MADE_ATTEMPTED_PAIRS, STAT_VALIDATION_RANGES, is_percentage_stat
)

logger = logging.getLogger(__name__)

MIN_SEASON = 1920
MIN_WEEK = 1
MAX_WEEK = 22


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate(record: CombinedStatRecord, today: Optional[date] = None) -> ValidationResult:
    """
    Validate one combined stat record. Never raises.

    Args:
        record: Record to check
        today: Reference date for the season upper bound

    Returns:
        ValidationResult with errors and warnings
    """
    result = ValidationResult()
    today = today or date.today()

    if not record.player_id:
        result.add_error("Player ID is required")
    if not record.game_id:
        result.add_error("Game ID is required")

    if record.season is not None and not MIN_SEASON <= record.season <= today.year + 1:
        result.add_error(
            f"Season {record.season} is not in valid range ({MIN_SEASON}-{today.year + 1})"
        )

    if record.week is not None and not MIN_WEEK <= record.week <= MAX_WEEK:
        result.add_warning(
            f"Week {record.week} may be outside normal range ({MIN_WEEK}-{MAX_WEEK})"
        )

    if not record.team_abbreviation:
        result.add_warning("Team information is missing")
    if not record.position:
        result.add_warning("Player position is missing")

    stats = record.stats or {}

    for name, value in stats.items():
        if value is None:
            continue
        if not _is_number(value):
            result.add_warning(f"{name} is not numeric ({value!r})")
            continue

        if name in COUNTING_STATS and value < 0:
            result.add_error(f"{name} cannot be negative ({value})")

        if is_percentage_stat(name) and not 0 <= value <= 100:
            result.add_error(f"{name} must be between 0 and 100 ({value})")

        bounds = STAT_VALIDATION_RANGES.get(name)
        if bounds and not bounds[0] <= value <= bounds[1]:
            result.add_warning(
                f"{name} value {value} is outside expected range ({bounds[0]}-{bounds[1]})"
            )

    for made, attempted in MADE_ATTEMPTED_PAIRS:
        made_value = stats.get(made)
        attempted_value = stats.get(attempted)
        if _is_number(made_value) and _is_number(attempted_value) and made_value > attempted_value:
            result.add_error(f"{made} ({made_value}) exceeds {attempted} ({attempted_value})")

    if not result.is_valid:
        logger.debug(
            f"Stats for player {record.player_id} in game {record.game_id} failed validation: "
            f"{'; '.join(result.errors)}"
        )

    return result
