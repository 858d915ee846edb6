"""Combine per-category stat slices into one record per (player, game).

The provider emits a player's boxscore as several slices (passing,
rushing, receiving, ...). A corrected or overlapping slice may repeat a
field; the later slice in input order wins.
"""
from typing import Dict, Iterable, List, Sequence, Tuple

from roster_sync.models.sync import CombinedStatRecord, RawStatRecord, StatCategory

_METADATA_FIELDS = ('player_name', 'team_abbreviation', 'position', 'season', 'week')


def group_raw_stats(records: Iterable[RawStatRecord]) -> Dict[Tuple[str, str], List[RawStatRecord]]:
    """
    Group slices by (player_id, game_id).

    Keys keep the order of their first appearance, slices keep input order.
    """
    groups: Dict[Tuple[str, str], List[RawStatRecord]] = {}
    for record in records:
        groups.setdefault(record.key, []).append(record)
    return groups


def combine(records: Sequence[RawStatRecord]) -> CombinedStatRecord:
    """
    Merge the slices of one (player, game) into a CombinedStatRecord.

    Metadata comes from the first slice, with gaps filled from later
    slices. Categories are unioned in first-seen order and fields are
    unioned with the last slice winning on duplicate names.

    Raises:
        ValueError: If records is empty or spans more than one key
    """
    if not records:
        raise ValueError("Cannot combine an empty set of stat records")

    first = records[0]
    key = first.key
    for record in records[1:]:
        if record.key != key:
            raise ValueError(
                f"Cannot combine stats for different keys: {key} and {record.key}"
            )

    metadata = {name: getattr(first, name) for name in _METADATA_FIELDS}
    categories: List[StatCategory] = []
    stats: Dict[str, float] = {}

    for record in records:
        for name in _METADATA_FIELDS:
            if not metadata[name]:
                value = getattr(record, name)
                if value:
                    metadata[name] = value

        if record.category not in categories:
            categories.append(record.category)

        stats.update(record.fields)

    return CombinedStatRecord(
        player_id=first.player_id,
        game_id=first.game_id,
        categories=tuple(categories),
        stats=stats,
        **metadata,
    )


def combine_all(records: Iterable[RawStatRecord]) -> List[CombinedStatRecord]:
    """Group and combine every (player, game) in records."""
    return [combine(group) for group in group_raw_stats(records).values()]
