"""Stats combination and validation."""
from roster_sync.services.sync.stats.categories import categorize_stat, normalize_stat_name
from roster_sync.services.sync.stats.combiner import combine, combine_all, group_raw_stats
from roster_sync.services.sync.stats.validator import validate

__all__ = [
    "categorize_stat",
    "normalize_stat_name",
    "combine",
    "combine_all",
    "group_raw_stats",
    "validate",
]
