"""Stat field vocabulary: categories, counting stats and realistic ranges.

Canonical field names are camelCase provider names ("passingYards",
"receivingTargets"). Keys the provider sends in other spellings are
classified with normalize_stat_name() and categorize_stat().
"""
from typing import Dict, Tuple

from roster_sync.models.sync import StatCategory


STAT_CATEGORY_MAPPINGS: Dict[str, StatCategory] = {
    # Passing
    'passingCompletions': StatCategory.PASSING,
    'passingAttempts': StatCategory.PASSING,
    'passingYards': StatCategory.PASSING,
    'passingTouchdowns': StatCategory.PASSING,
    'passingInterceptions': StatCategory.PASSING,
    'passingRating': StatCategory.PASSING,
    'passingQBR': StatCategory.PASSING,
    'passingSacks': StatCategory.PASSING,
    'passingLong': StatCategory.PASSING,
    'completions': StatCategory.PASSING,
    'attempts': StatCategory.PASSING,
    'comp-att': StatCategory.PASSING,
    'C/ATT': StatCategory.PASSING,
    'interceptions': StatCategory.PASSING,

    # Rushing
    'rushingAttempts': StatCategory.RUSHING,
    'rushingCarries': StatCategory.RUSHING,
    'rushingYards': StatCategory.RUSHING,
    'rushingTouchdowns': StatCategory.RUSHING,
    'rushingAverage': StatCategory.RUSHING,
    'rushingLong': StatCategory.RUSHING,
    'carries': StatCategory.RUSHING,

    # Receiving
    'receivingReceptions': StatCategory.RECEIVING,
    'receivingTargets': StatCategory.RECEIVING,
    'receivingYards': StatCategory.RECEIVING,
    'receivingTouchdowns': StatCategory.RECEIVING,
    'receivingAverage': StatCategory.RECEIVING,
    'receivingLong': StatCategory.RECEIVING,
    'receptions': StatCategory.RECEIVING,
    'targets': StatCategory.RECEIVING,

    # Defensive
    'totalTackles': StatCategory.DEFENSIVE,
    'soloTackles': StatCategory.DEFENSIVE,
    'assistTackles': StatCategory.DEFENSIVE,
    'sacks': StatCategory.DEFENSIVE,
    'defensiveInterceptions': StatCategory.DEFENSIVE,
    'passesDefended': StatCategory.DEFENSIVE,
    'forcedFumbles': StatCategory.DEFENSIVE,
    'fumbleRecoveries': StatCategory.DEFENSIVE,
    'defensiveTouchdowns': StatCategory.DEFENSIVE,

    # Kicking
    'fieldGoalsMade': StatCategory.KICKING,
    'fieldGoalsAttempted': StatCategory.KICKING,
    'extraPointsMade': StatCategory.KICKING,
    'extraPointsAttempted': StatCategory.KICKING,
    'fieldGoals': StatCategory.KICKING,
    'extraPoints': StatCategory.KICKING,
    'fieldgoalsmade_fieldgoalattempts': StatCategory.KICKING,
    'extrapointsmade_extrapointattempts': StatCategory.KICKING,

    # Punting
    'punts': StatCategory.PUNTING,
    'puntingYards': StatCategory.PUNTING,
    'puntingAverage': StatCategory.PUNTING,
    'puntingLong': StatCategory.PUNTING,
    'puntingInside20': StatCategory.PUNTING,
}

_LOWER_MAPPINGS = {name.lower(): category for name, category in STAT_CATEGORY_MAPPINGS.items()}


# Realistic single-game ranges; values outside are warnings, not errors
STAT_VALIDATION_RANGES: Dict[str, Tuple[float, float]] = {
    'passingCompletions': (0, 80),
    'passingAttempts': (0, 100),
    'passingYards': (-50, 800),
    'passingTouchdowns': (0, 12),
    'passingInterceptions': (0, 10),
    'passingRating': (0, 158.3),
    'passingQBR': (0, 100),
    'passingSacks': (0, 15),
    'passingLong': (0, 99),

    'rushingAttempts': (0, 50),
    'rushingCarries': (0, 50),
    'rushingYards': (-30, 400),
    'rushingTouchdowns': (0, 8),
    'rushingAverage': (-5, 50),
    'rushingLong': (0, 99),

    'receivingReceptions': (0, 25),
    'receivingTargets': (0, 30),
    'receivingYards': (-20, 400),
    'receivingTouchdowns': (0, 6),
    'receivingAverage': (-10, 80),
    'receivingLong': (0, 99),

    'totalTackles': (0, 30),
    'soloTackles': (0, 25),
    'assistTackles': (0, 15),
    'sacks': (0, 8),
    'defensiveInterceptions': (0, 5),
    'passesDefended': (0, 10),
    'forcedFumbles': (0, 5),
    'fumbleRecoveries': (0, 5),
    'defensiveTouchdowns': (0, 3),

    'fieldGoalsMade': (0, 8),
    'fieldGoalsAttempted': (0, 10),
    'extraPointsMade': (0, 10),
    'extraPointsAttempted': (0, 12),

    'punts': (0, 15),
    'puntingYards': (0, 1000),
    'puntingAverage': (20, 65),
    'puntingLong': (20, 90),
    'puntingInside20': (0, 10),

    'fumbles': (0, 10),
    'fumblesLost': (0, 8),
}

# Counting stats can never be negative
COUNTING_STATS = frozenset({
    'passingCompletions', 'passingAttempts', 'passingTouchdowns',
    'passingInterceptions', 'passingSacks',
    'rushingAttempts', 'rushingCarries', 'rushingTouchdowns',
    'receivingReceptions', 'receivingTargets', 'receivingTouchdowns',
    'totalTackles', 'soloTackles', 'assistTackles', 'sacks',
    'defensiveInterceptions', 'passesDefended', 'forcedFumbles',
    'fumbleRecoveries', 'defensiveTouchdowns',
    'fieldGoalsMade', 'fieldGoalsAttempted', 'extraPointsMade',
    'extraPointsAttempted', 'punts', 'puntingInside20',
    'fumbles', 'fumblesLost',
})

# (made, attempted) pairs where made can never exceed attempted
MADE_ATTEMPTED_PAIRS: Tuple[Tuple[str, str], ...] = (
    ('passingCompletions', 'passingAttempts'),
    ('receivingReceptions', 'receivingTargets'),
    ('fieldGoalsMade', 'fieldGoalsAttempted'),
    ('extraPointsMade', 'extraPointsAttempted'),
)

PERCENTAGE_STATS = frozenset({
    'passingQBR',
    'passingCompletionPercentage',
    'fieldGoalPercentage',
    'extraPointPercentage',
})


def normalize_stat_name(name: str) -> str:
    """Lowercase a stat key and replace spaces, hyphens and slashes with underscores."""
    return (name or "").strip().lower().replace(' ', '_').replace('-', '_').replace('/', '_')


def is_percentage_stat(name: str) -> bool:
    return name in PERCENTAGE_STATS or 'percentage' in name.lower()


def categorize_stat(name: str) -> StatCategory:
    """
    Classify a provider stat key.

    Direct table lookup first (exact, then case-insensitive), then a
    keyword fallback; unknown keys are GENERAL.
    """
    if name in STAT_CATEGORY_MAPPINGS:
        return STAT_CATEGORY_MAPPINGS[name]

    lowered = (name or "").lower().strip()
    if lowered in _LOWER_MAPPINGS:
        return _LOWER_MAPPINGS[lowered]

    if any(k in lowered for k in ('pass', 'completion', 'attempt', 'qbr', 'rating')):
        return StatCategory.PASSING

    if 'rush' in lowered or 'carr' in lowered:
        return StatCategory.RUSHING

    if any(k in lowered for k in ('rec', 'target', 'catch')):
        return StatCategory.RECEIVING

    if any(k in lowered for k in ('sack', 'tackle', 'int', 'fumble', 'def')):
        return StatCategory.DEFENSIVE

    if any(k in lowered for k in ('kick', 'fg', 'xp', 'extra', 'fieldgoal')):
        return StatCategory.KICKING

    if 'punt' in lowered:
        return StatCategory.PUNTING

    return StatCategory.GENERAL
