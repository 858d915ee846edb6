"""Confidence scoring for player identity matches.

Calculates a weighted confidence score (0.0 to 1.0) for one
(external player, roster candidate) pair. Higher scores indicate more
reliable matches.

Name score levels:
- 1.0: Exact normalized full name
- 0.85: Nickname variant first name + same last name
- 0.6: Same Soundex code for first and last name
- 0.0-0.5: Token overlap (Jaccard) scaled into [0, 0.5]

Team score is 1.0 for the same abbreviation, position score is 1.0 for the
same position and 0.5 for the same unit (offense/defense/special teams).
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from roster_sync.models.options import PlayerMatchingOptions
from roster_sync.models.sync import (
    ExternalPlayer, NameMatchKind, PositionUnit, RosterCandidate
)
from roster_sync.services.sync.utils.name_normalizer import (
    normalize, name_tokens, is_nickname_variant, extract_player_name_parts
)
from roster_sync.services.sync.utils.phonetic import soundex

EXACT_NAME_SCORE = 1.0
NICKNAME_SCORE = 0.85
PHONETIC_SCORE = 0.6
TOKEN_OVERLAP_CEILING = 0.5
SAME_UNIT_SCORE = 0.5

# Provider spellings -> canonical position
POSITION_ALIASES = {
    'HB': 'RB',
    'FB': 'RB',
    'FL': 'WR',
    'SE': 'WR',
    'PK': 'K',
    'DST': 'DEF',
    'D/ST': 'DEF',
}

# Provider and legacy database abbreviations folded to one code
TEAM_ALIASES = {
    'WSH': 'WAS',
    'JAC': 'JAX',
    'KAN': 'KC',
    'NWE': 'NE',
    'NOR': 'NO',
    'SFO': 'SF',
    'TAM': 'TB',
    'LVR': 'LV',
    'GNB': 'GB',
}

POSITION_UNITS = {
    PositionUnit.OFFENSE: frozenset({
        'QB', 'RB', 'WR', 'TE', 'OL', 'OT', 'OG', 'T', 'G', 'C',
    }),
    PositionUnit.DEFENSE: frozenset({
        'DL', 'DE', 'DT', 'NT', 'LB', 'ILB', 'OLB', 'MLB',
        'DB', 'CB', 'S', 'SS', 'FS', 'DEF',
    }),
    PositionUnit.SPECIAL_TEAMS: frozenset({
        'K', 'P', 'LS', 'KR', 'PR',
    }),
}


@dataclass(frozen=True)
class CandidateScore:
    """Per-factor breakdown of one candidate's score."""
    name_score: float
    team_score: float
    position_score: float
    score: float
    name_match_kind: NameMatchKind
    reasons: Tuple[str, ...] = ()


def canonical_position(position: Optional[str]) -> str:
    """Uppercase position with provider aliases folded ("HB" → "RB")."""
    if not position:
        return ""
    code = position.strip().upper()
    return POSITION_ALIASES.get(code, code)


def canonical_team(team: Optional[str]) -> str:
    """Uppercase team abbreviation with aliases folded ("WSH" → "WAS")."""
    if not team:
        return ""
    code = team.strip().upper()
    return TEAM_ALIASES.get(code, code)


def position_unit(position: Optional[str]) -> PositionUnit:
    """Unit a position belongs to, UNKNOWN when unrecognized."""
    code = canonical_position(position)
    for unit, positions in POSITION_UNITS.items():
        if code in positions:
            return unit
    return PositionUnit.UNKNOWN


def _first_last(first: str, last: str, fallback: str = "") -> Tuple[str, str]:
    if first or last:
        return (first or "", last or "")
    return extract_player_name_parts(fallback)


def calculate_name_score(
    external: ExternalPlayer,
    candidate: RosterCandidate,
    options: PlayerMatchingOptions
) -> Tuple[float, NameMatchKind, str]:
    """
    Score name similarity between an external player and a candidate.

    Returns:
        Tuple of (score, kind, human readable detail)
    """
    ext_first, ext_last = _first_last(
        external.first_name, external.last_name, external.display_name
    )
    cand_first, cand_last = _first_last(candidate.first_name, candidate.last_name)

    ext_full = normalize(f"{ext_first} {ext_last}")
    cand_full = normalize(f"{cand_first} {cand_last}")

    if not ext_full or not cand_full:
        return (0.0, NameMatchKind.NONE, "")

    if ext_full == cand_full:
        return (EXACT_NAME_SCORE, NameMatchKind.EXACT, f"Exact name match: {cand_full}")

    ext_last_norm = normalize(ext_last)
    cand_last_norm = normalize(cand_last)

    if (options.enable_name_variation_matching
            and ext_last_norm and ext_last_norm == cand_last_norm
            and is_nickname_variant(ext_first, cand_first)):
        return (
            NICKNAME_SCORE,
            NameMatchKind.NICKNAME,
            f"Name variation: {normalize(ext_first)} ~ {normalize(cand_first)} {cand_last_norm}"
        )

    if options.enable_phonetic_matching:
        ext_codes = (soundex(ext_first), soundex(ext_last))
        cand_codes = (soundex(cand_first), soundex(cand_last))
        if all(ext_codes) and ext_codes == cand_codes:
            return (
                PHONETIC_SCORE,
                NameMatchKind.PHONETIC,
                f"Phonetic match: {ext_codes[0]}/{ext_codes[1]}"
            )

    ext_tokens = name_tokens(ext_full)
    cand_tokens = name_tokens(cand_full)
    union = ext_tokens | cand_tokens
    overlap = len(ext_tokens & cand_tokens) / len(union) if union else 0.0

    if overlap <= 0:
        return (0.0, NameMatchKind.NONE, "")

    return (
        overlap * TOKEN_OVERLAP_CEILING,
        NameMatchKind.TOKEN_OVERLAP,
        f"Name token overlap: {overlap:.2f}"
    )


def calculate_team_score(external_team: Optional[str], candidate_team: Optional[str]) -> float:
    """1.0 when both abbreviations are present and name the same team."""
    ext = canonical_team(external_team)
    cand = canonical_team(candidate_team)

    if not ext or not cand:
        return 0.0
    return 1.0 if ext == cand else 0.0


def calculate_position_score(external_position: Optional[str], candidate_position: Optional[str]) -> float:
    """1.0 for the same canonical position, 0.5 for the same unit."""
    ext = canonical_position(external_position)
    cand = canonical_position(candidate_position)

    if not ext or not cand:
        return 0.0

    if ext == cand:
        return 1.0

    ext_unit = position_unit(ext)
    if ext_unit != PositionUnit.UNKNOWN and ext_unit == position_unit(cand):
        return SAME_UNIT_SCORE

    return 0.0


def score_candidate(
    external: ExternalPlayer,
    candidate: RosterCandidate,
    options: Optional[PlayerMatchingOptions] = None
) -> CandidateScore:
    """
    Calculate the weighted confidence score for one candidate.

    Pure and deterministic; missing team/position on either side scores
    that factor 0.0.

    Args:
        external: Player from the provider
        candidate: Existing roster player
        options: Weights and feature switches

    Returns:
        CandidateScore with per-factor breakdown and reasons
    """
    options = options or PlayerMatchingOptions()

    name_score, kind, name_detail = calculate_name_score(external, candidate, options)
    team_score = calculate_team_score(external.team_abbreviation, candidate.team_abbreviation)
    position_score = calculate_position_score(external.position, candidate.position)

    weighted_name = options.name_match_weight * name_score
    weighted_team = options.team_match_weight * team_score
    weighted_position = options.position_match_weight * position_score

    score = round(weighted_name + weighted_team + weighted_position, 6)
    score = max(0.0, min(1.0, score))

    floor = options.reason_visibility_floor
    reasons = []
    if name_score > 0 and weighted_name >= floor:
        reasons.append(f"{name_detail} ({name_score:.2f})")
    if team_score > 0 and weighted_team >= floor:
        reasons.append(f"Team match: {candidate.team_abbreviation.upper()}")
    if position_score > 0 and weighted_position >= floor:
        if position_score == 1.0:
            reasons.append(f"Position match: {canonical_position(candidate.position)}")
        else:
            reasons.append(
                f"Same unit: {position_unit(candidate.position).value} "
                f"({canonical_position(external.position)}/{canonical_position(candidate.position)})"
            )

    return CandidateScore(
        name_score=name_score,
        team_score=team_score,
        position_score=position_score,
        score=score,
        name_match_kind=kind,
        reasons=tuple(reasons),
    )
