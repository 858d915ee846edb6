"""Unit tests for confidence_scorer utility.

Test Strategy:
1. Test exact match scenarios (confidence = 1.0)
2. Test nickname, phonetic and token-overlap name scores
3. Test team and position factors (aliases, same unit)
4. Test option switches and custom weights
5. Test edge cases (missing data, None values)

Each test follows the pattern:
- Given: An external player and a roster candidate
- When: score_candidate() is called
- Then: Confidence score matches expected value
"""
import pytest

from roster_sync.models.options import PlayerMatchingOptions
from roster_sync.models.sync import ExternalPlayer, NameMatchKind, PositionUnit, RosterCandidate
from roster_sync.services.sync.utils.confidence_scorer import (
    calculate_position_score, calculate_team_score, canonical_position,
    canonical_team, position_unit, score_candidate
)


def external(first, last, team=None, position=None, **kwargs):
    return ExternalPlayer(
        external_id="e1", first_name=first, last_name=last,
        team_abbreviation=team, position=position, **kwargs
    )


def candidate(first, last, team=None, position=None, id=1):
    return RosterCandidate(
        id=id, first_name=first, last_name=last,
        team_abbreviation=team, position=position
    )


class TestConfidenceScorer:
    """Test suite for candidate confidence scoring."""

    # Exact Match Tests (Confidence = 1.0)
    # ─────────────────────────────────────────────────────────────

    def test_exact_name_team_and_position(self):
        """Should return 1.0 for identical name, team and position."""
        score = score_candidate(
            external("Patrick", "Mahomes", "KC", "QB"),
            candidate("Patrick", "Mahomes", "KC", "QB"),
        )
        assert score.score == 1.0
        assert score.name_match_kind == NameMatchKind.EXACT
        assert score.team_score == 1.0
        assert score.position_score == 1.0

    def test_exact_match_ignores_punctuation_and_case(self):
        score = score_candidate(
            external("C.J.", "STROUD", "HOU", "QB"),
            candidate("CJ", "Stroud", "hou", "qb"),
        )
        assert score.score == 1.0

    def test_display_name_used_when_parts_missing(self):
        """A provider record with only a display name still matches exactly."""
        player = ExternalPlayer(external_id="e1", display_name="Patrick Mahomes",
                                team_abbreviation="KC", position="QB")
        score = score_candidate(player, candidate("Patrick", "Mahomes", "KC", "QB"))
        assert score.name_score == 1.0

    # Fuzzy Name Tests
    # ─────────────────────────────────────────────────────────────

    def test_nickname_variant(self):
        """'Mike' vs 'Michael' with same last name scores 0.85 on name."""
        score = score_candidate(
            external("Mike", "Pittman", "IND", "WR"),
            candidate("Michael", "Pittman", "IND", "WR"),
        )
        assert score.name_score == 0.85
        assert score.name_match_kind == NameMatchKind.NICKNAME
        assert score.score == pytest.approx(0.895)

    def test_phonetic_match(self):
        """Same Soundex for first and last name scores 0.6 on name."""
        score = score_candidate(
            external("Jon", "Smyth", "NYG", "QB"),
            candidate("John", "Smith", "NYG", "QB"),
        )
        assert score.name_score == 0.6
        assert score.name_match_kind == NameMatchKind.PHONETIC
        assert score.score == pytest.approx(0.72)

    def test_token_overlap(self):
        """Shared last name only: Jaccard 1/3 scaled into [0, 0.5]."""
        score = score_candidate(
            external("Josh", "Allen", None, None),
            candidate("Kyle", "Allen", None, None),
        )
        assert score.name_match_kind == NameMatchKind.TOKEN_OVERLAP
        assert score.name_score == pytest.approx(1 / 6)
        assert score.score == pytest.approx(0.7 / 6, abs=1e-6)

    def test_no_name_similarity(self):
        score = score_candidate(
            external("Travis", "Kelce", "KC", "TE"),
            candidate("Josh", "Allen", "BUF", "QB"),
        )
        assert score.name_score == 0.0
        assert score.name_match_kind == NameMatchKind.NONE
        # TE and QB are both offense
        assert score.score == pytest.approx(0.05)

    # Team and Position Tests
    # ─────────────────────────────────────────────────────────────

    def test_team_score_case_insensitive(self):
        assert calculate_team_score("kc", "KC") == 1.0
        assert calculate_team_score("KC", "BUF") == 0.0

    def test_team_aliases(self):
        assert canonical_team("wsh") == "WAS"
        assert canonical_team("JAC") == "JAX"
        assert calculate_team_score("WSH", "WAS") == 1.0
        assert calculate_team_score("KAN", "KC") == 1.0
        assert calculate_team_score("WSH", "NYG") == 0.0

    def test_washington_alias_is_exact_match(self):
        """Provider "WSH" against a roster stored as "WAS" is a full team match."""
        score = score_candidate(
            external("Terry", "McLaurin", "WSH", "WR"),
            candidate("Terry", "McLaurin", "WAS", "WR"),
        )
        assert score.team_score == 1.0
        assert score.score == 1.0

    def test_missing_team_scores_zero(self):
        assert calculate_team_score(None, "KC") == 0.0
        assert calculate_team_score("KC", "") == 0.0

    def test_position_aliases(self):
        assert canonical_position("hb") == "RB"
        assert canonical_position("PK") == "K"
        assert calculate_position_score("HB", "RB") == 1.0
        assert calculate_position_score("FB", "RB") == 1.0

    def test_same_unit_scores_half(self):
        assert calculate_position_score("QB", "WR") == 0.5
        assert calculate_position_score("CB", "LB") == 0.5
        assert calculate_position_score("K", "P") == 0.5

    def test_different_units_score_zero(self):
        assert calculate_position_score("QB", "CB") == 0.0
        assert calculate_position_score("XX", "YY") == 0.0

    def test_missing_position_scores_zero(self):
        assert calculate_position_score(None, "QB") == 0.0

    def test_position_unit(self):
        assert position_unit("QB") == PositionUnit.OFFENSE
        assert position_unit("DST") == PositionUnit.DEFENSE
        assert position_unit("LS") == PositionUnit.SPECIAL_TEAMS
        assert position_unit("??") == PositionUnit.UNKNOWN

    # Options Tests
    # ─────────────────────────────────────────────────────────────

    def test_phonetic_matching_can_be_disabled(self):
        options = PlayerMatchingOptions(enable_phonetic_matching=False)
        score = score_candidate(
            external("Jon", "Smyth", "NYG", "QB"),
            candidate("John", "Smith", "NYG", "QB"),
            options,
        )
        assert score.name_score == 0.0
        assert score.score == pytest.approx(0.3)

    def test_name_variations_can_be_disabled(self):
        options = PlayerMatchingOptions(enable_name_variation_matching=False)
        score = score_candidate(
            external("Mike", "Pittman"),
            candidate("Michael", "Pittman"),
            options,
        )
        assert score.name_match_kind == NameMatchKind.TOKEN_OVERLAP

    def test_custom_weights(self):
        options = PlayerMatchingOptions(
            name_match_weight=0.5, team_match_weight=0.5, position_match_weight=0.0
        )
        score = score_candidate(
            external("Mike", "Pittman", "IND", "QB"),
            candidate("Michael", "Pittman", "IND", "WR"),
            options,
        )
        assert score.score == pytest.approx(0.925)

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            PlayerMatchingOptions(name_match_weight=0.5)

    def test_minimum_cannot_exceed_auto_link(self):
        with pytest.raises(ValueError):
            PlayerMatchingOptions(minimum_confidence_threshold=0.95)

    # Reasons Tests
    # ─────────────────────────────────────────────────────────────

    def test_reasons_describe_contributing_factors(self):
        score = score_candidate(
            external("Patrick", "Mahomes", "KC", "QB"),
            candidate("Patrick", "Mahomes", "KC", "QB"),
        )
        assert len(score.reasons) == 3
        assert score.reasons[0].startswith("Exact name match")
        assert "Team match: KC" in score.reasons
        assert "Position match: QB" in score.reasons

    def test_reasons_hide_factors_below_floor(self):
        options = PlayerMatchingOptions(reason_visibility_floor=0.06)
        score = score_candidate(
            external("Travis", "Kelce", None, "TE"),
            candidate("Josh", "Allen", None, "QB"),
            options,
        )
        assert score.reasons == ()

    # Edge Cases
    # ─────────────────────────────────────────────────────────────

    def test_empty_names_score_zero(self):
        score = score_candidate(
            ExternalPlayer(external_id="e1"),
            candidate("Patrick", "Mahomes"),
        )
        assert score.score == 0.0
        assert score.name_match_kind == NameMatchKind.NONE

    def test_score_is_deterministic(self):
        ext = external("Mike", "Pittman", "IND", "WR")
        cand = candidate("Michael", "Pittman", "IND", "WR")
        assert score_candidate(ext, cand) == score_candidate(ext, cand)
