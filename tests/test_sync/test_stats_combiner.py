"""Unit tests for stats combination and categorization.

Test Strategy:
1. Test grouping preserves first-appearance order
2. Test combine() merges metadata, categories and fields
3. Test duplicate fields resolve to the last slice
4. Test invalid input (empty, mixed keys) raises ValueError
5. Test stat key categorization
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from conftest import raw_stat

from roster_sync.models.sync import StatCategory
from roster_sync.services.sync.stats.categories import categorize_stat, normalize_stat_name
from roster_sync.services.sync.stats.combiner import combine, combine_all, group_raw_stats


class TestStatsCombiner:
    """Test suite for combining per-category stat slices."""

    # Grouping Tests
    # ─────────────────────────────────────────────────────────────

    def test_group_preserves_first_appearance_order(self):
        records = [
            raw_stat("p2", "g1", StatCategory.RUSHING, {'rushingYards': 40}),
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301}),
            raw_stat("p2", "g1", StatCategory.RECEIVING, {'receivingYards': 12}),
        ]

        groups = group_raw_stats(records)

        assert list(groups) == [("p2", "g1"), ("p1", "g1")]
        assert [r.category for r in groups[("p2", "g1")]] == [
            StatCategory.RUSHING, StatCategory.RECEIVING
        ]

    def test_same_player_different_games_are_separate(self):
        records = [
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301}),
            raw_stat("p1", "g2", StatCategory.PASSING, {'passingYards': 250}),
        ]
        assert len(group_raw_stats(records)) == 2

    # Combine Tests
    # ─────────────────────────────────────────────────────────────

    def test_combine_unions_categories_and_fields(self):
        records = [
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301, 'passingTouchdowns': 3}),
            raw_stat("p1", "g1", StatCategory.RUSHING, {'rushingYards': 25}),
        ]

        combined = combine(records)

        assert combined.key == ("p1", "g1")
        assert combined.categories == (StatCategory.PASSING, StatCategory.RUSHING)
        assert combined.stats == {'passingYards': 301, 'passingTouchdowns': 3, 'rushingYards': 25}
        assert combined.player_name == "Patrick Mahomes"
        assert combined.season == 2025
        assert combined.week == 5
        assert combined.roster_player_id is None

    def test_last_slice_wins_on_duplicate_field(self):
        """A corrected slice later in input order overrides earlier values."""
        records = [
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 280}),
            raw_stat("p1", "g1", StatCategory.RUSHING, {'rushingYards': 25}),
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301}),
        ]

        combined = combine(records)

        assert combined.stats['passingYards'] == 301
        assert combined.categories == (StatCategory.PASSING, StatCategory.RUSHING)

    def test_missing_metadata_filled_from_later_slices(self):
        records = [
            raw_stat("p1", "g1", StatCategory.RUSHING, {'rushingYards': 25},
                     team_abbreviation=None, position=None, week=None),
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301},
                     team_abbreviation="KC", position="QB", week=6),
        ]

        combined = combine(records)

        assert combined.team_abbreviation == "KC"
        assert combined.position == "QB"
        assert combined.week == 6

    def test_first_slice_metadata_is_kept(self):
        records = [
            raw_stat("p1", "g1", StatCategory.PASSING, {}, team_abbreviation="KC"),
            raw_stat("p1", "g1", StatCategory.RUSHING, {}, team_abbreviation="DAL"),
        ]
        assert combine(records).team_abbreviation == "KC"

    def test_combine_all(self):
        records = [
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301}),
            raw_stat("p2", "g1", StatCategory.RECEIVING, {'receivingYards': 99},
                     player_name="Travis Kelce", position="TE"),
            raw_stat("p1", "g1", StatCategory.RUSHING, {'rushingYards': 25}),
        ]

        combined = combine_all(records)

        assert [c.player_id for c in combined] == ["p1", "p2"]
        assert combined[0].stats == {'passingYards': 301, 'rushingYards': 25}

    def test_combine_all_empty(self):
        assert combine_all([]) == []

    # Invalid Input Tests
    # ─────────────────────────────────────────────────────────────

    def test_empty_input_raises(self):
        with pytest.raises(ValueError):
            combine([])

    def test_mixed_keys_raise(self):
        records = [
            raw_stat("p1", "g1", StatCategory.PASSING, {'passingYards': 301}),
            raw_stat("p2", "g1", StatCategory.RUSHING, {'rushingYards': 25}),
        ]
        with pytest.raises(ValueError):
            combine(records)


class TestStatCategorization:
    """Test suite for classifying provider stat keys."""

    def test_direct_lookup(self):
        assert categorize_stat('passingYards') == StatCategory.PASSING
        assert categorize_stat('totalTackles') == StatCategory.DEFENSIVE
        assert categorize_stat('C/ATT') == StatCategory.PASSING

    def test_case_insensitive_lookup(self):
        assert categorize_stat('RECEIVINGYARDS') == StatCategory.RECEIVING

    def test_keyword_fallback(self):
        assert categorize_stat('yardsPerPassAttempt') == StatCategory.PASSING
        assert categorize_stat('longRushing') == StatCategory.RUSHING
        assert categorize_stat('puntReturnYards') == StatCategory.PUNTING

    def test_unknown_is_general(self):
        assert categorize_stat('snapCount') == StatCategory.GENERAL
        assert categorize_stat('') == StatCategory.GENERAL

    def test_normalize_stat_name(self):
        assert normalize_stat_name('Comp-Att') == 'comp_att'
        assert normalize_stat_name('C/ATT') == 'c_att'
        assert normalize_stat_name(' Field Goals ') == 'field_goals'
