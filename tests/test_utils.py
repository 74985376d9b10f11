"""Tests for webfit.utils module."""
from webfit.utils import (
    DEFAULT_EXERCISES,
    GOAL_LABELS,
    GOAL_TYPES,
    GOAL_UNITS,
    TABLE_KEYS,
    TABLES,
    newest_first,
    round_half_up,
    round_tenth,
)


class TestRoundHalfUp:
    """Test cases for round_half_up function."""

    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(1320.5) == 1321

    def test_below_half_rounds_down(self):
        assert round_half_up(1320.25) == 1320

    def test_integers_unchanged(self):
        assert round_half_up(300) == 300


class TestRoundTenth:
    """Test cases for round_tenth function."""

    def test_exact_ties_round_up(self):
        assert round_tenth(0.25) == 0.3
        assert round_tenth(22.25) == 22.3

    def test_uses_stored_binary_value(self):
        # 0.15 is stored as 0.1499999...
        assert round_tenth(0.15) == 0.1

    def test_plain_values(self):
        assert round_tenth(22.857) == 22.9
        assert round_tenth(16.33) == 16.3


class TestNewestFirst:
    """Test cases for newest_first function."""

    def test_sorts_descending(self):
        rows = [{"id": "a", "ts": "2025-11-01T08:00:00"}, {"id": "b", "ts": "2025-11-03T08:00:00"}]
        assert [r["id"] for r in newest_first(rows, "ts")] == ["b", "a"]

    def test_ties_keep_latest_appended_first(self):
        rows = [{"id": "a", "ts": "2025-11-01"}, {"id": "b", "ts": "2025-11-01"}]
        assert [r["id"] for r in newest_first(rows, "ts")] == ["b", "a"]

    def test_missing_values_last(self):
        rows = [{"id": "a", "ts": None}, {"id": "b", "ts": "2025-11-01"}]
        assert [r["id"] for r in newest_first(rows, "ts")] == ["b", "a"]


class TestConstants:
    def test_goal_tables_cover_every_type(self):
        assert set(GOAL_UNITS) == set(GOAL_TYPES)
        assert set(GOAL_LABELS) == set(GOAL_TYPES)

    def test_default_exercises(self):
        names = [ex["name"] for ex in DEFAULT_EXERCISES]

        assert len(names) == 8
        assert len(set(names)) == len(names)
        assert all(set(ex) == set(TABLES["Exercises"]) for ex in DEFAULT_EXERCISES)
        assert all(ex["calories_burned_per_minute"] > 0 for ex in DEFAULT_EXERCISES)

    def test_table_keys(self):
        assert TABLE_KEYS["Exercises"] == "name"
        assert TABLE_KEYS["Workouts"] == "id"
        assert all(TABLE_KEYS[tab] in cols for tab, cols in TABLES.items())
