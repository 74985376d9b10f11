"""Tests for webfit.ledger module."""
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta

import pytest

from webfit import ledger
from webfit.errors import NotFoundError, StorageError


class TestResolveCalories:
    """Test cases for calorie resolution."""

    def test_library_rate(self, repo):
        assert ledger.resolve_calories(repo, "Running", 30) == 300

    def test_unknown_exercise_uses_default_rate(self, repo):
        assert ledger.resolve_calories(repo, "UnknownExercise", 10) == 50

    def test_explicit_calories_win(self, repo):
        assert ledger.resolve_calories(repo, "Running", 30, 123) == 123

    def test_zero_calories_counts_as_missing(self, repo):
        assert ledger.resolve_calories(repo, "Running", 30, 0) == 300

    def test_name_match_is_exact(self, repo):
        # "running" is not "Running", so the default rate applies
        assert ledger.resolve_calories(repo, "running", 10) == 50

    def test_rounds_half_up(self, repo):
        # 2.5 cal/min for one minute rounds up, not to even
        repo.append("Exercises", {
            "name": "Stretching", "category": "Flexibility", "difficulty": "Beginner",
            "calories_burned_per_minute": 2.5,
        })
        assert ledger.resolve_calories(repo, "Stretching", 1) == 3


class TestLogWorkout:
    """Test cases for log_workout function."""

    def test_records_entry(self, repo):
        result = ledger.log_workout(repo, "Running", 30)

        assert result["calories_burned"] == 300
        entry = repo.get("Workouts", result["id"])
        assert entry["exercise_name"] == "Running"
        assert entry["duration_minutes"] == 30
        assert entry["calories_burned"] == 300
        assert entry["timestamp"]

    def test_unknown_exercise(self, repo):
        assert ledger.log_workout(repo, "UnknownExercise", 10)["calories_burned"] == 50

    def test_goal_completes_on_second_workout(self, repo, today):
        goal_id = ledger.create_goal(repo, "calorie_burn", 500)
        now = datetime.combine(today, datetime.min.time())

        ledger.log_workout(repo, "Running", 30, now=now)
        goal = repo.get("Goals", goal_id)
        assert goal["current_value"] == 300
        assert goal["is_completed"] is False

        ledger.log_workout(repo, "Other", 10, 250, now=now)
        goal = repo.get("Goals", goal_id)
        assert goal["current_value"] == 550
        assert goal["is_completed"] is True

    def test_parallel_calls_do_not_lose_goal_progress(self, repo):
        goal_id = ledger.create_goal(repo, "calorie_burn", 1_000_000)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: ledger.log_workout(repo, "Other", 1, 1), range(50)))

        assert len(repo.read_records("Workouts")) == 50
        assert repo.get("Goals", goal_id)["current_value"] == 50

    def test_goal_update_failure_keeps_workout(self, repo, monkeypatch):
        def boom(*args, **kwargs):
            raise StorageError("disk full")

        monkeypatch.setattr(ledger, "auto_update_goals", boom)
        result = ledger.log_workout(repo, "Running", 10)

        assert repo.get("Workouts", result["id"]) is not None


class TestAutoUpdateGoals:
    """Test cases for auto_update_goals function."""

    def test_only_active_calorie_goals(self, repo, today):
        active = ledger.create_goal(repo, "calorie_burn", 1000)
        future = ledger.create_goal(repo, "calorie_burn", 1000, today + timedelta(days=5))
        deadline_today = ledger.create_goal(repo, "calorie_burn", 1000, today)
        expired = ledger.create_goal(repo, "calorie_burn", 1000, today - timedelta(days=1))
        other_type = ledger.create_goal(repo, "workout_frequency", 3)
        done = ledger.create_goal(repo, "calorie_burn", 100)
        repo.update("Goals", done, {"current_value": 100, "is_completed": True})

        updated = ledger.auto_update_goals(repo, 200, today=today)

        assert set(updated) == {active, future, deadline_today}
        assert repo.get("Goals", expired)["current_value"] == 0
        assert repo.get("Goals", other_type)["current_value"] == 0
        assert repo.get("Goals", done)["current_value"] == 100

    def test_completes_at_exact_target(self, repo, today):
        goal_id = ledger.create_goal(repo, "calorie_burn", 200)
        ledger.auto_update_goals(repo, 200, today=today)
        assert repo.get("Goals", goal_id)["is_completed"] is True

    def test_completed_goal_is_not_incremented_again(self, repo, today):
        goal_id = ledger.create_goal(repo, "calorie_burn", 100)
        ledger.auto_update_goals(repo, 150, today=today)
        ledger.auto_update_goals(repo, 150, today=today)
        assert repo.get("Goals", goal_id)["current_value"] == 150


class TestDeleteWorkout:
    def test_delete_does_not_reverse_goal_progress(self, repo):
        goal_id = ledger.create_goal(repo, "calorie_burn", 1000)
        result = ledger.log_workout(repo, "Running", 30)

        ledger.delete_workout(repo, result["id"])

        assert repo.get("Workouts", result["id"]) is None
        assert repo.get("Goals", goal_id)["current_value"] == 300

    def test_delete_unknown_raises(self, repo):
        with pytest.raises(NotFoundError):
            ledger.delete_workout(repo, "nope")


class TestGoals:
    def test_create_defaults(self, repo):
        goal_id = ledger.create_goal(repo, "target_weight", 68.5, date(2026, 1, 1))
        goal = repo.get("Goals", goal_id)

        assert goal["current_value"] == 0
        assert goal["is_completed"] is False
        assert goal["target_date"] == "2026-01-01"

    def test_update_only_given_fields(self, repo):
        goal_id = ledger.create_goal(repo, "workout_frequency", 4)
        ledger.update_goal(repo, goal_id, current_value=2)
        ledger.update_goal(repo, goal_id, is_completed=True)

        goal = repo.get("Goals", goal_id)
        assert goal["current_value"] == 2
        assert goal["is_completed"] is True

    def test_update_unknown_raises(self, repo):
        with pytest.raises(NotFoundError):
            ledger.update_goal(repo, "nope", current_value=1)

    def test_delete_unknown_raises(self, repo):
        with pytest.raises(NotFoundError):
            ledger.delete_goal(repo, "nope")

    def test_list_newest_first(self, repo):
        first = ledger.create_goal(repo, "calorie_burn", 100)
        second = ledger.create_goal(repo, "calorie_burn", 200)
        assert [g["id"] for g in ledger.list_goals(repo)] == [second, first]


class TestListWorkouts:
    def test_newest_first(self, repo, today):
        base = datetime.combine(today, datetime.min.time())
        old = ledger.log_workout(repo, "Yoga", 20, now=base - timedelta(days=2))
        new = ledger.log_workout(repo, "Cycling", 20, now=base)

        ids = [w["id"] for w in ledger.list_workouts(repo)]
        assert ids == [new["id"], old["id"]]
