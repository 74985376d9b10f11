"""Workout ledger and goal accounting.

Workouts are append-only (they can be deleted, never edited). Logging a
workout feeds its calories into every active ``calorie_burn`` goal. Deleting
a workout does not take those calories back out.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from .errors import NotFoundError, StorageError
from .logger import log_function_call, logger
from .repos import Repo
from .utils import DEFAULT_CALORIES_PER_MINUTE, newest_first, round_half_up


def resolve_calories(repo: Repo, exercise_name: str, duration_minutes: int,
                     calories_burned: Optional[int] = None) -> int:
    """Return the calories to record for a workout.

    An explicit, non-zero ``calories_burned`` wins. Otherwise the exercise
    library rate (exact name match) is applied, falling back to 5 cal/min for
    exercises the library does not know.
    """
    if calories_burned:
        return int(calories_burned)
    exercise = repo.get("Exercises", exercise_name)
    rate = DEFAULT_CALORIES_PER_MINUTE
    if exercise and exercise.get("calories_burned_per_minute"):
        rate = float(exercise["calories_burned_per_minute"])
    else:
        logger.debug(f"No library rate for {exercise_name!r}; using {rate} cal/min")
    return round_half_up(rate * duration_minutes)


@log_function_call
def log_workout(repo: Repo, exercise_name: str, duration_minutes: int,
                calories_burned: Optional[int] = None, *,
                now: Optional[datetime] = None) -> dict:
    calories = resolve_calories(repo, exercise_name, duration_minutes, calories_burned)
    ts = now or datetime.now()
    # The append and the goal increments form one operation.
    with repo.lock:
        workout_id = repo.append("Workouts", {
            "exercise_name": exercise_name,
            "duration_minutes": duration_minutes,
            "calories_burned": calories,
            "timestamp": ts,
        })
        try:
            auto_update_goals(repo, calories, today=ts.date())
        except StorageError:
            # The workout is already stored; goal progress is simply not advanced.
            logger.exception(f"Goal auto-update failed after logging workout {workout_id}")
    return {"id": workout_id, "calories_burned": calories}


def _is_active_calorie_goal(goal: dict, today: date) -> bool:
    if goal.get("goal_type") != "calorie_burn" or goal.get("is_completed"):
        return False
    target_date = goal.get("target_date")
    if not target_date:
        return True
    return date.fromisoformat(str(target_date)[:10]) >= today


@log_function_call
def auto_update_goals(repo: Repo, calories_delta: float, *,
                      today: Optional[date] = None) -> List[str]:
    """Add ``calories_delta`` to active calorie goals, then complete any that hit target.

    Returns the ids of the goals that were incremented.
    """
    today = today or date.today()
    active = [g for g in repo.read_records("Goals") if _is_active_calorie_goal(g, today)]

    for goal in active:
        goal["current_value"] = float(goal.get("current_value") or 0) + calories_delta
        repo.update("Goals", goal["id"], {"current_value": goal["current_value"]})

    for goal in active:
        if goal["current_value"] >= float(goal["target_value"]):
            repo.update("Goals", goal["id"], {"is_completed": True})
            logger.info(f"Goal {goal['id']} completed ({goal['current_value']}/{goal['target_value']})")

    return [g["id"] for g in active]


def list_workouts(repo: Repo) -> List[dict]:
    return newest_first(repo.read_records("Workouts"), "timestamp")


@log_function_call
def delete_workout(repo: Repo, workout_id: str) -> None:
    if not repo.delete("Workouts", workout_id):
        raise NotFoundError(f"Workout {workout_id} not found")


@log_function_call
def create_goal(repo: Repo, goal_type: str, target_value: float,
                target_date: Optional[date] = None) -> str:
    return repo.append("Goals", {
        "goal_type": goal_type,
        "target_value": target_value,
        "current_value": 0,
        "target_date": target_date,
        "is_completed": False,
        "created_at": datetime.now(),
    })


def list_goals(repo: Repo) -> List[dict]:
    return newest_first(repo.read_records("Goals"), "created_at")


@log_function_call
def update_goal(repo: Repo, goal_id: str, current_value: Optional[float] = None,
                is_completed: Optional[bool] = None) -> None:
    patch: dict = {}
    if current_value is not None:
        patch["current_value"] = current_value
    if is_completed is not None:
        patch["is_completed"] = is_completed
    if not repo.update("Goals", goal_id, patch):
        raise NotFoundError(f"Goal {goal_id} not found")


@log_function_call
def delete_goal(repo: Repo, goal_id: str) -> None:
    if not repo.delete("Goals", goal_id):
        raise NotFoundError(f"Goal {goal_id} not found")
