"""The request surface shared by the HTTP server and the in-process demo.

``FitnessApi`` holds one handler per endpoint. The FastAPI app in
``webfit.api`` calls these handlers directly; ``FitnessApi.dispatch`` routes a
``(method, path, body)`` triple to them so the demo transport can serve the
exact same surface without a network.
"""
from __future__ import annotations

import inspect
import re
from datetime import datetime
from functools import wraps
from typing import Callable, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from . import ledger, stats
from .errors import WebFitError
from .health import calculate_health_metrics
from .logger import logger
from .models import (
    GoalCreate,
    GoalUpdate,
    HealthMetricsRequest,
    MeasurementCreate,
    ProfileIn,
    WorkoutCreate,
    parse,
)
from .repos import Repo
from .utils import PROFILE_ID, newest_first

Handler = Callable[..., dict]


def serialized(handler: Handler) -> Handler:
    """Run a handler while holding the store lock.

    A handler is one operation: logging a workout together with its goal
    updates completes before any other request touches the store.
    """

    @wraps(handler)
    def wrapper(self: "FitnessApi", *args, **kwargs) -> dict:
        with self.repo.lock:
            return handler(self, *args, **kwargs)

    return wrapper


class FitnessApi:
    def __init__(self, repo: Repo):
        self.repo = repo
        self._routes: List[Tuple[str, re.Pattern, Handler]] = [
            ("GET", re.compile(r"^/health$"), self.health),
            ("GET", re.compile(r"^/workouts$"), self.list_workouts),
            ("POST", re.compile(r"^/workouts$"), self.create_workout),
            ("DELETE", re.compile(r"^/workouts/(?P<workout_id>[^/]+)$"), self.delete_workout),
            ("POST", re.compile(r"^/health-metrics$"), self.health_metrics),
            ("GET", re.compile(r"^/goals$"), self.list_goals),
            ("POST", re.compile(r"^/goals$"), self.create_goal),
            ("PUT", re.compile(r"^/goals/(?P<goal_id>[^/]+)$"), self.update_goal),
            ("DELETE", re.compile(r"^/goals/(?P<goal_id>[^/]+)$"), self.delete_goal),
            ("GET", re.compile(r"^/profile$"), self.get_profile),
            ("POST", re.compile(r"^/profile$"), self.save_profile),
            ("GET", re.compile(r"^/exercises$"), self.list_exercises),
            ("GET", re.compile(r"^/body-measurements$"), self.list_measurements),
            ("POST", re.compile(r"^/body-measurements$"), self.add_measurement),
            ("GET", re.compile(r"^/stats$"), self.dashboard_stats),
            ("GET", re.compile(r"^/progress$"), self.progress),
        ]

    # --- dispatch ---

    def dispatch(self, method: str, path: str, body: Optional[dict] = None) -> Tuple[int, dict]:
        """Route a request and return ``(status, json_body)``.

        Domain errors become ``(error.status_code, {"error": message})``.
        Query strings are passed to GET handlers as keyword arguments.
        """
        method = method.upper()
        parts = urlsplit(path)
        route_path = parts.path.rstrip("/") or "/"
        if route_path.startswith("/api/"):
            route_path = route_path[len("/api"):]
        query = {k: v[-1] for k, v in parse_qs(parts.query).items()}

        for route_method, pattern, handler in self._routes:
            match = pattern.match(route_path)
            if not match or route_method != method:
                continue
            kwargs = dict(match.groupdict())
            if method in ("POST", "PUT"):
                kwargs["body"] = body or {}
            elif method == "GET":
                accepted = inspect.signature(handler).parameters
                kwargs.update({k: v for k, v in query.items() if k in accepted})
            try:
                return 200, handler(**kwargs)
            except WebFitError as e:
                logger.warning(f"{method} {route_path} failed: {e.message}")
                return e.status_code, {"error": e.message}

        logger.debug(f"No route for {method} {route_path}")
        return 404, {"error": "Not found"}

    # --- handlers ---

    def health(self) -> dict:
        return {"ok": True}

    @serialized
    def list_workouts(self) -> dict:
        return {"workouts": ledger.list_workouts(self.repo)}

    @serialized
    def create_workout(self, body: dict) -> dict:
        req = parse(WorkoutCreate, body)
        result = ledger.log_workout(self.repo, req.exercise_name, req.duration_minutes, req.calories_burned)
        return {"message": "Workout logged successfully!", **result}

    @serialized
    def delete_workout(self, workout_id: str) -> dict:
        ledger.delete_workout(self.repo, workout_id)
        return {}

    def health_metrics(self, body: dict) -> dict:
        req = parse(HealthMetricsRequest, body)
        return calculate_health_metrics(req.weight_kg, req.height_cm, req.age, req.gender).to_dict()

    @serialized
    def list_goals(self) -> dict:
        return {"goals": ledger.list_goals(self.repo)}

    @serialized
    def create_goal(self, body: dict) -> dict:
        req = parse(GoalCreate, body)
        goal_id = ledger.create_goal(self.repo, req.goal_type, req.target_value, req.target_date)
        return {"message": "Goal set", "id": goal_id}

    @serialized
    def update_goal(self, goal_id: str, body: dict) -> dict:
        req = parse(GoalUpdate, body)
        ledger.update_goal(self.repo, goal_id, req.current_value, req.is_completed)
        return {}

    @serialized
    def delete_goal(self, goal_id: str) -> dict:
        ledger.delete_goal(self.repo, goal_id)
        return {}

    @serialized
    def get_profile(self) -> dict:
        profile = self.repo.get("Profile", PROFILE_ID)
        if profile is not None:
            profile.pop("id", None)
        return {"profile": profile}

    @serialized
    def save_profile(self, body: dict) -> dict:
        req = parse(ProfileIn, body)
        self.repo.append("Profile", {
            "id": PROFILE_ID,
            "name": req.name,
            "age": req.age,
            "height_cm": req.height_cm,
            "initial_weight_kg": req.weight_kg,
            "gender": req.gender,
            "updated_at": datetime.now(),
        })
        return {"message": "Profile saved"}

    @serialized
    def list_exercises(self, category: str = "all", difficulty: str = "all") -> dict:
        exercises = self.repo.read_records("Exercises")
        if category and category != "all":
            exercises = [e for e in exercises if e.get("category") == category]
        if difficulty and difficulty != "all":
            exercises = [e for e in exercises if e.get("difficulty") == difficulty]
        return {"exercises": exercises}

    @serialized
    def list_measurements(self) -> dict:
        rows = self.repo.read_records("Measurements")
        return {"measurements": newest_first(rows, "measurement_date")}

    @serialized
    def add_measurement(self, body: dict) -> dict:
        req = parse(MeasurementCreate, body)
        row_id = self.repo.append("Measurements", {**req.model_dump(), "measurement_date": datetime.now()})
        return {"message": "Measurement saved", "id": row_id}

    @serialized
    def dashboard_stats(self) -> dict:
        return {"stats": stats.dashboard_stats(self.repo)}

    @serialized
    def progress(self) -> dict:
        return stats.progress_series(self.repo)

