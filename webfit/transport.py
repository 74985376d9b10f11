"""Client-side access to the fitness surface.

A ``Transport`` turns ``(method, path, body)`` into ``(status, json_body)``.
``HttpTransport`` talks to a running API server; ``LocalTransport`` serves the
same surface in-process from local storage, with a small artificial delay so
the demo feels like a network round trip. ``FitnessClient`` sits on top of
either one and is what the UI uses.
"""
from __future__ import annotations

import time
from datetime import date
from typing import Any, Optional, Protocol, Tuple
from urllib.parse import urlencode

import requests

from .config import api_base_url, demo_latency_ms, mode
from .logger import logger
from .repos import Repo, repo_factory
from .routes import FitnessApi


class Transport(Protocol):
    def request(self, method: str, path: str, body: Optional[dict] = None) -> Tuple[int, dict]: ...
    def close(self) -> None: ...


class ApiError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class HttpTransport:
    def __init__(self, base_url: str | None = None, timeout: float = 30):
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def request(self, method: str, path: str, body: Optional[dict] = None) -> Tuple[int, dict]:
        url = f"{self.base_url}/api{path}"
        try:
            resp = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            return 503, {"error": "Could not reach the server. Check your connection."}
        try:
            data = resp.json()
        except ValueError:
            data = {"error": resp.text or resp.reason}
        return resp.status_code, data if isinstance(data, dict) else {"data": data}

    def close(self) -> None:
        self.session.close()


class LocalTransport:
    def __init__(self, repo: Repo | None = None, latency_ms: int | None = None):
        self.repo = repo or repo_factory("local")
        self.api = FitnessApi(self.repo)
        self.latency_ms = demo_latency_ms() if latency_ms is None else latency_ms

    def request(self, method: str, path: str, body: Optional[dict] = None) -> Tuple[int, dict]:
        if self.latency_ms:
            time.sleep(self.latency_ms / 1000)
        return self.api.dispatch(method, path, body)

    def close(self) -> None:
        self.repo.close()


def transport_factory() -> Transport:
    if mode() == "server":
        logger.info(f"Client using HTTP transport at {api_base_url()}")
        return HttpTransport()
    logger.info("Client using local demo transport")
    return LocalTransport()


class FitnessClient:
    """One method per endpoint; non-2xx replies raise ApiError."""

    def __init__(self, transport: Transport):
        self.transport = transport

    def _call(self, method: str, path: str, body: Optional[dict] = None) -> dict:
        status, data = self.transport.request(method, path, body)
        if not 200 <= status < 300:
            raise ApiError(status, str(data.get("error") or f"Request failed ({status})"))
        return data

    def close(self) -> None:
        self.transport.close()

    def list_workouts(self) -> list[dict]:
        return self._call("GET", "/workouts").get("workouts", [])

    def log_workout(self, exercise_name: str, duration_minutes: int,
                    calories_burned: Optional[int] = None) -> dict:
        body: dict[str, Any] = {"exercise_name": exercise_name, "duration_minutes": duration_minutes}
        if calories_burned is not None:
            body["calories_burned"] = calories_burned
        return self._call("POST", "/workouts", body)

    def delete_workout(self, workout_id: str) -> None:
        self._call("DELETE", f"/workouts/{workout_id}")

    def health_metrics(self, weight_kg: float, height_cm: float, age: int, gender: str) -> dict:
        return self._call("POST", "/health-metrics", {
            "weight_kg": weight_kg, "height_cm": height_cm, "age": age, "gender": gender,
        })

    def list_goals(self) -> list[dict]:
        return self._call("GET", "/goals").get("goals", [])

    def create_goal(self, goal_type: str, target_value: float, target_date: date | str | None = None) -> str:
        if isinstance(target_date, date):
            target_date = target_date.isoformat()
        data = self._call("POST", "/goals", {
            "goal_type": goal_type, "target_value": target_value, "target_date": target_date or None,
        })
        return data["id"]

    def update_goal(self, goal_id: str, current_value: Optional[float] = None,
                    is_completed: Optional[bool] = None) -> None:
        body: dict[str, Any] = {}
        if current_value is not None:
            body["current_value"] = current_value
        if is_completed is not None:
            body["is_completed"] = is_completed
        self._call("PUT", f"/goals/{goal_id}", body)

    def delete_goal(self, goal_id: str) -> None:
        self._call("DELETE", f"/goals/{goal_id}")

    def get_profile(self) -> dict | None:
        return self._call("GET", "/profile").get("profile")

    def save_profile(self, name: str, age: int, height_cm: float, weight_kg: float, gender: str) -> None:
        self._call("POST", "/profile", {
            "name": name, "age": age, "height_cm": height_cm, "weight_kg": weight_kg, "gender": gender,
        })

    def list_exercises(self, category: str = "all", difficulty: str = "all") -> list[dict]:
        query = urlencode({"category": category, "difficulty": difficulty})
        return self._call("GET", f"/exercises?{query}").get("exercises", [])

    def list_measurements(self) -> list[dict]:
        return self._call("GET", "/body-measurements").get("measurements", [])

    def add_measurement(self, **values: Optional[float]) -> str:
        body = {k: v for k, v in values.items() if v is not None}
        return self._call("POST", "/body-measurements", body)["id"]

    def dashboard_stats(self) -> dict:
        return self._call("GET", "/stats").get("stats", {})

    def progress(self) -> dict:
        return self._call("GET", "/progress")
