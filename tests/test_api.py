"""Tests for the HTTP surface in webfit.api."""
from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from webfit.api import create_app
from webfit.utils import DEFAULT_EXERCISES


class TestWorkoutsEndpoint:
    def test_create_and_list(self, client, sample_workout_data):
        resp = client.post("/api/workouts", json=sample_workout_data)

        assert resp.status_code == 200
        body = resp.json()
        assert body["calories_burned"] == 300
        assert body["message"] == "Workout logged successfully!"

        workouts = client.get("/api/workouts").json()["workouts"]
        assert [w["id"] for w in workouts] == [body["id"]]

    def test_explicit_calories(self, client):
        resp = client.post("/api/workouts", json={
            "exercise_name": "Yoga", "duration_minutes": 45, "calories_burned": 150,
        })
        assert resp.json()["calories_burned"] == 150

    def test_missing_duration_is_400(self, client):
        resp = client.post("/api/workouts", json={"exercise_name": "Running"})

        assert resp.status_code == 400
        assert "duration_minutes" in resp.json()["error"]

    def test_blank_name_is_400(self, client):
        resp = client.post("/api/workouts", json={"exercise_name": "  ", "duration_minutes": 10})
        assert resp.status_code == 400

    def test_delete(self, client, sample_workout_data):
        workout_id = client.post("/api/workouts", json=sample_workout_data).json()["id"]

        assert client.delete(f"/api/workouts/{workout_id}").json() == {}
        assert client.get("/api/workouts").json()["workouts"] == []

    def test_delete_unknown_is_404(self, client):
        resp = client.delete("/api/workouts/nope")

        assert resp.status_code == 404
        assert "not found" in resp.json()["error"]


class TestHealthMetricsEndpoint:
    def test_metrics(self, client):
        resp = client.post("/api/health-metrics", json={
            "weight_kg": 60, "height_cm": 165, "age": 30, "gender": "Female",
        })

        assert resp.status_code == 200
        body = resp.json()
        assert body["bmr"] == 1320
        assert body["category"] == "Normal weight"
        assert body["metrics"]["gender"] == "female"

    def test_missing_weight(self, client):
        resp = client.post("/api/health-metrics", json={"height_cm": 165, "age": 30, "gender": "male"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Weight & height required"}


class TestGoalsEndpoint:
    def test_goal_lifecycle(self, client, sample_goal_data):
        resp = client.post("/api/goals", json=sample_goal_data)
        assert resp.status_code == 200
        goal_id = resp.json()["id"]

        client.post("/api/workouts", json={"exercise_name": "Running", "duration_minutes": 30})
        goal = client.get("/api/goals").json()["goals"][0]
        assert goal["current_value"] == 300
        assert goal["is_completed"] is False

        assert client.put(f"/api/goals/{goal_id}", json={"is_completed": True}).json() == {}
        goal = client.get("/api/goals").json()["goals"][0]
        assert goal["is_completed"] is True
        assert goal["current_value"] == 300

        assert client.delete(f"/api/goals/{goal_id}").json() == {}
        assert client.get("/api/goals").json()["goals"] == []

    def test_invalid_goal_type(self, client):
        resp = client.post("/api/goals", json={"goal_type": "bench_press", "target_value": 100})
        assert resp.status_code == 400

    def test_blank_target_date(self, client):
        resp = client.post("/api/goals", json={
            "goal_type": "target_weight", "target_value": 70, "target_date": "",
        })
        assert resp.status_code == 200

    def test_update_unknown_is_404(self, client):
        assert client.put("/api/goals/nope", json={"current_value": 1}).status_code == 404


class TestProfileEndpoint:
    def test_empty_profile(self, client):
        assert client.get("/api/profile").json() == {"profile": None}

    def test_save_overwrites(self, client, sample_profile_data):
        client.post("/api/profile", json=sample_profile_data)
        client.post("/api/profile", json={**sample_profile_data, "weight_kg": 68.0})

        profile = client.get("/api/profile").json()["profile"]
        assert profile["name"] == "Alex"
        assert profile["initial_weight_kg"] == 68.0
        assert "id" not in profile

    def test_invalid_age(self, client, sample_profile_data):
        resp = client.post("/api/profile", json={**sample_profile_data, "age": 0})
        assert resp.status_code == 400


class TestExercisesEndpoint:
    def test_list_is_stable(self, client):
        first = client.get("/api/exercises").json()
        second = client.get("/api/exercises").json()

        assert first == second
        assert len(first["exercises"]) == len(DEFAULT_EXERCISES)

    def test_filters(self, client):
        cardio = client.get("/api/exercises", params={"category": "Cardio"}).json()["exercises"]
        assert cardio
        assert all(e["category"] == "Cardio" for e in cardio)

        beginners = client.get(
            "/api/exercises", params={"category": "all", "difficulty": "Beginner"}
        ).json()["exercises"]
        assert all(e["difficulty"] == "Beginner" for e in beginners)


class TestMeasurementsEndpoint:
    def test_add_and_list(self, client):
        resp = client.post("/api/body-measurements", json={"weight_kg": 71.2, "waist_cm": 80})
        assert resp.json()["message"] == "Measurement saved"

        rows = client.get("/api/body-measurements").json()["measurements"]
        assert rows[0]["weight_kg"] == 71.2
        assert rows[0]["chest_cm"] is None

    def test_empty_measurement_is_400(self, client):
        assert client.post("/api/body-measurements", json={}).status_code == 400


class TestStatsEndpoints:
    def test_stats(self, client, sample_workout_data, sample_goal_data):
        client.post("/api/goals", json=sample_goal_data)
        client.post("/api/workouts", json=sample_workout_data)

        stats = client.get("/api/stats").json()["stats"]
        assert stats["total_workouts"] == 1
        assert stats["total_calories"] == 300
        assert stats["active_goals"] == 1
        assert stats["current_streak"] == 1

    def test_progress_shape(self, client):
        body = client.get("/api/progress").json()

        assert set(body) == {"weekly_activity", "calorie_trend", "exercise_distribution", "weight_progress"}
        assert len(body["weekly_activity"]["values"]) == 7
        assert len(body["calorie_trend"]["values"]) == 30


class TestApp:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"ok": True}

    def test_unknown_path_is_404(self, client):
        resp = client.get("/api/nope")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_owns_configured_store(self, mock_env_sqlite):
        with TestClient(create_app()) as c:
            c.post("/api/workouts", json={"exercise_name": "Plank", "duration_minutes": 5})
            assert c.get("/api/stats").json()["stats"]["total_calories"] == 15


class TestConcurrentRequests:
    """Requests handled on the server's threadpool run one at a time."""

    def test_parallel_workouts_all_reach_the_goal(self, client):
        goal_id = client.post("/api/goals", json={
            "goal_type": "calorie_burn", "target_value": 1_000_000,
        }).json()["id"]

        def post(_):
            return client.post("/api/workouts", json={
                "exercise_name": "Other", "duration_minutes": 1, "calories_burned": 1,
            }).status_code

        with ThreadPoolExecutor(max_workers=16) as pool:
            statuses = list(pool.map(post, range(200)))

        assert statuses == [200] * 200
        assert len(client.get("/api/workouts").json()["workouts"]) == 200
        goal = client.get("/api/goals").json()["goals"][0]
        assert goal["id"] == goal_id
        assert goal["current_value"] == 200
