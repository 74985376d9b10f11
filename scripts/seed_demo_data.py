#!/usr/bin/env python3
"""
Seed the configured store with a week of sample workouts, a goal, a profile
and a couple of body measurements.

Usage:
    python scripts/seed_demo_data.py            # store from WEBFIT_STORE
    WEBFIT_STORE=local WEBFIT_LOCAL_STORAGE=demo.json python scripts/seed_demo_data.py
"""
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import dotenv

from webfit import ledger
from webfit.errors import WebFitError
from webfit.repos import repo_factory
from webfit.utils import PROFILE_ID

SAMPLE_WORKOUTS = [
    # (days ago, exercise, minutes)
    (6, "Running", 30),
    (5, "Weight Training", 45),
    (4, "Yoga", 60),
    (2, "Cycling", 40),
    (1, "Push-ups", 10),
    (0, "Swimming", 30),
]


def main():
    dotenv.load_dotenv()
    repo = repo_factory()
    try:
        goal_id = ledger.create_goal(repo, "calorie_burn", 2000, date.today() + timedelta(days=30))
        print(f"🎯 Created calorie goal {goal_id[:8]}")

        now = datetime.now()
        logged = 0
        for days_ago, exercise, minutes in SAMPLE_WORKOUTS:
            try:
                result = ledger.log_workout(repo, exercise, minutes, now=now - timedelta(days=days_ago))
                print(f"  ✓ {exercise} ({minutes} min, {result['calories_burned']} cal)")
                logged += 1
            except WebFitError as e:
                print(f"  ✗ Failed to log {exercise}: {e.message}")

        repo.append("Profile", {
            "id": PROFILE_ID,
            "name": "Demo User",
            "age": 30,
            "height_cm": 175,
            "initial_weight_kg": 72,
            "gender": "male",
            "updated_at": now,
        })
        for days_ago, weight in ((14, 72.4), (0, 71.6)):
            repo.append("Measurements", {
                "weight_kg": weight,
                "waist_cm": 82.0,
                "measurement_date": now - timedelta(days=days_ago),
            })
    finally:
        repo.close()

    print(f"\n🎉 Seed complete! {logged}/{len(SAMPLE_WORKOUTS)} workouts logged.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
