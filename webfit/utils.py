from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); calorie
    figures are expected to round 2.5 up to 3.
    """
    return int(math.floor(float(value) + 0.5))


def round_tenth(value: float) -> float:
    """Round to one decimal place, ties upward, on the exact binary value.

    Matches how the browser client formats BMI: ``0.25`` becomes ``0.3``
    (``round`` gives ``0.2``) while ``0.15``, stored just below the tie,
    becomes ``0.1``.
    """
    return float(Decimal(float(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def newest_first(records: List[dict], field: str) -> List[dict]:
    """Sort records by an ISO timestamp field, most recent first.

    Records with equal timestamps keep the most recently appended on top.
    """
    return sorted(reversed(records), key=lambda r: str(r.get(field) or ""), reverse=True)


GOAL_TYPES: List[str] = ["target_weight", "workout_frequency", "calorie_burn", "exercise_target"]

GOAL_UNITS: Dict[str, str] = {
    "target_weight": "kg",
    "workout_frequency": "workouts/week",
    "calorie_burn": "calories",
    "exercise_target": "reps",
}

GOAL_LABELS: Dict[str, str] = {
    "target_weight": "Target Weight",
    "workout_frequency": "Weekly Workouts",
    "calorie_burn": "Monthly Calories Burned",
    "exercise_target": "Exercise Target",
}

# Used when a workout names an exercise missing from the library.
DEFAULT_CALORIES_PER_MINUTE = 5.0

PROFILE_ID = "me"

TABLES: Dict[str, List[str]] = {
    "Workouts": ["id", "exercise_name", "duration_minutes", "calories_burned", "timestamp"],
    "Goals": ["id", "goal_type", "target_value", "current_value", "target_date", "is_completed", "created_at"],
    "Profile": ["id", "name", "age", "height_cm", "initial_weight_kg", "gender", "updated_at"],
    "Exercises": [
        "name", "description", "category", "difficulty", "calories_burned_per_minute", "muscle_groups", "instructions"
    ],
    "Measurements": [
        "id", "weight_kg", "body_fat_percentage", "chest_cm", "waist_cm", "hips_cm", "measurement_date"
    ],
}

# Primary key column per table; everything but the exercise library is keyed by id.
TABLE_KEYS: Dict[str, str] = {tab: ("name" if tab == "Exercises" else "id") for tab in TABLES}

DEFAULT_EXERCISES: List[Dict[str, object]] = [
    {
        "name": "Running",
        "description": "Running at a moderate pace. Great for cardiovascular health and endurance building.",
        "category": "Cardio",
        "difficulty": "Intermediate",
        "calories_burned_per_minute": 10.0,
        "muscle_groups": "Legs, Core, Cardiovascular",
        "instructions": "Maintain steady pace, proper breathing technique. Start with 5-10 minute warm-up.",
    },
    {
        "name": "Push-ups",
        "description": "Classic bodyweight exercise for upper body strength.",
        "category": "Strength",
        "difficulty": "Beginner",
        "calories_burned_per_minute": 4.0,
        "muscle_groups": "Chest, Shoulders, Triceps, Core",
        "instructions": "Keep body straight, lower chest to floor. Modify with knee push-ups if needed.",
    },
    {
        "name": "Squats",
        "description": "Fundamental lower body exercise for leg strength.",
        "category": "Strength",
        "difficulty": "Beginner",
        "calories_burned_per_minute": 5.0,
        "muscle_groups": "Legs, Glutes, Core",
        "instructions": "Keep knees behind toes, back straight. Go as low as comfortable.",
    },
    {
        "name": "Yoga",
        "description": "Mind-body practice combining physical postures and breathing.",
        "category": "Flexibility",
        "difficulty": "Beginner",
        "calories_burned_per_minute": 3.0,
        "muscle_groups": "Full Body, Core",
        "instructions": "Focus on breathing and proper alignment. Move slowly between poses.",
    },
    {
        "name": "Cycling",
        "description": "Low-impact cardiovascular exercise.",
        "category": "Cardio",
        "difficulty": "Beginner",
        "calories_burned_per_minute": 8.0,
        "muscle_groups": "Legs, Glutes, Cardiovascular",
        "instructions": "Keep back straight, pedal consistently. Adjust resistance as needed.",
    },
    {
        "name": "Swimming",
        "description": "Full-body, low-impact exercise.",
        "category": "Cardio",
        "difficulty": "Intermediate",
        "calories_burned_per_minute": 9.0,
        "muscle_groups": "Full Body, Cardiovascular",
        "instructions": "Focus on breathing and stroke technique. Start with shorter distances.",
    },
    {
        "name": "Deadlift",
        "description": "Compound exercise for posterior chain development.",
        "category": "Strength",
        "difficulty": "Advanced",
        "calories_burned_per_minute": 6.0,
        "muscle_groups": "Back, Legs, Glutes, Core",
        "instructions": "Keep back straight, lift with legs. Start with light weights to master form.",
    },
    {
        "name": "Plank",
        "description": "Core stability and endurance exercise.",
        "category": "Strength",
        "difficulty": "Beginner",
        "calories_burned_per_minute": 3.0,
        "muscle_groups": "Core, Shoulders, Back",
        "instructions": "Keep body straight, engage core. Hold for 20-60 seconds.",
    },
]
