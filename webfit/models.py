"""Pydantic models for request bodies and stored records.

Request models (``*Create``, ``*Update``, ``ProfileIn``) validate what callers
send before it reaches the ledger; record models validate what repositories
write. Both use the pydantic v2 API.
"""
from __future__ import annotations

import datetime
from typing import Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

GoalType = Literal["target_weight", "workout_frequency", "calorie_burn", "exercise_target"]

M = TypeVar("M", bound=BaseModel)


def parse(model: Type[M], payload: dict | None) -> M:
    """Validate ``payload`` against ``model``, raising our ValidationError.

    The message names the first offending field, e.g.
    ``"duration_minutes: Input should be greater than 0"``.
    """
    try:
        return model.model_validate(payload or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "__root__")
        msg = first.get("msg", "Invalid value")
        raise ValidationError(f"{loc}: {msg}" if loc else msg) from e


# --- Request bodies ---

class WorkoutCreate(BaseModel):
    """Body of ``POST /workouts``."""

    exercise_name: str = Field(min_length=1)
    duration_minutes: int = Field(gt=0, le=1440, description="Minutes, at most one day")
    calories_burned: Optional[int] = Field(None, ge=0)

    @field_validator("exercise_name")
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Exercise name is required")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"exercise_name": "Running", "duration_minutes": 30},
                {"exercise_name": "Yoga", "duration_minutes": 45, "calories_burned": 150},
            ]
        }
    )


class GoalCreate(BaseModel):
    """Body of ``POST /goals``."""

    goal_type: GoalType
    target_value: float = Field(gt=0)
    target_date: Optional[datetime.date] = None

    @field_validator("target_date", mode="before")
    def blank_date_is_none(cls, v):
        return None if v == "" else v


class GoalUpdate(BaseModel):
    """Body of ``PUT /goals/{id}``; both fields are optional."""

    current_value: Optional[float] = Field(None, ge=0)
    is_completed: Optional[bool] = None


class ProfileIn(BaseModel):
    """Body of ``POST /profile``. ``weight_kg`` is stored as ``initial_weight_kg``."""

    name: str = ""
    age: int = Field(gt=0, lt=150)
    height_cm: float = Field(gt=0, lt=300)
    weight_kg: float = Field(gt=0, lt=500)
    gender: str = "other"

    @field_validator("gender")
    def lower_gender(cls, v: str) -> str:
        return v.strip().lower()


class MeasurementCreate(BaseModel):
    """Body of ``POST /body-measurements``."""

    weight_kg: Optional[float] = Field(None, gt=0, lt=500)
    body_fat_percentage: Optional[float] = Field(None, ge=0, le=100)
    chest_cm: Optional[float] = Field(None, gt=0, lt=200)
    waist_cm: Optional[float] = Field(None, gt=0, lt=200)
    hips_cm: Optional[float] = Field(None, gt=0, lt=200)

    @model_validator(mode="after")
    def at_least_one_value(self) -> "MeasurementCreate":
        if all(v is None for v in self.model_dump().values()):
            raise ValueError("At least one measurement is required")
        return self


class HealthMetricsRequest(BaseModel):
    """Body of ``POST /health-metrics``.

    Weight and height are checked by the calculator itself so that a missing
    value produces the same message whichever way the calculator is called.
    """

    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    age: int = Field(gt=0, lt=150)
    gender: str = "other"

    @field_validator("gender")
    def lower_gender(cls, v: str) -> str:
        return v.strip().lower()


# --- Stored records ---

class WorkoutEntry(BaseModel):
    id: str
    exercise_name: str
    duration_minutes: int = Field(gt=0)
    calories_burned: int = Field(ge=0)
    timestamp: datetime.datetime


class ExerciseDefinition(BaseModel):
    name: str
    description: Optional[str] = None
    category: str
    difficulty: str
    calories_burned_per_minute: float = Field(gt=0)
    muscle_groups: Optional[str] = None
    instructions: Optional[str] = None


class Goal(BaseModel):
    id: str
    goal_type: GoalType
    target_value: float = Field(gt=0)
    current_value: float = 0
    target_date: Optional[datetime.date] = None
    is_completed: bool = False
    created_at: datetime.datetime


class Profile(BaseModel):
    id: str
    name: str = ""
    age: int = Field(gt=0)
    height_cm: float = Field(gt=0)
    initial_weight_kg: float = Field(gt=0)
    gender: str
    updated_at: datetime.datetime


class BodyMeasurement(BaseModel):
    id: str
    weight_kg: Optional[float] = None
    body_fat_percentage: Optional[float] = None
    chest_cm: Optional[float] = None
    waist_cm: Optional[float] = None
    hips_cm: Optional[float] = None
    measurement_date: datetime.datetime
