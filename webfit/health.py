"""BMI / BMR health metrics.

Everything here is a pure function of its inputs: nothing is read from or
written to storage.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import ValidationError
from .utils import round_half_up, round_tenth

# Upper bound (exclusive) of each BMI band, with its health-risk description.
BMI_CATEGORIES: Tuple[Tuple[float, str, str], ...] = (
    (18.5, "Underweight", "Increased risk of nutritional deficiency and osteoporosis"),
    (25.0, "Normal weight", "Lowest risk of health problems"),
    (30.0, "Overweight", "Increased risk of heart disease, diabetes"),
    (float("inf"), "Obese", "High risk of serious health conditions"),
)

ACTIVITY_FACTORS: Dict[str, float] = {
    "sedentary": 1.2,
    "lightExercise": 1.375,
    "moderateExercise": 1.55,
    "heavyExercise": 1.725,
}

IDEAL_BMI_RANGE = (18.5, 24.9)


@dataclass(frozen=True)
class HealthMetrics:
    bmi: float
    category: str
    health_risk: str
    bmr: float
    ideal_weight_min: float
    ideal_weight_max: float
    daily_calorie_needs: Dict[str, int]
    weight_kg: float
    height_cm: float
    age: int
    gender: str

    def to_dict(self) -> dict:
        """Response body of ``POST /health-metrics``."""
        return {
            "bmi": self.bmi,
            "category": self.category,
            "healthRisk": self.health_risk,
            "bmr": round_half_up(self.bmr),
            "idealWeightRange": {"min": self.ideal_weight_min, "max": self.ideal_weight_max},
            "dailyCalorieNeeds": dict(self.daily_calorie_needs),
            "metrics": {
                "weight_kg": self.weight_kg,
                "height_cm": self.height_cm,
                "age": self.age,
                "gender": self.gender,
            },
        }


def calculate_bmi(weight_kg: float, height_cm: float) -> float:
    h_m = height_cm / 100.0
    return round_tenth(weight_kg / (h_m * h_m))


def bmi_category(bmi: float) -> Tuple[str, str]:
    """Return ``(category, health_risk)`` for a BMI value."""
    for upper, name, risk in BMI_CATEGORIES:
        if bmi < upper:
            return name, risk
    return BMI_CATEGORIES[-1][1], BMI_CATEGORIES[-1][2]


def calculate_bmr(weight_kg: float, height_cm: float, age: int, gender: str) -> float:
    """Mifflin-St Jeor basal metabolic rate, unrounded.

    Only ``"female"`` gets the -161 offset; every other value uses +5.
    """
    offset = -161 if gender == "female" else 5
    return 10 * weight_kg + 6.25 * height_cm - 5 * age + offset


def ideal_weight_range(height_cm: float) -> Tuple[float, float]:
    h2 = (height_cm / 100.0) ** 2
    lo, hi = IDEAL_BMI_RANGE
    return round_tenth(lo * h2), round_tenth(hi * h2)


def daily_calorie_needs(bmr: float) -> Dict[str, int]:
    return {tier: round_half_up(bmr * factor) for tier, factor in ACTIVITY_FACTORS.items()}


def calculate_health_metrics(
    weight_kg: Optional[float],
    height_cm: Optional[float],
    age: int,
    gender: str,
) -> HealthMetrics:
    if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
        raise ValidationError("Weight & height required")
    bmi = calculate_bmi(weight_kg, height_cm)
    category, risk = bmi_category(bmi)
    bmr = calculate_bmr(weight_kg, height_cm, age, gender)
    lo, hi = ideal_weight_range(height_cm)
    return HealthMetrics(
        bmi=bmi,
        category=category,
        health_risk=risk,
        bmr=bmr,
        ideal_weight_min=lo,
        ideal_weight_max=hi,
        daily_calorie_needs=daily_calorie_needs(bmr),
        weight_kg=weight_kg,
        height_cm=height_cm,
        age=age,
        gender=gender,
    )
