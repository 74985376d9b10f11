from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .repos import Repo

TREND_DAYS = 30
WEEK_DAYS = 7


def _series(labels: List[str], values: List[float]) -> Dict[str, list]:
    return {"labels": labels, "values": values}


def _workout_days(df: pd.DataFrame) -> pd.Series:
    return df["timestamp"].dt.date


def current_streak(days: List[date], today: date) -> int:
    """Consecutive days with at least one workout, ending today or yesterday."""
    past = sorted({d for d in days if d <= today})
    if not past:
        return 0
    arr = np.array(past, dtype="datetime64[D]")
    if arr[-1] < np.datetime64(today - timedelta(days=1), "D"):
        return 0
    gaps = np.flatnonzero(np.diff(arr).astype(int) != 1)
    start = gaps[-1] + 1 if gaps.size else 0
    return int(len(arr) - start)


def dashboard_stats(repo: Repo, today: Optional[date] = None) -> dict:
    """Counters shown on the dashboard."""
    today = today or date.today()
    workouts = repo.read_df("Workouts")
    goals = repo.read_df("Goals")

    stats = {
        "total_workouts": int(len(workouts)),
        "total_calories": 0,
        "total_minutes": 0,
        "active_goals": int((~goals["is_completed"]).sum()) if not goals.empty else 0,
        "completed_goals": int(goals["is_completed"].sum()) if not goals.empty else 0,
        "current_streak": 0,
        "monthly_workouts": 0,
        "monthly_calories": 0,
        "active_days": 0,
    }
    if workouts.empty:
        return stats

    days = _workout_days(workouts)
    cutoff = today - timedelta(days=TREND_DAYS - 1)
    recent = workouts[(days >= cutoff) & (days <= today)]
    stats.update({
        "total_calories": int(workouts["calories_burned"].sum()),
        "total_minutes": int(workouts["duration_minutes"].sum()),
        "current_streak": current_streak(days.dropna().tolist(), today),
        "monthly_workouts": int(len(recent)),
        "monthly_calories": int(recent["calories_burned"].sum()),
        "active_days": int(_workout_days(recent).nunique()),
    })
    return stats


def _daily(workouts: pd.DataFrame, today: date, n_days: int, how: str) -> pd.Series:
    """Per-day count or calorie sum over the ``n_days`` ending today, zero-filled."""
    index = pd.date_range(end=pd.Timestamp(today), periods=n_days, freq="D").date
    if workouts.empty:
        return pd.Series(0, index=index)
    grouped = workouts.groupby(_workout_days(workouts))
    per_day = grouped.size() if how == "count" else grouped["calories_burned"].sum()
    return per_day.reindex(index, fill_value=0)


def progress_series(repo: Repo, today: Optional[date] = None) -> dict:
    """Data behind the four progress charts, each as ``{labels, values}``."""
    today = today or date.today()
    workouts = repo.read_df("Workouts")
    measurements = repo.read_df("Measurements")

    weekly = _daily(workouts, today, WEEK_DAYS, "count")
    trend = _daily(workouts, today, TREND_DAYS, "calories")

    if workouts.empty:
        distribution = pd.Series(dtype=int)
    else:
        distribution = workouts["exercise_name"].value_counts()

    weights = pd.DataFrame(columns=["measurement_date", "weight_kg"])
    if not measurements.empty:
        weights = (
            measurements.dropna(subset=["weight_kg"])
            .sort_values("measurement_date")[["measurement_date", "weight_kg"]]
        )

    return {
        "weekly_activity": _series(
            [d.strftime("%a") for d in weekly.index], [int(v) for v in weekly.tolist()]
        ),
        "calorie_trend": _series(
            [d.strftime("%m-%d") for d in trend.index], [int(v) for v in trend.tolist()]
        ),
        "exercise_distribution": _series(
            [str(k) for k in distribution.index], [int(v) for v in distribution.tolist()]
        ),
        "weight_progress": _series(
            [ts.strftime("%Y-%m-%d") for ts in weights["measurement_date"]],
            [float(v) for v in weights["weight_kg"]],
        ),
    }
