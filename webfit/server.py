from __future__ import annotations

from typing import Callable, List, TypeVar

import pandas as pd
import plotly.graph_objects as go
from shiny import Inputs, Outputs, Session, reactive, render, ui
from shinywidgets import render_plotly

from .logger import logger
from .transport import ApiError, FitnessClient, transport_factory
from .utils import GOAL_LABELS, GOAL_UNITS, TABLES

T = TypeVar("T")


def server(input: Inputs, output: Outputs, session: Session):
    client = FitnessClient(transport_factory())
    session.on_ended(client.close)

    # Bumped after every successful write so that all reads re-run.
    refresh = reactive.value(0)

    def _bump():
        refresh.set(refresh.get() + 1)

    def _safe(fetch: Callable[[], T], default: T) -> T:
        try:
            return fetch()
        except ApiError as e:
            logger.warning(f"Read failed ({e.status}): {e.message}")
            return default

    def _to_float(value) -> float | None:
        """Numeric input to float, accepting a comma as decimal separator; blank is None."""
        if value is None or value == "":
            return None
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return float(str(value).replace(',', '.'))
        except (ValueError, AttributeError):
            return None

    # Inline form messages: (text, ok)
    workout_msg = reactive.value(("", True))
    goal_msg = reactive.value(("", True))
    profile_msg = reactive.value(("", True))
    meas_msg = reactive.value(("", True))

    def _message(state) -> ui.Tag:
        text, ok = state
        if not text:
            return ui.div()
        color = "#198754" if ok else "#dc3545"
        return ui.div(text, style=f"margin-top: 10px; color: {color}; font-weight: 600;")

    # Data
    @reactive.calc
    def workouts_df():
        refresh.get()
        rows = _safe(client.list_workouts, [])
        return pd.DataFrame(rows, columns=TABLES["Workouts"]) if rows else pd.DataFrame(columns=TABLES["Workouts"])

    @reactive.calc
    def goals_df():
        refresh.get()
        rows = _safe(client.list_goals, [])
        return pd.DataFrame(rows, columns=TABLES["Goals"]) if rows else pd.DataFrame(columns=TABLES["Goals"])

    @reactive.calc
    def meas_df():
        refresh.get()
        rows = _safe(client.list_measurements, [])
        cols = TABLES["Measurements"]
        return pd.DataFrame(rows, columns=cols) if rows else pd.DataFrame(columns=cols)

    @reactive.calc
    def stats():
        refresh.get()
        return _safe(client.dashboard_stats, {})

    @reactive.calc
    def progress():
        refresh.get()
        return _safe(client.progress, {})

    # Helper to populate selects
    def _choices(df: pd.DataFrame, label_cols: List[str], when_col: str):
        if df.empty:
            return {}
        out = {}
        for _, r in df.head(50).iterrows():
            parts = [str(r.get(c, "")) for c in label_cols]
            label = " | ".join([str(r.get(when_col, ""))[:16]] + parts + [f"#{str(r.get('id', ''))[:6]}"])
            out[r.get("id")] = label
        return out

    @reactive.effect
    def _refresh_picks():
        ui.update_selectize("w_pick", choices=_choices(workouts_df(), ["exercise_name", "duration_minutes"], "timestamp"))
        ui.update_selectize("g_pick", choices=_choices(goals_df(), ["goal_type", "target_value"], "created_at"))

    @reactive.effect
    def _load_profile():
        profile = _safe(client.get_profile, None)
        if not profile:
            return
        ui.update_text("p_name", value=profile.get("name") or "")
        ui.update_numeric("p_age", value=profile.get("age"))
        ui.update_numeric("p_height", value=profile.get("height_cm"))
        ui.update_numeric("p_weight", value=profile.get("initial_weight_kg"))
        ui.update_select("p_gender", selected=profile.get("gender") or "other")

    # Workouts
    @reactive.effect
    @reactive.event(input.btn_log_workout)
    def _log_workout():
        duration = _to_float(input.w_duration())
        calories = _to_float(input.w_calories())
        try:
            result = client.log_workout(
                input.w_exercise() or "",
                int(duration) if duration is not None else 0,
                int(calories) if calories is not None else None,
            )
        except ApiError as e:
            workout_msg.set((e.message, False))
            return
        workout_msg.set((f"Workout logged successfully! {result['calories_burned']} cal", True))
        _bump()

    @reactive.effect
    @reactive.event(input.btn_del_workout)
    def _delete_workout():
        sel = input.w_pick()
        if not sel:
            ui.notification_show("Pick a workout to delete", type="warning")
            return
        try:
            client.delete_workout(sel)
        except ApiError as e:
            ui.notification_show(f"Delete failed: {e.message}", type="error")
            return
        ui.notification_show("Workout deleted.")
        _bump()

    @output
    @render.ui
    def workout_message():
        return _message(workout_msg.get())

    # Goals
    @output
    @render.ui
    def goal_unit():
        unit = GOAL_UNITS.get(input.g_type(), "")
        return ui.span(f"Unit: {unit}", class_="text-muted") if unit else ui.div()

    @reactive.effect
    @reactive.event(input.btn_add_goal)
    def _add_goal():
        target = _to_float(input.g_target())
        target_date = None if input.g_no_date() else input.g_date()
        try:
            client.create_goal(input.g_type(), target if target is not None else 0, target_date)
        except ApiError as e:
            goal_msg.set((e.message, False))
            return
        goal_msg.set(("Goal set successfully!", True))
        _bump()

    @reactive.effect
    @reactive.event(input.g_pick)
    def _load_goal():
        d = goals_df()
        row = d.loc[d["id"] == input.g_pick()]
        if row.empty:
            return
        goal = row.iloc[0]
        ui.update_numeric("g_progress", value=float(goal.get("current_value") or 0))
        ui.update_checkbox("g_completed", value=bool(goal.get("is_completed")))

    @reactive.effect
    @reactive.event(input.btn_save_goal)
    def _save_goal():
        sel = input.g_pick()
        if not sel:
            ui.notification_show("Pick a goal to update", type="warning")
            return
        try:
            client.update_goal(sel, _to_float(input.g_progress()), bool(input.g_completed()))
        except ApiError as e:
            ui.notification_show(f"Update failed: {e.message}", type="error")
            return
        ui.notification_show("Goal updated.")
        _bump()

    @reactive.effect
    @reactive.event(input.btn_del_goal)
    def _delete_goal():
        sel = input.g_pick()
        if not sel:
            ui.notification_show("Pick a goal to delete", type="warning")
            return
        try:
            client.delete_goal(sel)
        except ApiError as e:
            ui.notification_show(f"Delete failed: {e.message}", type="error")
            return
        ui.notification_show("Goal deleted.")
        _bump()

    @output
    @render.ui
    def goal_message():
        return _message(goal_msg.get())

    # Profile & health metrics
    health = reactive.value(None)

    def _profile_inputs():
        return (
            _to_float(input.p_weight()),
            _to_float(input.p_height()),
            int(input.p_age() or 0),
            input.p_gender(),
        )

    @reactive.effect
    @reactive.event(input.btn_save_profile)
    def _save_profile():
        weight, height, age, gender = _profile_inputs()
        try:
            client.save_profile(input.p_name() or "", age, height or 0, weight or 0, gender)
        except ApiError as e:
            profile_msg.set((e.message, False))
            return
        profile_msg.set(("Profile saved", True))

    @reactive.effect
    @reactive.event(input.btn_calc_health)
    def _calc_health():
        weight, height, age, gender = _profile_inputs()
        try:
            health.set(client.health_metrics(weight or 0, height or 0, age, gender))
        except ApiError as e:
            profile_msg.set((e.message, False))
            return
        profile_msg.set(("", True))

    @output
    @render.ui
    def profile_message():
        return _message(profile_msg.get())

    @output
    @render.ui
    def health_results():
        m = health.get()
        if not m:
            return ui.p("Fill in your profile and press Calculate Metrics.", class_="text-muted")
        needs = m["dailyCalorieNeeds"]
        return ui.div(
            ui.layout_columns(
                ui.value_box("BMI", ui.span(f"{m['bmi']}", style="font-size: 2rem;"), ui.p(m["category"]),
                             theme="primary", class_="vb-center"),
                ui.value_box("BMR", ui.span(f"{m['bmr']} cal/day", style="font-size: 2rem;"),
                             ui.p("Basal Metabolic Rate"), theme="success", class_="vb-center"),
            ),
            ui.h5("Ideal Weight Range"),
            ui.p(f"{m['idealWeightRange']['min']} - {m['idealWeightRange']['max']} kg"),
            ui.h5("Daily Calorie Needs"),
            ui.tags.ul(
                ui.tags.li(f"Sedentary: {needs['sedentary']} calories"),
                ui.tags.li(f"Light Exercise: {needs['lightExercise']} calories"),
                ui.tags.li(f"Moderate Exercise: {needs['moderateExercise']} calories"),
                ui.tags.li(f"Heavy Exercise: {needs['heavyExercise']} calories"),
            ),
            ui.h5("Health Assessment"),
            ui.p(m["healthRisk"]),
        )

    # Measurements
    @reactive.effect
    @reactive.event(input.btn_add_meas)
    def _add_meas():
        try:
            client.add_measurement(
                weight_kg=_to_float(input.m_weight()),
                body_fat_percentage=_to_float(input.m_bodyfat()),
                chest_cm=_to_float(input.m_chest()),
                waist_cm=_to_float(input.m_waist()),
                hips_cm=_to_float(input.m_hips()),
            )
        except ApiError as e:
            meas_msg.set((e.message, False))
            return
        meas_msg.set(("Measurement saved", True))
        _bump()

    @output
    @render.ui
    def measurement_message():
        return _message(meas_msg.get())

    # Dashboard stats
    def _stat(key: str, unit: str = ""):
        value = stats().get(key)
        if value is None:
            return ui.span("-", style="font-size: 2rem;")
        return ui.span(f"{value}{unit}", style="font-size: 2rem;")

    @output
    @render.ui
    def stat_workouts():
        return _stat("total_workouts")

    @output
    @render.ui
    def stat_calories():
        return _stat("total_calories")

    @output
    @render.ui
    def stat_goals():
        return _stat("active_goals")

    @output
    @render.ui
    def stat_streak():
        return _stat("current_streak", " days")

    # Charts
    def _empty_figure(message: str = "No data available"):
        fig = go.Figure()
        fig.update_layout(
            template='plotly_white',
            autosize=True,
            margin=dict(l=50, r=50, t=50, b=50),
            annotations=[dict(
                text=message,
                showarrow=False,
                x=0.5, y=0.5,
                xref="paper", yref="paper",
                font=dict(color="#6c757d", size=16)
            )]
        )
        return fig

    def _layout(fig: go.Figure, xaxis: str, yaxis: str, showlegend: bool = False) -> go.Figure:
        fig.update_layout(
            xaxis_title=xaxis,
            yaxis_title=yaxis,
            hovermode='closest',
            template='plotly_white',
            autosize=True,
            margin=dict(l=50, r=50, t=30, b=50),
            showlegend=showlegend
        )
        return fig

    @output
    @render_plotly
    def plot_weekly():
        s = progress().get("weekly_activity")
        if not s or not s["labels"]:
            return _empty_figure("No workouts recorded yet")
        fig = go.Figure(data=[go.Bar(
            x=s["labels"], y=s["values"],
            marker_color='#0d6efd',
            hovertemplate='%{x}<br>%{y} workouts<extra></extra>'
        )])
        fig.update_yaxes(dtick=1, rangemode="tozero")
        return _layout(fig, "Day", "Workouts")

    @output
    @render_plotly
    def plot_calories():
        s = progress().get("calorie_trend")
        if not s or not any(s["values"]):
            return _empty_figure("No calories burned in the last 30 days")
        fig = go.Figure(data=[go.Scatter(
            x=s["labels"], y=s["values"],
            mode='lines+markers',
            line=dict(color='#dc3545', width=3),
            fill='tozeroy',
            fillcolor='rgba(220, 53, 69, 0.15)',
            hovertemplate='%{x}<br>%{y} cal<extra></extra>'
        )])
        return _layout(fig, "Date", "Calories")

    @output
    @render_plotly
    def plot_distribution():
        s = progress().get("exercise_distribution")
        if not s or not s["labels"]:
            return _empty_figure("No workouts recorded yet")
        fig = go.Figure(data=[go.Pie(
            labels=s["labels"], values=s["values"], hole=0.45,
            hovertemplate='%{label}<br>%{value} workouts<extra></extra>'
        )])
        return _layout(fig, "", "", showlegend=True)

    @output
    @render_plotly
    def plot_weight():
        s = progress().get("weight_progress")
        if not s or not s["labels"]:
            return _empty_figure("No measurements recorded yet")
        fig = go.Figure(data=[go.Scatter(
            x=s["labels"], y=s["values"],
            mode='lines+markers',
            line=dict(color='#198754', width=3),
            marker=dict(size=8, color='#198754'),
            hovertemplate='Date: %{x}<br>Weight: %{y:.1f} kg<extra></extra>'
        )])
        return _layout(fig, "Date", "Weight (kg)")

    # Tables
    @output
    @render.data_frame
    def tbl_recent():
        d = workouts_df()
        return d.head(5)[["timestamp", "exercise_name", "duration_minutes", "calories_burned"]]

    @output
    @render.data_frame
    def tbl_workouts():
        d = workouts_df()
        return d.head(50)[["timestamp", "exercise_name", "duration_minutes", "calories_burned"]]

    @output
    @render.data_frame
    def tbl_goals():
        d = goals_df().copy()
        if d.empty:
            return d
        d["goal"] = d["goal_type"].map(lambda t: GOAL_LABELS.get(t, t))
        d["unit"] = d["goal_type"].map(lambda t: GOAL_UNITS.get(t, ""))
        d["progress"] = (d["current_value"].astype(float) / d["target_value"].astype(float) * 100).round(0)
        return d[["goal", "target_value", "current_value", "unit", "progress", "target_date", "is_completed"]]

    @output
    @render.data_frame
    def tbl_meas():
        d = meas_df()
        return d.drop(columns=["id"]).head(20)

    @output
    @render.data_frame
    def tbl_exercises():
        rows = _safe(lambda: client.list_exercises(input.ex_category(), input.ex_difficulty()), [])
        cols = ["name", "category", "difficulty", "calories_burned_per_minute", "muscle_groups", "instructions"]
        return pd.DataFrame(rows, columns=cols) if rows else pd.DataFrame(columns=cols)
