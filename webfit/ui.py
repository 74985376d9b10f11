from __future__ import annotations

from typing import Any, cast

from shiny import ui
from shinywidgets import output_widget

from .utils import DEFAULT_EXERCISES, GOAL_LABELS

_EXERCISE_CHOICES = [str(ex["name"]) for ex in DEFAULT_EXERCISES]
_CATEGORY_CHOICES = {"all": "All categories", "Cardio": "Cardio", "Strength": "Strength", "Flexibility": "Flexibility"}
_DIFFICULTY_CHOICES = {"all": "All levels", "Beginner": "Beginner", "Intermediate": "Intermediate", "Advanced": "Advanced"}
_GENDER_CHOICES = {"male": "Male", "female": "Female", "other": "Other"}

_STYLE = ui.tags.style(
    ".vb-center{ text-align:center; }\n"
    ".vb-center .value-box-title, .vb-center .value-box-value{ text-align:center; width:100%; }\n"
    ".vb-center .value-box-grid{ justify-content:center; }\n"
)


def _card(title: str, color: str, *children):
    return ui.card(
        ui.card_header(ui.h4(title, class_="mb-0"), class_=f"bg-{color} text-white"),
        *children,
    )


app_ui = ui.page_navbar(
    ui.nav_panel(
        "📊 Dashboard",
        _STYLE,
        ui.layout_columns(
            ui.value_box(
                "Workouts Logged",
                ui.output_ui("stat_workouts"),
                showcase=ui.span("🏃", style="font-size: 3rem;"),
                theme="primary",
                class_="vb-center"
            ),
            ui.value_box(
                "Calories Burned",
                ui.output_ui("stat_calories"),
                showcase=ui.span("🔥", style="font-size: 3rem;"),
                theme="danger",
                class_="vb-center"
            ),
            ui.value_box(
                "Active Goals",
                ui.output_ui("stat_goals"),
                showcase=ui.span("🎯", style="font-size: 3rem;"),
                theme="success",
                class_="vb-center"
            ),
            ui.value_box(
                "Current Streak",
                ui.output_ui("stat_streak"),
                showcase=ui.span("📅", style="font-size: 3rem;"),
                theme="info",
                class_="vb-center"
            ),
            col_widths=cast(Any, {"lg": [3, 3, 3, 3]}),
        ),
        ui.layout_columns(
            _card("📈 Workouts This Week", "primary", output_widget("plot_weekly")),
            _card("🔥 30-Day Calorie Burn Trend", "danger", output_widget("plot_calories")),
            col_widths=cast(Any, {"lg": [6, 6]}),
        ),
        ui.layout_columns(
            _card("🍩 Exercise Distribution", "success", output_widget("plot_distribution")),
            _card("⚖️ Weight Progress", "info", output_widget("plot_weight")),
            col_widths=cast(Any, {"lg": [6, 6]}),
        ),
        _card("📋 Recent Workouts", "secondary", ui.output_data_frame("tbl_recent")),
    ),
    ui.nav_panel(
        "🏋️ Log Workout",
        ui.layout_columns(
            _card(
                "➕ New Workout", "primary",
                ui.input_selectize(
                    "w_exercise", "Exercise", _EXERCISE_CHOICES,
                    options={"create": True}, width="100%"
                ),
                ui.input_numeric("w_duration", "Duration (minutes)", 30, min=1, max=1440),
                ui.input_numeric("w_calories", "Calories burned (leave empty to estimate)", None, min=0),
                ui.input_action_button("btn_log_workout", "Log Workout", class_="btn-primary"),
                ui.output_ui("workout_message"),
            ),
            _card(
                "🗂️ Workout History", "secondary",
                ui.output_data_frame("tbl_workouts"),
                ui.input_selectize("w_pick", "Select workout", choices=[], width="100%"),
                ui.input_action_button("btn_del_workout", "Delete Workout", class_="btn-outline-danger"),
            ),
            col_widths=cast(Any, {"lg": [4, 8]}),
        ),
    ),
    ui.nav_panel(
        "🎯 Goals",
        ui.layout_columns(
            _card(
                "🎯 Set a Goal", "success",
                ui.input_select("g_type", "Goal type", GOAL_LABELS),
                ui.input_numeric("g_target", "Target value", None, min=0),
                ui.output_ui("goal_unit"),
                ui.input_checkbox("g_no_date", "No target date", True),
                ui.input_date("g_date", "Target date"),
                ui.input_action_button("btn_add_goal", "Set Goal", class_="btn-success"),
                ui.output_ui("goal_message"),
            ),
            _card(
                "📋 Your Goals", "secondary",
                ui.output_data_frame("tbl_goals"),
                ui.input_selectize("g_pick", "Select goal", choices=[], width="100%"),
                ui.layout_columns(
                    ui.input_numeric("g_progress", "Current value", None, min=0),
                    ui.input_checkbox("g_completed", "Completed", False),
                ),
                ui.layout_columns(
                    ui.input_action_button("btn_save_goal", "Update Goal", class_="btn-primary"),
                    ui.input_action_button("btn_del_goal", "Delete Goal", class_="btn-outline-danger"),
                ),
            ),
            col_widths=cast(Any, {"lg": [4, 8]}),
        ),
    ),
    ui.nav_panel(
        "🧮 Health",
        ui.layout_columns(
            _card(
                "👤 Profile", "primary",
                ui.input_text("p_name", "Name", ""),
                ui.input_numeric("p_age", "Age", None, min=1, max=149),
                ui.input_numeric("p_height", "Height (cm)", None, min=1, max=299),
                ui.input_numeric("p_weight", "Weight (kg)", None, min=1, max=499),
                ui.input_select("p_gender", "Gender", _GENDER_CHOICES),
                ui.layout_columns(
                    ui.input_action_button("btn_save_profile", "Save Profile", class_="btn-primary"),
                    ui.input_action_button("btn_calc_health", "Calculate Metrics", class_="btn-success"),
                ),
                ui.output_ui("profile_message"),
            ),
            _card("❤️ Your Health Metrics", "danger", ui.output_ui("health_results")),
            col_widths=cast(Any, {"lg": [4, 8]}),
        ),
    ),
    ui.nav_panel(
        "📏 Measurements",
        ui.layout_columns(
            _card(
                "➕ New Measurement", "info",
                ui.input_numeric("m_weight", "Weight (kg)", None, min=0),
                ui.input_numeric("m_bodyfat", "Body fat (%)", None, min=0, max=100),
                ui.input_numeric("m_chest", "Chest (cm)", None, min=0),
                ui.input_numeric("m_waist", "Waist (cm)", None, min=0),
                ui.input_numeric("m_hips", "Hips (cm)", None, min=0),
                ui.input_action_button("btn_add_meas", "Save Measurement", class_="btn-info"),
                ui.output_ui("measurement_message"),
            ),
            _card("📋 Measurement History", "secondary", ui.output_data_frame("tbl_meas")),
            col_widths=cast(Any, {"lg": [4, 8]}),
        ),
    ),
    ui.nav_panel(
        "📚 Exercise Library",
        ui.layout_sidebar(
            ui.sidebar(
                ui.input_select("ex_category", "Category", _CATEGORY_CHOICES),
                ui.input_select("ex_difficulty", "Difficulty", _DIFFICULTY_CHOICES),
                width="220px",
                bg="#f8f9fa"
            ),
            ui.output_data_frame("tbl_exercises"),
        ),
    ),
    title="🏋️ WebFit Tracker",
    id="nav",
)
