"""Dashboard builders: the glue between the store and the engine.

Reads today's normalized counters, the profile and the latest lab draw,
assembles a HealthInput, runs the engine and decorates the result with
status labels. Missing data degrades to configured defaults, never raises.
"""

from __future__ import annotations

from healthcore.config import settings
from healthcore.db import KeyValueStore
from healthcore.kernel import clock, counters, features, labs
from healthcore.kernel.engine import compute_health_metrics
from healthcore.kernel.models import Dashboard, HealthInput, UserProfile


def calories_target_for(profile: UserProfile | None) -> float:
    recommended = features.recommended_kcal(
        profile.weight if profile else None,
        profile.height if profile else None,
    )
    if recommended is None:
        return settings.calories_target_default
    return float(recommended["target"])


def build_metrics_input(
    store: KeyValueStore,
    profile: UserProfile | None,
    today: str,
    sleep_hours: float | None = None,
) -> HealthInput:
    user_id = profile.id if profile else None
    duration_sec, calories_burned = counters.today_workout(store, user_id, today)
    water = counters.read_water(store, user_id, today)
    lab = labs.latest_lab(labs.get_labs(store, user_id))

    age = features.age_from_dob(profile.dob if profile else None, clock.parse_day(today))

    return HealthInput(
        sleep_hours=settings.sleep_hours_default if sleep_hours is None else sleep_hours,
        calories_consumed=counters.today_kcal(store, user_id, today),
        calories_target=calories_target_for(profile),
        workout_intensity=features.workout_intensity_from_today(duration_sec, calories_burned),
        water_ml=water.current,
        age=settings.age_default if age is None else age,
        weight_kg=(profile.weight if profile and profile.weight else settings.weight_kg_default),
        height_cm=(profile.height if profile and profile.height else settings.height_cm_default),
        labs=labs.labs_for_engine(lab),
    )


def build_dashboard(
    store: KeyValueStore,
    profile: UserProfile | None,
    today: str,
    sleep_hours: float | None = None,
) -> Dashboard:
    data = build_metrics_input(store, profile, today, sleep_hours)
    metrics = compute_health_metrics(data)

    user_id = profile.id if profile else None
    duration_sec, calories_burned = counters.today_workout(store, user_id, today)
    water = counters.read_water(store, user_id, today)
    lab = labs.latest_lab(labs.get_labs(store, user_id))
    t_status = features.testosterone_status(lab.testosterone) if lab is not None else None

    bmi = features.calc_bmi(profile.weight, profile.height) if profile else None
    goal = profile.goal.value if profile and profile.goal else "maintain"
    macros = features.macros(goal, profile.weight, data.calories_target) if profile and profile.weight else None

    body_score = features.body_state_score(
        sleep_hours=data.sleep_hours,
        recovery_score=metrics.recovery_score,
        workout_intensity=data.workout_intensity,
        calories_consumed=data.calories_consumed,
        calories_target=data.calories_target,
        stress_score=metrics.stress_score,
        testosterone=t_status,
    )

    return Dashboard(
        date=today,
        metrics=metrics,
        energy_status=features.metric_status(metrics.energy_score, high_is_good=True),
        stress_status=features.metric_status(metrics.stress_score, high_is_good=False),
        body_state_score=body_score,
        body_state_label=features.body_state_label(body_score),
        calories_consumed=data.calories_consumed,
        calories_target=data.calories_target,
        water_ml=water.current,
        water_goal_ml=water.goal,
        workout_duration_sec=duration_sec,
        workout_calories=calories_burned,
        workout_intensity=int(data.workout_intensity),
        latest_lab=lab,
        testosterone_status=t_status,
        bmi=bmi,
        bmi_category=features.bmi_category(bmi) if bmi is not None else None,
        macros=macros,
    )
