"""Pure stateless feature functions: math only, never raises.

Every lab-driven factor takes an optional value: ``None`` contributes nothing.
All thresholds are strict, so a value sitting exactly on a threshold takes the
neutral branch.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

IDEAL_SLEEP_HOURS = 7.5
TESTOSTERONE_LOW_NMOL_L = 12.0
TESTOSTERONE_HIGH_NMOL_L = 30.0
NG_DL_TO_NMOL_L = 0.0347


def clamp(value: float, minimum: float, maximum: float) -> float:
    return min(maximum, max(minimum, value))


def round_half_up(value: float) -> int:
    """Round .5 away from the floor (2.5 -> 3), unlike the built-in round()."""
    return math.floor(value + 0.5)


def _present(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


# ---------------------------------------------------------------------------
# Daily-input factors
# ---------------------------------------------------------------------------

def sleep_factor(sleep_hours: float) -> float:
    """Linear reward/penalty around 7.5h, capped to [-20, 15]."""
    return clamp((sleep_hours - IDEAL_SLEEP_HOURS) * 8, -20, 15)


def sleep_deficit_stress(sleep_hours: float) -> float:
    """Step bonus to stress for acute deprivation: <5h → 25, <6h → 15."""
    if sleep_hours < 5:
        return 25
    if sleep_hours < 6:
        return 15
    return 0


@dataclass(frozen=True, slots=True)
class NutritionFactor:
    factor: float  # energy adjustment
    stress_bonus: float


def nutrition_factor(calories_consumed: float, calories_target: float) -> NutritionFactor:
    """Energy factor and stress bonus from intake vs target.

    - within ±5% of target: +5 energy
    - deficit over 20%: -10 energy
    - surplus over 25%: -8 energy
    - any deficit beyond 5% that exceeds 500 kcal: +10 stress
    A non-positive target disables the factor.
    """
    if calories_target <= 0:
        return NutritionFactor(0, 0)
    diff = calories_consumed - calories_target
    pct = abs(diff) / calories_target
    if pct <= 0.05:
        return NutritionFactor(5, 0)
    if diff < 0:
        stress_bonus = 10 if diff < -500 else 0
        return NutritionFactor(-10 if pct > 0.2 else 0, stress_bonus)
    if pct > 0.25:
        return NutritionFactor(-8, 0)
    return NutritionFactor(0, 0)


def workout_adaptation(workout_intensity: float) -> float:
    """Energy factor: 3–6 is the training sweet spot, above 7 leaves no time to recover."""
    if 3 <= workout_intensity <= 6:
        return 5
    if workout_intensity > 7:
        return -6
    return 0


def workout_stress(workout_intensity: float) -> float:
    return workout_intensity * 1.5


# ---------------------------------------------------------------------------
# Lab factors
# ---------------------------------------------------------------------------

def testosterone_index(testosterone_nmol_l: float | None) -> int | None:
    """Map the 12–30 nmol/L reference band onto 0–100. None when there is no value."""
    if not _present(testosterone_nmol_l):
        return None
    span = TESTOSTERONE_HIGH_NMOL_L - TESTOSTERONE_LOW_NMOL_L
    return round_half_up(clamp((testosterone_nmol_l - TESTOSTERONE_LOW_NMOL_L) / span * 100, 0, 100))


def testosterone_factor(testosterone_nmol_l: float | None) -> float:
    """Energy/recovery factor: <18 → -8, 18–30 → +5, >30 → +2."""
    if not _present(testosterone_nmol_l):
        return 0
    if testosterone_nmol_l < 18:
        return -8
    if testosterone_nmol_l <= 30:
        return 5
    return 2


def liver_load(bilirubin: float | None) -> float:
    if not _present(bilirubin) or bilirubin <= 20:
        return 0.0
    return min((bilirubin - 20) * 2, 15)


def metabolic_stress(uric_acid: float | None) -> float:
    if not _present(uric_acid) or uric_acid <= 339:
        return 0.0
    return (uric_acid - 339) * 0.05


def recovery_penalty(platelets: float | None) -> float:
    if not _present(platelets) or platelets >= 180:
        return 0
    return 5


def testosterone_ng_dl_to_nmol_l(ng_dl: float) -> float:
    return ng_dl * NG_DL_TO_NMOL_L


def testosterone_status(ng_dl: float) -> str:
    """Simplified ng/dL reference: low < 300, normal 300–1000, high > 1000."""
    if ng_dl < 300:
        return "low"
    if ng_dl > 1000:
        return "high"
    return "normal"


# ---------------------------------------------------------------------------
# Body / profile helpers
# ---------------------------------------------------------------------------

def calc_bmi(weight_kg: float | None, height_cm: float | None) -> float | None:
    """BMI rounded to one decimal. None if either measurement is missing."""
    if not weight_kg or weight_kg <= 0 or not height_cm or height_cm <= 0:
        return None
    height_m = height_cm / 100
    return round_half_up(weight_kg / (height_m * height_m) * 10) / 10


def bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "underweight"
    if bmi <= 24.9:
        return "normal"
    if bmi <= 29.9:
        return "overweight"
    return "obesity"


def recommended_kcal(weight_kg: float | None, height_cm: float | None) -> dict | None:
    """Daily kcal target from a 25 kcal/kg base, nudged by BMI band.

    underweight → +300, normal → maintenance, above → -300 (never below 1200).
    """
    bmi = calc_bmi(weight_kg, height_cm)
    if bmi is None:
        return None
    base = round_half_up(weight_kg * 25)
    if bmi < 18.5:
        return {"target": base + 300, "surplus": 300, "label": "gain"}
    if bmi <= 24.9:
        return {"target": base, "surplus": 0, "label": "maintain"}
    return {"target": max(1200, base - 300), "surplus": -300, "label": "lose"}


_MACRO_RATIOS = {
    "gain": (2.0, 1.0),
    "lose": (1.8, 0.8),
    "maintain": (1.6, 1.0),
}


def macros(goal: str, weight_kg: float, daily_kcal: float) -> dict[str, int] | None:
    """Protein and fat by g/kg for the goal; carbs fill the remaining kcal (4 kcal/g)."""
    if not weight_kg or weight_kg <= 0 or daily_kcal <= 0:
        return None
    protein_per_kg, fat_per_kg = _MACRO_RATIOS.get(goal, _MACRO_RATIOS["maintain"])
    protein = round_half_up(weight_kg * protein_per_kg)
    fat = round_half_up(weight_kg * fat_per_kg)
    carbs_kcal = max(0.0, daily_kcal - protein * 4 - fat * 9)
    return {"protein": protein, "fat": fat, "carbs": round_half_up(carbs_kcal / 4)}


def workout_intensity_from_today(duration_sec: float, calories_burned: float) -> int:
    """0–10 intensity from today's total training time and burn."""
    if duration_sec <= 0:
        return 0
    minutes = duration_sec / 60
    from_duration = min(10.0, (minutes / 45) * 6)
    from_calories = min(4.0, calories_burned / 100)
    return round_half_up(min(10.0, from_duration + from_calories * 0.5))


def age_from_dob(dob: str | None, today: date) -> int | None:
    """Whole years between an ISO birth date and today. None if unparseable."""
    if not dob:
        return None
    try:
        born = date.fromisoformat(dob[:10])
    except ValueError:
        return None
    years = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
    return years if years >= 0 else None


# ---------------------------------------------------------------------------
# Status labels
# ---------------------------------------------------------------------------

def metric_status(value: float, high_is_good: bool) -> str:
    """Quartile label for a 0–100 score."""
    if high_is_good:
        if value >= 76:
            return "optimal"
        if value >= 51:
            return "high"
        if value >= 26:
            return "moderate"
        return "low"
    if value <= 25:
        return "optimal"
    if value <= 50:
        return "low"
    if value <= 75:
        return "moderate"
    return "high"


def body_state_label(score: float) -> str:
    if score >= 85:
        return "optimal"
    if score >= 70:
        return "good"
    if score >= 55:
        return "moderate"
    if score >= 40:
        return "low"
    return "critical"


_BODY_STATE_WEIGHTS = {
    "sleep": 0.2,
    "recovery": 0.15,
    "training": 0.15,
    "calories": 0.15,
    "stress": 0.15,
    "testosterone": 0.1,
    "pulse": 0.05,
    "oxygen": 0.05,
}

_TESTOSTERONE_STATUS_SCORE = {"normal": 85, "high": 70, "low": 40}


def body_state_score(
    sleep_hours: float,
    recovery_score: float,
    workout_intensity: float,
    calories_consumed: float,
    calories_target: float,
    stress_score: float,
    testosterone: str | None = None,
    pulse_bpm: float = 62,
    oxygen_pct: float = 98,
) -> int:
    """Weighted 0–100 blend of the day's components.

    Without a testosterone status that component is dropped and the
    remaining weights are re-normalized.
    """
    calorie_ratio = calories_consumed / calories_target if calories_target > 0 else 1.0
    components = {
        "sleep": clamp(sleep_hours / 8 * 100, 0, 100),
        "recovery": clamp(recovery_score, 0, 100),
        "training": clamp(100 - abs(5 - workout_intensity) * 12, 0, 100),
        "calories": clamp(100 - abs(1 - calorie_ratio) * 80, 0, 100),
        "stress": clamp(100 - stress_score, 0, 100),
        "pulse": clamp(100 - abs(72 - pulse_bpm) * 3, 0, 100),
        "oxygen": clamp(oxygen_pct, 0, 100),
    }
    if testosterone is not None:
        components["testosterone"] = _TESTOSTERONE_STATUS_SCORE.get(testosterone, 50)

    total_weight = sum(_BODY_STATE_WEIGHTS[k] for k in components)
    raw = sum(value * _BODY_STATE_WEIGHTS[k] for k, value in components.items()) / total_weight
    return int(clamp(round_half_up(raw), 0, 100))
