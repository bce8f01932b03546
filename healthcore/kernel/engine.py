"""Composite health scores.

Scores are computed in a fixed order: recovery, then stress (discounts
against recovery), then energy (discounts against stress). Each later score
reads the earlier one's clamped, unrounded value; only the returned numbers
are rounded.

Testosterone is expected in nmol/L. Callers holding ng/dL lab values convert
with ``features.testosterone_ng_dl_to_nmol_l`` first.
"""

from __future__ import annotations

from healthcore.kernel import features
from healthcore.kernel.models import HealthInput, HealthLabs, HealthMetrics

BASE_RECOVERY = 70
BASE_STRESS = 35
BASE_ENERGY = 60


def compute_health_metrics(data: HealthInput) -> HealthMetrics:
    labs = data.labs or HealthLabs()

    t_factor = features.testosterone_factor(labs.testosterone)
    liver = features.liver_load(labs.bilirubin)
    metabolic = features.metabolic_stress(labs.uric_acid)
    penalty = features.recovery_penalty(labs.platelets)
    sleep = features.sleep_factor(data.sleep_hours)
    sleep_deficit = features.sleep_deficit_stress(data.sleep_hours)
    nutrition = features.nutrition_factor(data.calories_consumed, data.calories_target)
    adaptation = features.workout_adaptation(data.workout_intensity)

    recovery = features.clamp(BASE_RECOVERY + sleep + t_factor - liver - penalty, 0, 100)

    stress = features.clamp(
        BASE_STRESS
        + features.workout_stress(data.workout_intensity)
        + sleep_deficit
        + metabolic
        + nutrition.stress_bonus
        - recovery * 0.3,
        0,
        100,
    )

    energy = features.clamp(
        BASE_ENERGY
        + sleep
        + nutrition.factor
        + adaptation
        + t_factor
        - stress * 0.25
        - liver,
        0,
        100,
    )

    return HealthMetrics(
        energy_score=features.round_half_up(energy),
        stress_score=features.round_half_up(stress),
        recovery_score=features.round_half_up(recovery),
        testosterone_index=features.testosterone_index(labs.testosterone),
        liver_load=liver,
        metabolic_stress=metabolic,
    )
