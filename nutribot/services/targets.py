from __future__ import annotations
from dataclasses import dataclass

from nutribot.services.energy import (
    PhysicalData, DEFAULT_DAILY_CALORIES, calculate_adjusted_calories,
    calculate_weekly_exercise_target, get_goal_factor, is_male, to_number,
)
from nutribot.services.water import water_target_ml


@dataclass
class DailyTargets:
    kcal: int
    protein_g: int
    fiber_g: int
    water_ml: int
    weekly_exercise_min: int


def profile_to_physical(profile: dict) -> PhysicalData:
    return PhysicalData(
        age=profile.get("age"),
        weight=profile.get("weight_kg"),
        height=profile.get("height_cm"),
        sex=profile.get("sex"),
        activity_level=profile.get("activity"),
        goal=profile.get("goal"),
    )


def compute_targets(data: PhysicalData) -> DailyTargets:
    kcal = calculate_adjusted_calories(data) or DEFAULT_DAILY_CALORIES

    # Simple evidence-aligned heuristics (not medical):
    # protein: higher if losing, moderate otherwise
    weight = to_number(data.weight) or 0
    factor = get_goal_factor(data.goal)
    if factor < 1:
        protein = 1.8 * weight
    elif factor > 1:
        protein = 1.6 * weight
    else:
        protein = 1.4 * weight

    return DailyTargets(
        kcal=kcal,
        protein_g=int(round(protein)),
        fiber_g=30 if is_male(data.sex) else 25,
        water_ml=water_target_ml(data.weight),
        weekly_exercise_min=calculate_weekly_exercise_target(data),
    )
