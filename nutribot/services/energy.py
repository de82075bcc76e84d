from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_DAILY_CALORIES = 2000
WHO_WEEKLY_MINUTES = 150
EXERCISE_FLOOR_MINUTES = 120
DEFAULT_LEVEL = "moderado"
CUSTOM_LEVEL = "personalizado"

MALE_CODES = ("m", "male", "man", "masculino", "homem")

# most specific first: "muito ativo", "extremamente ativo" and "inativo" all contain "ativo"
ACTIVITY_FACTORS = (
    ("inativ", 1.2),
    ("inactiv", 1.2),
    ("extrem", 1.9),
    ("atlét", 1.9),
    ("atlet", 1.9),
    ("athlete", 1.9),
    ("muito ativo", 1.725),
    ("very active", 1.725),
    ("high", 1.725),
    ("moderad", 1.55),
    ("moderate", 1.55),
    ("leve", 1.375),
    ("light", 1.375),
    ("sedent", 1.2),
    ("ativo", 1.725),
    ("active", 1.725),
)

GOAL_FACTORS = (
    ("perda", 0.85),
    ("emagrec", 0.85),
    ("loss", 0.85),
    ("lose", 0.85),
    ("ganho", 1.1),
    ("hipertrofia", 1.1),
    ("gain", 1.1),
)

LOSS_WORDS = ("perda", "weight", "loss", "lose", "emagrec")
MUSCLE_WORDS = ("muscular", "muscle", "hipertrofia")
ENDURANCE_WORDS = ("resist", "endurance", "capacidade")
SEDENTARY_WORDS = ("sedent", "inativ", "inactiv")

# Compendium of Physical Activities, approximate values
MET_VALUES = {
    "caminhada leve": 2.5,
    "yoga": 3.0,
    "alongamento": 2.3,
    "caminhada rápida": 4.3,
    "caminhada rapida": 4.3,
    "bicicleta leve": 5.0,
    "natação leve": 5.0,
    "natacao leve": 5.0,
    "corrida": 9.8,
    "hiit": 8.0,
    "ciclismo intenso": 8.0,
    "musculação": 5.0,
    "musculacao": 5.0,
    "treino de força": 5.0,
    "treino de forca": 5.0,
    "futebol": 7.0,
    "basquete": 6.5,
    "tênis": 7.0,
    "tenis": 7.0,
}
DEFAULT_MET = 4.0


@dataclass
class PhysicalData:
    age: Any = None
    weight: Any = None
    height: Any = None
    sex: Optional[str] = None
    activity_level: Optional[str] = None
    goal: Optional[str] = None


@dataclass
class EnergyMetrics:
    daily_calories: int
    weekly_exercise_target: int
    current_level: str
    user_data: Optional[PhysicalData] = field(default=None)


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def to_number(value: Any) -> Optional[float]:
    # zero and unparsable input count as "not provided"
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(n) or n == 0:
        return None
    return n


def _text(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_male(sex: Optional[str]) -> bool:
    return _text(sex) in MALE_CODES


def is_sedentary(activity_level: Optional[str]) -> bool:
    t = _text(activity_level)
    return any(w in t for w in SEDENTARY_WORDS)


def calculate_bmr(data: PhysicalData) -> Optional[float]:
    """Basal metabolic rate (Mifflin-St Jeor), kcal/day."""
    weight, height, age = to_number(data.weight), to_number(data.height), to_number(data.age)
    if weight is None or height is None or age is None or not _text(data.sex):
        return None
    s = 5 if is_male(data.sex) else -161
    return 10 * weight + 6.25 * height - 5 * age + s


def get_activity_factor(activity_level: Optional[str]) -> float:
    t = _text(activity_level)
    if not t:
        return 1.2
    for word, factor in ACTIVITY_FACTORS:
        if word in t:
            return factor
    return 1.2


def get_goal_factor(goal: Optional[str]) -> float:
    t = _text(goal)
    for word, factor in GOAL_FACTORS:
        if word in t:
            return factor
    return 1.0


def calculate_tdee(data: PhysicalData) -> Optional[int]:
    bmr = calculate_bmr(data)
    if bmr is None:
        return None
    return round_half_up(bmr * get_activity_factor(data.activity_level))


def calculate_adjusted_calories(data: PhysicalData) -> Optional[int]:
    tdee = calculate_tdee(data)
    if tdee is None:
        return None
    return round_half_up(tdee * get_goal_factor(data.goal))


def calculate_weekly_exercise_target(data: PhysicalData) -> int:
    """
    Weekly exercise minutes, starting from the WHO 150 min baseline.

    Adjustments run in a fixed order (goal, weight, age, activity) and later
    ones may override earlier ones: a sedentary user asking for weight loss
    still ends up capped at 150.
    """
    target: float = WHO_WEEKLY_MINUTES
    activity = _text(data.activity_level)

    goal = _text(data.goal)
    if goal:
        if any(w in goal for w in LOSS_WORDS):
            starting_out = is_sedentary(activity) or "leve" in activity or "light" in activity
            target = 265 if starting_out else 225
        elif any(w in goal for w in MUSCLE_WORDS):
            target = 180
        elif any(w in goal for w in ENDURANCE_WORDS):
            target = 200

    weight = to_number(data.weight)
    if weight is not None and weight > 90:
        target = max(150, target - min(30, (weight - 90) / 2))

    age = to_number(data.age)
    if age is not None:
        if age > 60:
            target = max(EXERCISE_FLOOR_MINUTES, target - 30)
        elif age < 30:
            target += 15

    if activity:
        if is_sedentary(activity):
            target = min(target, 150)
        elif ("ativo" in activity and "muito" in activity) or "very active" in activity:
            target = max(target, 200)
        elif "extrem" in activity or "atlét" in activity or "athlete" in activity:
            target = max(target, 250)

    minutes = max(EXERCISE_FLOOR_MINUTES, round_half_up(target))
    logger.debug("weekly exercise target %s min for goal=%r activity=%r", minutes, goal, activity)
    return minutes


def get_met(activity_type: str) -> float:
    return MET_VALUES.get(_text(activity_type), DEFAULT_MET)


def calories_per_minute(data: PhysicalData, activity_type: str) -> float:
    # MET * 3.5 * kg / 200
    weight = to_number(data.weight)
    if weight is None:
        return 0.0
    return get_met(activity_type) * 3.5 * weight / 200


def derive_activity_level(frequency: Optional[str], physical_activity: Any = None) -> str:
    f = _text(frequency)
    if "0" in f or "nunca" in f or "raramente" in f:
        return "sedentário"
    if "1x" in f or "1 vez" in f:
        return "levemente ativo"
    if "2x" in f or "3x" in f or "2 a 3" in f:
        return "moderadamente ativo"
    if "4x" in f or "5x" in f or "4 a 5" in f:
        return "muito ativo"
    if "6x" in f or "7x" in f or "diariamente" in f:
        return "extremamente ativo"
    return "moderadamente ativo" if physical_activity else "levemente ativo"


def physical_data_from_onboarding(onboarding: Mapping[str, Any]) -> PhysicalData:
    level = onboarding.get("activityLevel") or onboarding.get("activity_level")
    frequency = onboarding.get("activityFrequency") or onboarding.get("activity_frequency")
    if not level and frequency:
        level = derive_activity_level(frequency, onboarding.get("physicalActivity"))
        logger.info("activity level derived from frequency %r: %s", frequency, level)
    if not level:
        level = "moderadamente ativo"

    goals = onboarding.get("selectedGoals") or onboarding.get("selected_goals") or []
    goal = onboarding.get("fitnessGoal") or onboarding.get("fitness_goal") or (goals[0] if goals else None)

    return PhysicalData(
        age=onboarding.get("age"),
        weight=onboarding.get("weight"),
        height=onboarding.get("height"),
        sex=onboarding.get("gender") or onboarding.get("sex"),
        activity_level=level,
        goal=goal,
    )


def get_energy_metrics(data: Optional[PhysicalData]) -> EnergyMetrics:
    if data is None:
        return EnergyMetrics(DEFAULT_DAILY_CALORIES, WHO_WEEKLY_MINUTES, DEFAULT_LEVEL, None)
    return EnergyMetrics(
        daily_calories=calculate_adjusted_calories(data) or DEFAULT_DAILY_CALORIES,
        weekly_exercise_target=calculate_weekly_exercise_target(data),
        current_level=data.activity_level or DEFAULT_LEVEL,
        user_data=data,
    )


def get_exercise_recommendation(data: Optional[PhysicalData], stored_goal: Optional[str] = None) -> tuple[int, str]:
    """Profile first, then a previously stored goal, then the WHO default."""
    if data is not None:
        return calculate_weekly_exercise_target(data), data.activity_level or CUSTOM_LEVEL
    if stored_goal:
        try:
            minutes = int(stored_goal)
        except ValueError:
            minutes = 0
        if minutes > 0:
            return minutes, CUSTOM_LEVEL
    return WHO_WEEKLY_MINUTES, DEFAULT_LEVEL
