from __future__ import annotations
import re
from dataclasses import dataclass
from datetime import date, timedelta

from nutribot.services.energy import PhysicalData, calories_per_minute

GOAL_META_KEY = "exercise_goal"
CUSTOM_GOAL_META_KEY = "exercise_goal_custom"
DEFAULT_ACTIVITY = "exercício"
MAX_SESSION_MINUTES = 600


@dataclass
class ExerciseSession:
    activity: str
    minutes: int
    kcal: int


@dataclass
class ExerciseProgress:
    done: int
    goal: int
    percent: int
    remaining: int


def parse_session(text: str) -> tuple[int, str]:
    """'/exercicio 30 corrida' -> (30, 'corrida')"""
    m = re.match(r"^\s*(\d{1,4})(?!\d)\s*(?:min\w*)?\s*(.*)$", text or "")
    if not m:
        raise ValueError("minutes expected")
    minutes = int(m.group(1))
    if minutes <= 0 or minutes > MAX_SESSION_MINUTES:
        raise ValueError(f"minutes out of range: {minutes}")
    activity = re.sub(r"\s+", " ", m.group(2)).strip().lower()
    activity = re.sub(r"^de\s+", "", activity) or DEFAULT_ACTIVITY
    return minutes, activity


def estimate_session(data: PhysicalData, activity: str, minutes: int) -> ExerciseSession:
    kcal = int(round(calories_per_minute(data, activity) * minutes))
    return ExerciseSession(activity=activity, minutes=minutes, kcal=kcal)


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_progress(done: int, goal: int) -> ExerciseProgress:
    done = max(0, int(done))
    if goal <= 0:
        return ExerciseProgress(done, 0, 100, 0)
    percent = min(100, int(round(done * 100 / goal)))
    return ExerciseProgress(done=done, goal=goal, percent=percent, remaining=max(0, goal - done))
