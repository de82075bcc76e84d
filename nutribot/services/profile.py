from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import Optional

from nutribot.db import DB
from nutribot.services.energy import CUSTOM_LEVEL, PhysicalData, get_exercise_recommendation
from nutribot.services.exercise import CUSTOM_GOAL_META_KEY, GOAL_META_KEY, week_start
from nutribot.services.motivation import WeekStats
from nutribot.services.supplements import adherence_pct
from nutribot.services.targets import DailyTargets, compute_targets, profile_to_physical
from nutribot.services.water import water_target_ml

logger = logging.getLogger(__name__)


def physical_data(db: DB, user_id: int) -> Optional[PhysicalData]:
    profile = db.get_profile(user_id)
    return profile_to_physical(profile) if profile else None


def refresh_targets(db: DB, user_id: int) -> Optional[DailyTargets]:
    data = physical_data(db, user_id)
    if data is None:
        return None
    t = compute_targets(data)
    db.upsert_targets(user_id, kcal_target=t.kcal, protein_g=t.protein_g, fiber_g=t.fiber_g,
                      water_ml=t.water_ml, weekly_exercise_min=t.weekly_exercise_min)
    # remembered as the fallback goal if the profile is ever unavailable
    db.set_meta(user_id, GOAL_META_KEY, str(t.weekly_exercise_min))
    logger.info("targets updated for user %s: %s kcal, %s min/week", user_id, t.kcal, t.weekly_exercise_min)
    return t


def exercise_goal(db: DB, user_id: int) -> tuple[int, str]:
    """A goal the user set by hand wins over the profile-based recommendation."""
    custom = db.get_meta(user_id, CUSTOM_GOAL_META_KEY)
    if custom and custom.isdigit() and int(custom) > 0:
        return int(custom), CUSTOM_LEVEL
    return get_exercise_recommendation(physical_data(db, user_id), db.get_meta(user_id, GOAL_META_KEY))


def water_target(db: DB, user_id: int) -> int:
    targets = db.get_targets(user_id)
    if targets:
        return int(targets["water_ml"])
    return water_target_ml(None)


def week_stats(db: DB, user_id: int, today: date) -> WeekStats:
    """Rolling 7 days ending today."""
    start, end = today - timedelta(days=6), today + timedelta(days=1)

    water = db.water_history(user_id, start, end)
    water_pcts = [min(100.0, r["consumed_ml"] * 100 / r["target_ml"]) for r in water if r["target_ml"] > 0]
    water_pct = sum(water_pcts) / 7 if water_pcts else 0.0

    supplements = len(db.list_supplements(user_id, today))
    taken = db.supplements_taken(user_id, start, end)
    # without supplements there is nothing to skip
    supp_pct = adherence_pct(taken, supplements, 7) if supplements else 100

    return WeekStats(
        water_pct=water_pct,
        exercise_days=len(db.exercise_days(user_id, start, end)),
        calorie_days=len(db.meal_days(user_id, start, end)),
        supplements_pct=supp_pct,
    )


def week_minutes(db: DB, user_id: int, today: date) -> int:
    return db.exercise_minutes(user_id, week_start(today), today + timedelta(days=1))
