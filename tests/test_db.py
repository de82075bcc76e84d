from datetime import timedelta
import os, tempfile

import pytest

from nutribot.db import DB
from nutribot.services.exercise import CUSTOM_GOAL_META_KEY
from nutribot.services.profile import exercise_goal, refresh_targets, water_target, week_minutes, week_stats

PROFILE = dict(sex="feminino", age=30, height_cm=165, weight_kg=60,
               activity="moderadamente ativo", goal="perda de peso")


def test_db_flow():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "data", "t.db"))
        u = db.get_or_create_user(1, 10)
        assert u.tg_id == 1
        assert db.get_or_create_user(1, 11).id == u.id

        db.upsert_profile(u.id, **PROFILE)
        db.upsert_targets(u.id, 2000, 100, 25, 2100, 150)
        assert db.get_targets(u.id)["water_ml"] == 2100

        db.add_food_entry(u.id, db.now_iso(), "café", None, "{}", 10, 30, 20, 0.5, 0.1, 0.2)
        low, mid, high = db.day_kcal_sum(u.id, db.today())
        assert (low, mid, high) == (10, 20, 30)
        assert db.meal_days(u.id, db.today(), db.today() + timedelta(days=1)) == [db.today().isoformat()]
        db.close()


def test_water_intake():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "t.db"))
        u = db.get_or_create_user(1, 10)
        today = db.today()
        assert db.get_water_intake(u.id, today, 2000)["consumed_ml"] == 0
        assert db.add_water(u.id, today, 500, 2000)["consumed_ml"] == 500
        assert db.add_water(u.id, today, -1000, 2000)["consumed_ml"] == 0
        assert db.get_water_intake(u.id, today, 2450)["target_ml"] == 2450
        assert len(db.water_history(u.id, today, today + timedelta(days=1))) == 1
        db.close()


def test_exercise_entries():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "t.db"))
        u = db.get_or_create_user(1, 10)
        today = db.today()
        db.add_exercise(u.id, db.now_iso(), "corrida", 30, 360)
        db.add_exercise(u.id, db.now_iso(), "yoga", 20, 70)
        assert db.exercise_minutes(u.id, today, today + timedelta(days=1)) == 50
        assert db.exercise_days(u.id, today, today + timedelta(days=1)) == [today.isoformat()]
        assert week_minutes(db, u.id, today) == 50
        assert db.delete_exercise_since(u.id, today) == 2
        assert db.exercise_minutes(u.id, today, today + timedelta(days=1)) == 0
        db.close()


def test_measurements():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "t.db"))
        u = db.get_or_create_user(1, 10)
        db.add_measurement(u.id, "2024-01-01T10:00:00", weight_kg=82.0, waist_cm=95.0)
        db.add_measurement(u.id, "2024-02-01T10:00:00", weight_kg=80.0)
        assert db.latest_measurements(u.id) == {"weight_kg": 80.0, "waist_cm": 95.0}
        assert len(db.measurement_history(u.id)) == 2
        with pytest.raises(ValueError):
            db.add_measurement(u.id, db.now_iso())
        db.close()


def test_supplements():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "t.db"))
        u = db.get_or_create_user(1, 10)
        other = db.get_or_create_user(2, 20)
        today = db.today()
        sid = db.add_supplement(u.id, "Vitamina D", "2000UI")
        assert not db.list_supplements(u.id, today)[0]["taken"]

        assert db.mark_supplement_taken(u.id, sid, today)
        assert db.mark_supplement_taken(u.id, sid, today)
        assert not db.mark_supplement_taken(other.id, sid, today)
        assert db.list_supplements(u.id, today)[0]["taken"]
        assert db.supplements_taken(u.id, today, today + timedelta(days=1)) == 1

        assert db.deactivate_supplement(u.id, sid)
        assert db.list_supplements(u.id, today) == []
        db.close()


def test_exams_and_meta():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "t.db"))
        u = db.get_or_create_user(1, 10)
        eid = db.add_exam(u.id, "glicemia", "Glicose 126", "1 indicadores encontrados: glicose.")
        db.set_exam_analysis(eid, "### Metabolismo\nglicose elevada")
        assert db.recent_exams(u.id)[0]["analysis"].startswith("###")
        assert db.get_exam(eid, u.id + 1) is None

        assert db.get_meta(u.id, "k") is None
        db.set_meta(u.id, "k", "1")
        db.set_meta(u.id, "k", "2")
        assert db.get_meta(u.id, "k") == "2"
        db.close()


def test_profile_services():
    with tempfile.TemporaryDirectory() as td:
        db = DB(os.path.join(td, "t.db"))
        u = db.get_or_create_user(1, 10)
        assert refresh_targets(db, u.id) is None
        assert exercise_goal(db, u.id) == (150, "moderado")
        assert water_target(db, u.id) == 2000

        db.upsert_profile(u.id, **PROFILE)
        t = refresh_targets(db, u.id)
        assert t.water_ml == 2100
        assert water_target(db, u.id) == 2100
        assert exercise_goal(db, u.id) == (225, "moderadamente ativo")

        db.set_meta(u.id, CUSTOM_GOAL_META_KEY, "300")
        refresh_targets(db, u.id)
        assert exercise_goal(db, u.id) == (300, "personalizado")
        db.set_meta(u.id, CUSTOM_GOAL_META_KEY, "0")
        assert exercise_goal(db, u.id)[0] == 225

        stats = week_stats(db, u.id, db.today())
        assert (stats.water_pct, stats.exercise_days, stats.calorie_days, stats.supplements_pct) == (0.0, 0, 0, 100)
        db.close()
