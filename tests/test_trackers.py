from datetime import date

import pytest

from nutribot.services.energy import PhysicalData
from nutribot.services.exercise import estimate_session, parse_session, week_progress, week_start
from nutribot.services.water import describe, glasses_to_ml, ml_to_glasses, water_target_ml


def test_water_target():
    assert water_target_ml(70) == 2450
    assert water_target_ml(None) == 2000
    assert water_target_ml("0") == 2000


def test_glasses():
    assert glasses_to_ml(3) == 750
    assert ml_to_glasses(2000) == 8
    assert ml_to_glasses(2100) == 9
    assert ml_to_glasses(-250) == 0


def test_describe_caps_percent():
    text = describe({"consumed_ml": 3000, "target_ml": 2000})
    assert "(100%)" in text
    assert "Copos: 12 de 8" in text


def test_parse_session():
    assert parse_session("30 corrida") == (30, "corrida")
    assert parse_session("45min de Natação Leve") == (45, "natação leve")
    assert parse_session("30min") == (30, "exercício")


@pytest.mark.parametrize("text", ["", "corrida", "0 yoga", "1000", "700 caminhada"])
def test_parse_session_rejects(text):
    with pytest.raises(ValueError):
        parse_session(text)


def test_estimate_session():
    s = estimate_session(PhysicalData(weight=70), "corrida", 30)
    assert s.kcal == 360
    assert estimate_session(PhysicalData(), "corrida", 30).kcal == 0


def test_week_start_monday():
    assert week_start(date(2024, 1, 3)) == date(2024, 1, 1)
    assert week_start(date(2024, 1, 7)) == date(2024, 1, 1)
    assert week_start(date(2024, 1, 8)) == date(2024, 1, 8)


def test_week_progress():
    p = week_progress(90, 150)
    assert (p.percent, p.remaining) == (60, 60)
    done = week_progress(200, 150)
    assert (done.percent, done.remaining) == (100, 0)
