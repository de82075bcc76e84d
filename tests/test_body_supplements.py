import pytest

from nutribot.services.body import bmi, bmi_category, parse_measurements, waist_hip_ratio
from nutribot.services.supplements import adherence_pct, parse_supplement


def test_parse_measurements():
    assert parse_measurements("peso 80,5 cintura 92") == {"weight_kg": 80.5, "waist_cm": 92.0}
    assert parse_measurements("gordura: 22%") == {"body_fat_pct": 22.0}


@pytest.mark.parametrize("text", ["", "altura 180", "peso 900"])
def test_parse_measurements_rejects(text):
    with pytest.raises(ValueError):
        parse_measurements(text)


def test_bmi():
    assert bmi(80, 180) == 24.7
    assert bmi_category(24.7) == "peso adequado"
    assert bmi_category(31) == "obesidade"
    assert bmi(None, 180) is None
    assert bmi_category(None) == "sem dados"


def test_waist_hip_ratio():
    assert waist_hip_ratio(80, 100) == 0.8
    assert waist_hip_ratio(80, None) is None


def test_parse_supplement():
    assert parse_supplement("Vitamina D 2000UI") == ("Vitamina D", "2000UI")
    assert parse_supplement("Ômega 3 1000 mg") == ("Ômega 3", "1000 mg")
    assert parse_supplement("Creatina") == ("Creatina", None)
    with pytest.raises(ValueError):
        parse_supplement("   ")


def test_adherence_pct():
    assert adherence_pct(7, 2, 7) == 50
    assert adherence_pct(20, 2, 7) == 100
    assert adherence_pct(0, 0, 7) == 0
