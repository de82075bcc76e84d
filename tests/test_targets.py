from nutribot.services.energy import PhysicalData
from nutribot.services.targets import compute_targets, profile_to_physical


def test_targets_from_profile():
    profile = {"sex": "masculino", "age": 30, "height_cm": 180, "weight_kg": 80,
               "activity": "moderadamente ativo", "goal": "perda de peso"}
    t = compute_targets(profile_to_physical(profile))
    assert t.kcal == 2345
    assert t.protein_g == 144
    assert t.fiber_g == 30
    assert t.water_ml == 2800
    assert t.weekly_exercise_min == 225


def test_targets_sane_female():
    t = compute_targets(PhysicalData(age=32, weight=65, height=165, sex="feminino",
                                     activity_level="moderadamente ativo", goal="manutenção"))
    assert 1200 < t.kcal < 2600
    assert 80 < t.protein_g < 180
    assert t.fiber_g == 25


def test_targets_without_profile():
    t = compute_targets(PhysicalData())
    assert t.kcal == 2000
    assert t.water_ml == 2000
    assert t.weekly_exercise_min == 150
