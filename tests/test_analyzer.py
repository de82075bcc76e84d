import pytest

from nutribot.services.analyzer import analyze, apply_refinement, from_entry, from_vision, to_json


def test_analyze_caption():
    est = analyze("arroz, feijão e frango grelhado com molho, porção média", has_photo=True)
    assert est.components == ["arroz", "feij", "frango"]
    assert est.kcal_low < est.kcal_mid < est.kcal_high
    assert est.kcal_mid == 700
    assert est.needs_refine is True
    assert est.refine_kind == "sauce"
    est2 = apply_refinement(est, "sauce", "low")
    assert est2.kcal_mid == 640
    assert est2.err_high <= est.err_high
    assert est2.needs_refine is False


def test_analyze_fallback():
    est = analyze("algo estranho", has_photo=False)
    assert est.components == ["prato"]
    assert est.kcal_mid == 450
    assert est.needs_refine is False


def test_portion_modifier():
    assert analyze("pizza grande", has_photo=False).kcal_mid == 562


def test_refinement_unknown():
    est = analyze("salada", has_photo=False)
    with pytest.raises(ValueError):
        apply_refinement(est, "sauce", "huge")
    with pytest.raises(ValueError):
        apply_refinement(est, "sauce", "_err")


def test_from_entry_roundtrip():
    est = analyze("tapioca com queijo", has_photo=False)
    row = {"id": 1, "parsed_json": to_json(est), "kcal_low": est.kcal_low, "kcal_high": est.kcal_high,
           "kcal_mid": est.kcal_mid, "conf": est.conf, "err_low": est.err_low, "err_high": est.err_high}
    back = from_entry(row)
    assert back.components == est.components
    assert back.kcal_mid == est.kcal_mid
    assert from_entry({**row, "parsed_json": "not json"}).components == ["prato"]


def test_from_vision_band():
    sure = from_vision(["arroz", "frango"], 600, 0.9)
    unsure = from_vision(["arroz", "frango"], 600, 0.3)
    assert sure.kcal_mid == unsure.kcal_mid == 600
    assert sure.kcal_high - sure.kcal_low < unsure.kcal_high - unsure.kcal_low
    refined = apply_refinement(from_vision(["salada"], 300, 0.7, "sauce"), "sauce", "high")
    assert refined.kcal_mid == 420
