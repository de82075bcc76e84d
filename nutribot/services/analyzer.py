from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, asdict
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class MealEstimate:
    components: list[str]
    kcal_low: int
    kcal_high: int
    kcal_mid: int
    conf: float
    err_low: float
    err_high: float
    note: str
    needs_refine: bool
    refine_kind: Optional[str]  # 'sauce'|'oil'|'portion'|None


# typical portion kcal per keyword stem
BASE_KCAL = {
    "arroz": 200,
    "feij": 140,
    "frango": 240,
    "peixe": 220,
    "carne": 320,
    "bife": 300,
    "porco": 350,
    "ovo": 150,
    "omelete": 250,
    "batata": 200,
    "mandioca": 250,
    "macarr": 320,
    "massa": 320,
    "lasanha": 450,
    "salada": 120,
    "legume": 100,
    "queijo": 180,
    "pão": 150,
    "pao": 150,
    "tapioca": 220,
    "cuscuz": 200,
    "café": 20,
    "cafe": 20,
    "leite": 90,
    "iogurte": 140,
    "fruta": 80,
    "banana": 100,
    "maçã": 80,
    "aveia": 150,
    "sopa": 200,
    "sobremesa": 350,
    "bolo": 350,
    "pizza": 450,
    "hamb": 520,
    "lanche": 400,
    "açaí": 400,
    "acai": 400,
}

HIGH_RISK = [
    ("cremoso", "sauce"),
    ("molho", "sauce"),
    ("maionese", "sauce"),
    ("óleo", "oil"),
    ("oleo", "oil"),
    ("azeite", "oil"),
    ("frit", "oil"),
    ("queijo", "portion"),
    ("castanha", "portion"),
]
RISK_EXTRA = {"sauce": 120, "oil": 100, "portion": 80}

PORTION_MOD = {
    "pouc": 0.85,
    "pequen": 0.85,
    "meia": 0.75,
    "normal": 1.0,
    "médi": 1.0,
    "grande": 1.25,
    "muit": 1.2,
    "dobr": 1.8,
}

# kind -> value -> (kcal shift or multiplier, error reduction)
REFINEMENTS = {
    "sauce": {"low": ("+", -60), "mid": ("+", 0), "high": ("+", 120), "_err": 0.05},
    "oil": {"none": ("+", -80), "little": ("+", 0), "1tbsp": ("+", 90), "_err": 0.05},
    "portion": {"small": ("*", 0.85), "normal": ("*", 1.0), "large": ("*", 1.25), "_err": 0.04},
}

DEFAULT_KCAL = 450
DEFAULT_COMPONENT = "prato"


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", (text or "").lower()).strip()


def _band(kcal: int, err: float) -> tuple[int, int]:
    low = max(0, int(round(kcal * (1 - err))))
    high = max(low + 1, int(round(kcal * (1 + err))))
    return low, high


def analyze(text: str, has_photo: bool) -> MealEstimate:
    t = _normalize(text)
    comps = [k for k in BASE_KCAL if k in t]
    score = sum(BASE_KCAL[k] for k in comps)

    if not comps:
        score = DEFAULT_KCAL
        comps = [DEFAULT_COMPONENT]
        conf = 0.35
    else:
        conf = 0.55 + min(0.35, 0.08 * len(comps))

    portion_factor = next((f for word, f in PORTION_MOD.items() if word in t), 1.0)
    refine_kind = next((kind for kw, kind in HIGH_RISK if kw in t), None)
    extra = RISK_EXTRA.get(refine_kind, 0)
    base = int(round((score + extra) * portion_factor))

    # error model
    err = 0.22 if has_photo else 0.28
    if refine_kind:
        err += 0.06
        conf -= 0.05

    conf = max(0.2, min(0.9, conf))
    err_low = max(0.08, min(0.55, err - 0.05))
    err_high = max(0.10, min(0.60, err + 0.07))
    kcal_low, kcal_high = _band(base, err_high)

    return MealEstimate(
        components=comps,
        kcal_low=kcal_low,
        kcal_high=kcal_high,
        kcal_mid=max(0, base),
        conf=conf,
        err_low=err_low,
        err_high=err_high,
        note="Estimativa pela descrição" + (" + foto" if has_photo else ""),
        needs_refine=refine_kind is not None,
        refine_kind=refine_kind,
    )


def apply_refinement(est: MealEstimate, kind: str, val: str) -> MealEstimate:
    options = REFINEMENTS.get(kind)
    if not options or val not in options or val == "_err":
        raise ValueError(f"unknown refinement {kind}:{val}")

    op, amount = options[val]
    kcal = est.kcal_mid + amount if op == "+" else int(round(est.kcal_mid * amount))
    kcal = max(0, int(kcal))
    err = max(0.12, est.err_high - options["_err"])
    kcal_low, kcal_high = _band(kcal, err)

    return MealEstimate(
        components=est.components,
        kcal_low=kcal_low,
        kcal_high=kcal_high,
        kcal_mid=kcal,
        conf=min(0.95, est.conf + 0.05),
        err_low=max(0.06, err - 0.04),
        err_high=err,
        note=est.note + f" | ajuste:{kind}:{val}",
        needs_refine=False,
        refine_kind=None,
    )


def from_vision(components: list[str], kcal: int, conf: float, refine_kind: Optional[str] = None) -> MealEstimate:
    """Estimate from a model that saw the photo; the band is narrower than for keywords."""
    if refine_kind not in REFINEMENTS:
        refine_kind = None
    kcal = max(0, int(kcal))
    conf = max(0.2, min(0.95, float(conf)))
    err = 0.15 + (0.9 - min(conf, 0.9)) * 0.2
    if refine_kind:
        err += 0.04
    err_low = max(0.08, err - 0.05)
    err_high = min(0.60, err + 0.05)
    kcal_low, kcal_high = _band(kcal, err_high)
    return MealEstimate(
        components=components or [DEFAULT_COMPONENT],
        kcal_low=kcal_low,
        kcal_high=kcal_high,
        kcal_mid=kcal,
        conf=conf,
        err_low=err_low,
        err_high=err_high,
        note="Estimativa pela foto (IA)",
        needs_refine=refine_kind is not None,
        refine_kind=refine_kind,
    )


def to_json(est: MealEstimate) -> str:
    d = asdict(est)
    return json.dumps({k: d[k] for k in ("components", "note", "needs_refine", "refine_kind")}, ensure_ascii=False)


def from_entry(entry: dict) -> MealEstimate:
    """Rebuild an estimate from a stored food_entries row."""
    try:
        meta = json.loads(entry.get("parsed_json") or "{}")
    except json.JSONDecodeError:
        logger.warning("bad parsed_json in food entry %s", entry.get("id"))
        meta = {}
    return MealEstimate(
        components=meta.get("components") or [DEFAULT_COMPONENT],
        kcal_low=entry["kcal_low"],
        kcal_high=entry["kcal_high"],
        kcal_mid=entry["kcal_mid"],
        conf=entry["conf"],
        err_low=entry["err_low"],
        err_high=entry["err_high"],
        note=meta.get("note", ""),
        needs_refine=False,
        refine_kind=None,
    )
