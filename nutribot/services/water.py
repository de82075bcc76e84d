from __future__ import annotations
import math
from typing import Any

from nutribot.services.energy import to_number

ML_PER_KG = 35
GLASS_ML = 250
DEFAULT_TARGET_ML = 2000


def water_target_ml(weight_kg: Any) -> int:
    w = to_number(weight_kg)
    if w is None:
        return DEFAULT_TARGET_ML
    return int(round(w * ML_PER_KG))


def ml_to_glasses(ml: int) -> int:
    return math.ceil(max(0, ml) / GLASS_ML)


def glasses_to_ml(glasses: int) -> int:
    return glasses * GLASS_ML


def progress_bar(done: int, total: int, width: int = 10) -> str:
    if total <= 0:
        return "░" * width
    filled = min(width, int(width * done / total))
    return "█" * filled + "░" * (width - filled)


def describe(record: dict) -> str:
    consumed = int(record["consumed_ml"])
    target = int(record["target_ml"])
    pct = 0 if target <= 0 else min(100, int(round(consumed * 100 / target)))
    return (
        f"Água hoje: {consumed} / {target} ml ({pct}%)\n"
        f"{progress_bar(consumed, target)}\n"
        f"Copos: {ml_to_glasses(consumed)} de {ml_to_glasses(target)} (copo = {GLASS_ML} ml)"
    )
