from __future__ import annotations
import re
from typing import Optional

from nutribot.services.energy import to_number

# alias -> column
FIELDS = {
    "peso": "weight_kg",
    "weight": "weight_kg",
    "cintura": "waist_cm",
    "waist": "waist_cm",
    "quadril": "hip_cm",
    "hip": "hip_cm",
    "gordura": "body_fat_pct",
    "bf": "body_fat_pct",
}

LIMITS = {
    "weight_kg": (30, 300),
    "waist_cm": (40, 200),
    "hip_cm": (50, 200),
    "body_fat_pct": (2, 70),
}

PAIR = re.compile(r"([a-zçãé]+)\s*[:=]?\s*(\d+(?:[.,]\d+)?)\s*%?", re.IGNORECASE)


def parse_measurements(text: str) -> dict[str, float]:
    """'peso 80,5 cintura 92' -> {'weight_kg': 80.5, 'waist_cm': 92.0}"""
    out: dict[str, float] = {}
    for word, raw in PAIR.findall(text or ""):
        col = FIELDS.get(word.lower())
        if col is None:
            raise ValueError(f"unknown measurement: {word}")
        val = float(raw.replace(",", "."))
        lo, hi = LIMITS[col]
        if not lo <= val <= hi:
            raise ValueError(f"{word} out of range: {val}")
        out[col] = val
    if not out:
        raise ValueError("no measurements found")
    return out


def bmi(weight_kg, height_cm) -> Optional[float]:
    w, h = to_number(weight_kg), to_number(height_cm)
    if w is None or h is None:
        return None
    m = h / 100
    return round(w / (m * m), 1)


def bmi_category(value: Optional[float]) -> str:
    if value is None:
        return "sem dados"
    if value < 18.5:
        return "abaixo do peso"
    if value < 25:
        return "peso adequado"
    if value < 30:
        return "sobrepeso"
    return "obesidade"


def waist_hip_ratio(waist_cm, hip_cm) -> Optional[float]:
    w, h = to_number(waist_cm), to_number(hip_cm)
    if w is None or h is None:
        return None
    return round(w / h, 2)
