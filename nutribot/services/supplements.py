from __future__ import annotations
import re

DOSAGE = re.compile(
    r"\s+(\d+(?:[.,]\d+)?\s*(?:mg|mcg|µg|g|ui|iu|ml|caps?|cápsulas?|comprimidos?|gotas?)\b.*)$",
    re.IGNORECASE,
)
MAX_NAME = 60


def parse_supplement(text: str) -> tuple[str, str | None]:
    """'Vitamina D 2000UI' -> ('Vitamina D', '2000UI')"""
    t = re.sub(r"\s+", " ", (text or "")).strip()
    if not t:
        raise ValueError("supplement name expected")
    m = DOSAGE.search(t)
    if m:
        name, dosage = t[:m.start()].strip(), m.group(1).strip()
    else:
        name, dosage = t, None
    if not name or len(name) > MAX_NAME:
        raise ValueError("bad supplement name")
    return name, dosage


def adherence_pct(taken: int, supplements: int, days: int) -> int:
    expected = supplements * days
    if expected <= 0:
        return 0
    return min(100, int(round(taken * 100 / expected)))
