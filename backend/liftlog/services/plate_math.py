"""Gym plate slang ("2 plates", "1 plate and a 25") to total bar weight."""
from __future__ import annotations

import re
from dataclasses import dataclass

from liftlog.settings import get_settings

_COUNT_WORDS = {"a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6}

_PLATES = re.compile(r"\b(\d+|an?|one|two|three|four|five|six)\s*plates?\b", re.IGNORECASE)
_EXTRA = re.compile(
    r"\b(?:and|plus|with)\s+(?:an?\s+)?(\d+(?:\.\d+)?)(?!\d|\.\d|\s*plates?\b)s?",
    re.IGNORECASE,
)
_DIRECT = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:lbs?|pounds?)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class PlateMathResult:
    total_weight: int
    breakdown: str


def _fmt(w: float) -> str:
    return f"{w:g}"


def count_plates(text: str) -> int:
    m = _PLATES.search(text)
    if not m:
        return 0
    word = m.group(1).lower()
    return _COUNT_WORDS[word] if word in _COUNT_WORDS else int(word)


def extra_plates(text: str) -> list[float]:
    return [float(v) for v in _EXTRA.findall(text)]


def calculate(text: str, *, bar_weight: float | None = None, plate_weight: float | None = None) -> PlateMathResult:
    s = get_settings()
    bar = s.BAR_WEIGHT_LBS if bar_weight is None else bar_weight
    plate = s.PLATE_WEIGHT_LBS if plate_weight is None else plate_weight

    plates = count_plates(text)
    extras = extra_plates(text)

    if plates == 0 and not extras:
        m = _DIRECT.match(text)
        if m:
            direct = int(float(m.group(1)))
            return PlateMathResult(total_weight=direct, breakdown=f"{direct} lbs total")

    total = bar
    parts = [f"Bar: {_fmt(bar)} lbs"]
    if plates:
        # A plate goes on each side of the bar
        plates_weight = plates * plate * 2
        total += plates_weight
        parts.append(f"{plates} plate{'' if plates == 1 else 's'} ({_fmt(plates_weight)} lbs)")
    for size in extras:
        total += size * 2
        parts.append(f"2x{_fmt(size)} lbs")

    return PlateMathResult(total_weight=int(total), breakdown=" + ".join(parts))
