# apps/domains/results/utils/numbers.py
"""
Decimal rounding helpers (half-up, not banker's rounding).

- round2: 출력 값 (normalized score, averages, conversions)
- round4: 저장 전 정규화 (grading scale / band bounds)
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

TWO_DP = Decimal("0.01")
FOUR_DP = Decimal("0.0001")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value, places: Decimal = TWO_DP) -> Decimal:
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def round2(value) -> Decimal:
    return round_half_up(value, TWO_DP)


def round4(value) -> Decimal:
    return round_half_up(value, FOUR_DP)


def as_float(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def normalize_on_20(score, max_score) -> Decimal:
    """round2(score / max_score * 20)"""
    return round2(to_decimal(score) / to_decimal(max_score) * 20)
