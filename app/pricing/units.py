"""Package size normalization to a price per 100 g or 100 ml."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

GRAM_UNITS = frozenset({"g", "gr", "gram", "grams"})
KILOGRAM_UNITS = frozenset({"kg", "kilos"})
MILLILITER_UNITS = frozenset({"ml"})
LITER_UNITS = frozenset({"l", "lt", "litro", "litros"})


def _coerce_size(size_value: Any) -> Optional[float]:
    if size_value is None or isinstance(size_value, bool):
        return None
    try:
        size = float(size_value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(size) or size <= 0:
        return None
    return size


def _canonical_unit(size_unit: Any) -> Optional[str]:
    if size_unit is None:
        return None
    unit = str(size_unit).strip().lower()
    if unit in GRAM_UNITS:
        return "g"
    if unit in KILOGRAM_UNITS:
        return "kg"
    if unit in MILLILITER_UNITS:
        return "ml"
    if unit in LITER_UNITS:
        return "l"
    return None


def _round_cents(value: float) -> float:
    # Half-cents round up on the exact binary value of the float.
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def reference_unit(size_unit: Any) -> Optional[str]:
    """Return the label of the reference quantity a unit normalizes to."""

    unit = _canonical_unit(size_unit)
    if unit in {"g", "kg"}:
        return "100g"
    if unit in {"ml", "l"}:
        return "100ml"
    return None


def normalize_price(size_value: Any, size_unit: Any, price: float) -> Optional[float]:
    """Convert a package price into a price per 100 g (mass) or 100 ml (volume).

    Returns ``None`` when the size is missing or not a positive number, or when
    the unit is not one of the recognized mass/volume spellings.
    """

    size = _coerce_size(size_value)
    unit = _canonical_unit(size_unit)
    if size is None or unit is None:
        return None

    if unit in {"g", "ml"}:
        value = price / (size / 100)
    else:
        value = (price / (size * 1000)) * 100
    return _round_cents(value)


__all__ = ["normalize_price", "reference_unit"]
