"""Numeric helpers shared by the analytics services."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero (2.5 -> 3), unlike Python's banker's rounding."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_int(value: float) -> int:
    """Round half up to an int."""
    return int(round_half_up(value))


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def mean(values: list[float]) -> float | None:
    """Arithmetic mean, or None for an empty list."""
    if not values:
        return None
    return sum(values) / len(values)
