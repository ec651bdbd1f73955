"""Small numeric helpers shared by the analysis code."""

from __future__ import annotations


def ewma(current: float, next_value: float, alpha: float) -> float:
    """Exponentially weighted moving average step."""
    return alpha * next_value + (1 - alpha) * current


def ipow(base: int, exp: int) -> int:
    """Integer power by repeated squaring; ``exp`` must not be negative."""
    if exp < 0:
        raise ValueError(f"exponent must not be negative, got {exp}")
    result = 1
    while True:
        if exp & 1:
            result *= base
        exp >>= 1
        if not exp:
            return result
        base *= base


def jmap(
    value: float,
    source_min: float,
    source_max: float,
    target_min: float,
    target_max: float,
) -> float:
    """Linearly remap ``value`` from the source range onto the target range."""
    if source_max == source_min:
        raise ValueError("source range must not be empty")
    return target_min + (target_max - target_min) * (value - source_min) / (
        source_max - source_min
    )


def jlimit(lower: float, upper: float, value: float) -> float:
    """Clamp ``value`` into ``[lower, upper]``."""
    if value < lower:
        return lower
    if upper < value:
        return upper
    return value