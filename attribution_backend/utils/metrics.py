"""Pure metric math helpers used by the spend join and hierarchy roll-ups."""
from __future__ import annotations


def guarded_ratio(numerator: float | int, denominator: float | int | None) -> float:
    """Ratio that is zero unless the denominator is strictly positive."""
    if denominator is None or denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator)


def ctr_pct(clicks: float | int, impressions: float | int) -> float:
    """Click-through rate as a percentage (clicks * 100 / impressions)."""
    return guarded_ratio(float(clicks) * 100.0, impressions)


__all__ = ["guarded_ratio", "ctr_pct"]
