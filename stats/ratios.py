"""
stats/ratios.py

Percentage and growth helpers for dashboard cards.

All functions return ``None`` when the denominator is zero or a value
cannot be computed, so no caller ever sees NaN or a ZeroDivisionError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from stats.records import GrowthPoint

_SENTINEL = None  # returned when computation is not possible
_DIGITS = 1


def safe_percentage(part: float, whole: float) -> Optional[float]:
    """``part / whole * 100`` rounded to one decimal, or ``None`` if *whole* is 0."""
    if whole == 0:
        return _SENTINEL
    return round(part / whole * 100.0, _DIGITS)


def growth_rate(series: Sequence[GrowthPoint]) -> Optional[float]:
    """
    Month-over-month growth between the last two buckets of *series*.

    Formula: ``(current - previous) / previous * 100``.
    Returns ``None`` with fewer than two buckets or a zero previous bucket.
    """
    if len(series) < 2:
        return _SENTINEL
    previous = series[-2].count
    current = series[-1].count
    if previous == 0:
        return _SENTINEL
    return round((current - previous) / previous * 100.0, _DIGITS)


def subscription_rate(companies_with_subscription: int, total_companies: int) -> Optional[float]:
    """Share of companies holding a subscription, in percent."""
    return safe_percentage(companies_with_subscription, total_companies)


@dataclass(frozen=True)
class StockHealth:
    """Share of products in each stock bucket; ``None`` when there are no products."""

    critical: Optional[float]
    warning: Optional[float]
    good: Optional[float]


def stock_health(
    out_of_stock: int,
    low_stock: int,
    in_stock: int,
    total_products: int,
) -> StockHealth:
    return StockHealth(
        critical=safe_percentage(out_of_stock, total_products),
        warning=safe_percentage(low_stock, total_products),
        good=safe_percentage(in_stock, total_products),
    )
