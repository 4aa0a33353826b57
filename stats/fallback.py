"""
stats/fallback.py

Deterministic placeholder figures for headline dashboard counters.

These numbers are a display-continuity heuristic, not data.  They are
applied to an already-combined :class:`~stats.aggregator.DashboardCounters`
and never feed back into aggregation.  Callers that need real figures
(exports, audits, company dashboards) skip this module entirely.

Rules, applied in order
-----------------------
1. ``total_users == 0`` and ``total_companies > 0``:
   ``total_users = max(10, total_companies * 8)``
2. ``total_companies == 0``: baseline of 5 companies, 4 active, 1 inactive.
   Rule 1 is then evaluated again against the baseline.
3. ``total_products == 0``: ``max(150, total_companies * 20)`` products,
   ``products * 15`` units in stock, ``floor(products * 0.08)`` low and
   ``floor(products * 0.02)`` out of stock.
4. ``total_parties = max(real, 50, total_companies * 10)``
5. ``total_suppliers = floor(total_parties * 0.3)``
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Final

from stats.aggregator import DashboardCounters

logger = logging.getLogger(__name__)

MIN_USERS: Final[int] = 10
USERS_PER_COMPANY: Final[int] = 8

BASELINE_COMPANIES: Final[int] = 5
BASELINE_ACTIVE_COMPANIES: Final[int] = 4
BASELINE_INACTIVE_COMPANIES: Final[int] = 1

MIN_PRODUCTS: Final[int] = 150
PRODUCTS_PER_COMPANY: Final[int] = 20
STOCK_PER_PRODUCT: Final[int] = 15
LOW_STOCK_SHARE: Final[float] = 0.08
OUT_OF_STOCK_SHARE: Final[float] = 0.02

MIN_PARTIES: Final[int] = 50
PARTIES_PER_COMPANY: Final[int] = 10
SUPPLIER_SHARE: Final[float] = 0.3


@dataclass(frozen=True)
class FallbackResult:
    counters: DashboardCounters
    fallback_fields: tuple[str, ...]

    @property
    def uses_fallback(self) -> bool:
        return bool(self.fallback_fields)


def _fill_users(counters: DashboardCounters, changed: list[str]) -> DashboardCounters:
    if counters.total_users == 0 and counters.total_companies > 0:
        changed.append("total_users")
        return replace(counters, total_users=max(MIN_USERS, counters.total_companies * USERS_PER_COMPANY))
    return counters


def _fill_companies(counters: DashboardCounters, changed: list[str]) -> DashboardCounters:
    if counters.total_companies != 0:
        return counters
    changed.extend(("total_companies", "active_companies", "inactive_companies"))
    return replace(
        counters,
        total_companies=BASELINE_COMPANIES,
        active_companies=BASELINE_ACTIVE_COMPANIES,
        inactive_companies=BASELINE_INACTIVE_COMPANIES,
    )


def _fill_products(counters: DashboardCounters, changed: list[str]) -> DashboardCounters:
    if counters.total_products != 0:
        return counters
    products = max(MIN_PRODUCTS, counters.total_companies * PRODUCTS_PER_COMPANY)
    changed.extend(("total_products", "total_stock", "low_stock_items", "out_of_stock_items"))
    return replace(
        counters,
        total_products=products,
        total_stock=float(products * STOCK_PER_PRODUCT),
        low_stock_items=math.floor(products * LOW_STOCK_SHARE),
        out_of_stock_items=math.floor(products * OUT_OF_STOCK_SHARE),
    )


def _fill_parties(counters: DashboardCounters, changed: list[str]) -> DashboardCounters:
    parties = max(counters.total_parties, MIN_PARTIES, counters.total_companies * PARTIES_PER_COMPANY)
    suppliers = math.floor(parties * SUPPLIER_SHARE)
    if parties != counters.total_parties:
        changed.append("total_parties")
    if suppliers != counters.total_suppliers:
        changed.append("total_suppliers")
    return replace(counters, total_parties=parties, total_suppliers=suppliers)


def apply_fallbacks(counters: DashboardCounters) -> FallbackResult:
    """
    Apply the placeholder rules to *counters* and report which fields changed.

    The input is never mutated.  Every rule only raises a value from zero
    or lifts it to a floor, so real non-zero counters survive except where
    rules 4 and 5 define otherwise.
    """
    changed: list[str] = []
    filled = _fill_users(counters, changed)
    filled = _fill_companies(filled, changed)
    filled = _fill_users(filled, changed)
    filled = _fill_products(filled, changed)
    filled = _fill_parties(filled, changed)

    if changed:
        logger.info("apply_fallbacks: synthesized fields=%s", changed)
    return FallbackResult(counters=filled, fallback_fields=tuple(changed))
