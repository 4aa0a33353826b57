"""
stats/snapshot.py

Public entry point of the statistics engine.

``build_statistics`` runs one aggregation pass over already-fetched
sources: normalize, aggregate, combine with admin summaries, optionally
fill placeholders, and assemble a :class:`StatisticsSnapshot`.  The pass
is synchronous, performs no I/O and is deterministic for a fixed ``now``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from stats.aggregator import (
    DEFAULT_GROWTH_MONTHS,
    DashboardCounters,
    aggregate,
    combine,
    weekly_activity,
)
from stats.fallback import apply_fallbacks
from stats.normalizer import (
    normalize_companies,
    normalize_company_summary,
    normalize_invoices,
    normalize_item_stats,
    normalize_items,
    normalize_low_stock_count,
    normalize_parties,
    normalize_user_summary,
)
from stats.ratios import growth_rate, stock_health, subscription_rate
from stats.records import DashboardSources, GrowthPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatisticsSnapshot:
    """
    Immutable output of one aggregation pass.

    Every field is always populated.  Distributions are read-only mappings
    and growth series are tuples of :class:`GrowthPoint`, oldest first.
    ``fallback_fields`` names the counters that hold placeholder values.
    """

    generated_at: datetime

    # users and companies
    total_users: int
    total_companies: int
    active_companies: int
    inactive_companies: int
    companies_with_subscription: int
    recent_companies: int
    users_by_role: Mapping[str, int]
    weekly_activity: tuple[int, ...]

    # inventory
    total_items: int
    total_products: int
    total_services: int
    active_items: int
    inactive_items: int
    total_stock: float
    total_stock_value: float
    in_stock_items: int
    low_stock_items: int
    out_of_stock_items: int

    # invoices
    total_invoices: int
    sales_invoices: int
    purchase_invoices: int
    total_amount: float
    sales_amount: float
    purchase_amount: float
    paid_amount: float
    pending_amount: float
    overdue_amount: float
    paid_invoices: int
    pending_invoices: int
    overdue_invoices: int

    # parties
    total_parties: int
    total_customers: int
    total_suppliers: int
    total_vendors: int
    active_parties: int
    inactive_parties: int
    gst_registered_parties: int
    total_outstanding: float
    positive_balance_parties: int
    negative_balance_parties: int

    # distributions and series
    business_type_distribution: Mapping[str, int]
    state_distribution: Mapping[str, int]
    category_distribution: Mapping[str, int]
    companies_growth: tuple[GrowthPoint, ...]
    invoices_growth: tuple[GrowthPoint, ...]
    users_growth: tuple[GrowthPoint, ...]

    # ratios (None when the denominator is zero)
    user_growth_rate: Optional[float]
    company_growth_rate: Optional[float]
    subscription_rate: Optional[float]
    stock_critical_pct: Optional[float]
    stock_warning_pct: Optional[float]
    stock_good_pct: Optional[float]

    # provenance
    failed_sources: tuple[str, ...]
    uses_fallback: bool
    fallback_fields: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible copy of the snapshot."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, GrowthPoint):
        return {"month": value.month, "count": value.count}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    return value


def _readonly(mapping: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping))


def build_statistics(
    sources: DashboardSources,
    *,
    now: datetime | None = None,
    apply_fallback: bool = True,
    growth_months: int = DEFAULT_GROWTH_MONTHS,
) -> StatisticsSnapshot:
    """
    Build a :class:`StatisticsSnapshot` from fetched *sources*.

    Parameters
    ----------
    sources:
        One :class:`SourceResult` per backend source; failed and missing
        sources are treated as empty.
    now:
        Reference instant for overdue and weekly activity.  Defaults to the
        current UTC time; pass a fixed value for reproducible output.
    apply_fallback:
        When False, every counter is a real figure and ``fallback_fields``
        is empty.
    growth_months:
        Trailing months kept in growth series.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    invoices = normalize_invoices(sources.sales, sources.purchases)
    items = normalize_items(sources.items)
    parties = normalize_parties(sources.parties)
    companies = normalize_companies(sources.companies)
    users = normalize_user_summary(sources.user_stats)

    partial = aggregate(invoices, items, parties, now, companies, growth_months=growth_months)
    counters: DashboardCounters = combine(
        partial,
        users=users,
        company_summary=normalize_company_summary(sources.companies, sources.company_stats),
        item_stats=normalize_item_stats(sources.item_stats),
        low_stock_count=normalize_low_stock_count(sources.low_stock),
    )

    fallback_fields: tuple[str, ...] = ()
    if apply_fallback:
        filled = apply_fallbacks(counters)
        counters, fallback_fields = filled.counters, filled.fallback_fields

    failed = sources.failed()
    if failed:
        logger.warning("build_statistics: failed sources=%s", list(failed))

    users_growth = tuple(GrowthPoint(month=month, count=count) for month, count in users.monthly_growth)
    if growth_months > 0:
        users_growth = users_growth[-growth_months:]
    health = stock_health(
        counters.out_of_stock_items,
        counters.low_stock_items,
        counters.in_stock_items,
        counters.total_products,
    )
    invoice_totals = partial.invoices
    stock = partial.stock
    party_totals = partial.parties

    return StatisticsSnapshot(
        generated_at=now,
        total_users=counters.total_users,
        total_companies=counters.total_companies,
        active_companies=counters.active_companies,
        inactive_companies=counters.inactive_companies,
        companies_with_subscription=counters.companies_with_subscription,
        recent_companies=counters.recent_companies,
        users_by_role=_readonly(users.users_by_role),
        weekly_activity=weekly_activity(users.recent_user_timestamps, now),
        total_items=counters.total_items,
        total_products=counters.total_products,
        total_services=counters.total_services,
        active_items=stock.active_items,
        inactive_items=stock.inactive_items,
        total_stock=counters.total_stock,
        total_stock_value=stock.total_stock_value,
        in_stock_items=counters.in_stock_items,
        low_stock_items=counters.low_stock_items,
        out_of_stock_items=counters.out_of_stock_items,
        total_invoices=invoice_totals.total_invoices,
        sales_invoices=invoice_totals.sales_invoices,
        purchase_invoices=invoice_totals.purchase_invoices,
        total_amount=invoice_totals.total_amount,
        sales_amount=invoice_totals.sales_amount,
        purchase_amount=invoice_totals.purchase_amount,
        paid_amount=invoice_totals.paid_amount,
        pending_amount=invoice_totals.pending_amount,
        overdue_amount=invoice_totals.overdue_amount,
        paid_invoices=invoice_totals.paid_invoices,
        pending_invoices=invoice_totals.pending_invoices,
        overdue_invoices=invoice_totals.overdue_invoices,
        total_parties=counters.total_parties,
        total_customers=party_totals.customers,
        total_suppliers=counters.total_suppliers,
        total_vendors=party_totals.vendors,
        active_parties=party_totals.active_parties,
        inactive_parties=party_totals.inactive_parties,
        gst_registered_parties=party_totals.gst_registered,
        total_outstanding=party_totals.total_outstanding,
        positive_balance_parties=party_totals.positive_balance,
        negative_balance_parties=party_totals.negative_balance,
        business_type_distribution=_readonly(counters.business_type_distribution),
        state_distribution=_readonly(counters.state_distribution),
        category_distribution=_readonly(counters.category_distribution),
        companies_growth=partial.companies_growth,
        invoices_growth=partial.invoices_growth,
        users_growth=users_growth,
        user_growth_rate=growth_rate(users_growth),
        company_growth_rate=growth_rate(partial.companies_growth),
        subscription_rate=subscription_rate(counters.companies_with_subscription, counters.total_companies),
        stock_critical_pct=health.critical,
        stock_warning_pct=health.warning,
        stock_good_pct=health.good,
        failed_sources=failed,
        uses_fallback=bool(fallback_fields),
        fallback_fields=fallback_fields,
    )
