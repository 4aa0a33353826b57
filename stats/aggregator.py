"""
stats/aggregator.py

Reduce canonical records into counters, sums and groupings.

Everything here is a pure function of its arguments: no I/O, no clock
reads (``now`` is always passed in) and no synthetic values.  Estimated
figures live in :mod:`stats.fallback` and are never mixed in here.

Definitions
-----------
Overdue invoice
    ``due_date is not None and due_date < now and pending_amount > 0``.
    Evaluated independently of ``payment_status``; a pending invoice can
    also be overdue.
Stock partition (products only)
    ``out_of_stock``  when ``current_stock == 0``
    ``low_stock``     when ``min_stock_level > 0 and 0 < current_stock <= min_stock_level``
    ``in_stock``      otherwise.
    Services belong to none of the three.
Active flag
    Missing flags count as active (see :func:`stats.fields.is_active_default_true`).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Final, Iterable, Mapping, Sequence

from stats.records import (
    ITEM_PRODUCT,
    ITEM_SERVICE,
    KIND_PURCHASE,
    KIND_SALES,
    PARTY_CUSTOMER,
    PARTY_SUPPLIER,
    PARTY_VENDOR,
    STATUS_PAID,
    STATUS_PARTIAL,
    STATUS_PENDING,
    CompanyRecord,
    CompanySummary,
    GrowthPoint,
    InvoiceRecord,
    ItemRecord,
    ItemStatsSummary,
    PartyRecord,
    UserSummary,
)

DEFAULT_GROWTH_MONTHS: Final[int] = 12

OUT_OF_STOCK: Final[str] = "out_of_stock"
LOW_STOCK: Final[str] = "low_stock"
IN_STOCK: Final[str] = "in_stock"

_PENDING_STATUSES: Final[frozenset[str]] = frozenset({STATUS_PENDING, STATUS_PARTIAL})


def _frozen(mapping: Mapping[str, int] | None = None) -> Mapping[str, int]:
    return MappingProxyType(dict(mapping or {}))


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InvoiceTotals:
    total_invoices: int = 0
    sales_invoices: int = 0
    purchase_invoices: int = 0
    total_amount: float = 0.0
    sales_amount: float = 0.0
    purchase_amount: float = 0.0
    paid_amount: float = 0.0
    pending_amount: float = 0.0
    overdue_amount: float = 0.0
    paid_invoices: int = 0
    pending_invoices: int = 0
    overdue_invoices: int = 0


@dataclass(frozen=True)
class StockTotals:
    total_items: int = 0
    total_products: int = 0
    total_services: int = 0
    active_items: int = 0
    inactive_items: int = 0
    in_stock_items: int = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    total_stock: float = 0.0
    total_stock_value: float = 0.0
    category_distribution: Mapping[str, int] = field(default_factory=_frozen)


@dataclass(frozen=True)
class PartyTotals:
    total_parties: int = 0
    customers: int = 0
    suppliers: int = 0
    vendors: int = 0
    active_parties: int = 0
    inactive_parties: int = 0
    gst_registered: int = 0
    total_outstanding: float = 0.0
    positive_balance: int = 0
    negative_balance: int = 0


@dataclass(frozen=True)
class CompanyTotals:
    total_companies: int = 0
    active_companies: int = 0
    inactive_companies: int = 0
    business_type_distribution: Mapping[str, int] = field(default_factory=_frozen)
    state_distribution: Mapping[str, int] = field(default_factory=_frozen)


@dataclass(frozen=True)
class PartialStatistics:
    """Real, record-derived statistics for one aggregation pass."""

    invoices: InvoiceTotals
    stock: StockTotals
    parties: PartyTotals
    companies: CompanyTotals
    invoices_growth: tuple[GrowthPoint, ...] = ()
    companies_growth: tuple[GrowthPoint, ...] = ()


@dataclass(frozen=True)
class DashboardCounters:
    """
    Headline counters after merging records with admin summary endpoints.

    This is the shape the fallback filler operates on.
    """

    total_users: int = 0
    total_companies: int = 0
    active_companies: int = 0
    inactive_companies: int = 0
    companies_with_subscription: int = 0
    recent_companies: int = 0
    total_items: int = 0
    total_products: int = 0
    total_services: int = 0
    total_stock: float = 0.0
    in_stock_items: int = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    total_parties: int = 0
    total_suppliers: int = 0
    business_type_distribution: Mapping[str, int] = field(default_factory=_frozen)
    state_distribution: Mapping[str, int] = field(default_factory=_frozen)
    category_distribution: Mapping[str, int] = field(default_factory=_frozen)


# ---------------------------------------------------------------------------
# Predicates and groupings
# ---------------------------------------------------------------------------


def is_overdue(invoice: InvoiceRecord, now: datetime) -> bool:
    """An invoice with nothing pending is never overdue, whatever its due date."""
    return invoice.due_date is not None and invoice.due_date < now and invoice.pending_amount > 0


def stock_bucket(item: ItemRecord) -> str | None:
    """
    Place a product in exactly one stock bucket; services get ``None``.
    """
    if item.type == ITEM_SERVICE:
        return None
    if item.current_stock == 0:
        return OUT_OF_STOCK
    if item.min_stock_level > 0 and 0 < item.current_stock <= item.min_stock_level:
        return LOW_STOCK
    return IN_STOCK


def month_key(moment: datetime) -> str:
    """Zero-padded ``YYYY-MM`` so lexicographic order is chronological."""
    return f"{moment.year:04d}-{moment.month:02d}"


def monthly_growth(
    timestamps: Iterable[datetime | None],
    limit: int = DEFAULT_GROWTH_MONTHS,
) -> tuple[GrowthPoint, ...]:
    """
    Count timestamps per ``YYYY-MM`` and keep the latest *limit* buckets,
    oldest first.  ``None`` timestamps are ignored.
    """
    buckets = Counter(month_key(ts) for ts in timestamps if ts is not None)
    ordered = sorted(buckets.items())
    if limit > 0:
        ordered = ordered[-limit:]
    return tuple(GrowthPoint(month=month, count=count) for month, count in ordered)


def frequency(values: Iterable[str | None]) -> Mapping[str, int]:
    """
    Frequency map of non-empty categorical values.

    Insertion order carries no meaning; consumers sort and truncate.
    """
    return _frozen(Counter(value for value in values if value))


def weekly_activity(timestamps: Iterable[datetime], now: datetime) -> tuple[int, ...]:
    """
    Registrations within the last seven days, bucketed Monday..Sunday.
    """
    week_ago = now - timedelta(days=7)
    counts = [0] * 7
    for ts in timestamps:
        if ts >= week_ago:
            counts[ts.weekday()] += 1
    return tuple(counts)


# ---------------------------------------------------------------------------
# Section summaries
# ---------------------------------------------------------------------------


def summarize_invoices(invoices: Sequence[InvoiceRecord], now: datetime) -> InvoiceTotals:
    sales = [inv for inv in invoices if inv.kind == KIND_SALES]
    purchases = [inv for inv in invoices if inv.kind == KIND_PURCHASE]
    overdue = [inv for inv in invoices if is_overdue(inv, now)]

    return InvoiceTotals(
        total_invoices=len(invoices),
        sales_invoices=len(sales),
        purchase_invoices=len(purchases),
        total_amount=sum(inv.total_amount for inv in invoices),
        sales_amount=sum(inv.total_amount for inv in sales),
        purchase_amount=sum(inv.total_amount for inv in purchases),
        paid_amount=sum(inv.paid_amount for inv in invoices),
        pending_amount=sum(inv.pending_amount for inv in invoices),
        overdue_amount=sum(inv.pending_amount for inv in overdue),
        paid_invoices=sum(1 for inv in invoices if inv.payment_status == STATUS_PAID),
        pending_invoices=sum(1 for inv in invoices if inv.payment_status in _PENDING_STATUSES),
        overdue_invoices=len(overdue),
    )


def summarize_stock(items: Sequence[ItemRecord]) -> StockTotals:
    products = [item for item in items if item.type == ITEM_PRODUCT]
    buckets = Counter(stock_bucket(item) for item in products)
    active = sum(1 for item in items if item.is_active)

    return StockTotals(
        total_items=len(items),
        total_products=len(products),
        total_services=sum(1 for item in items if item.type == ITEM_SERVICE),
        active_items=active,
        inactive_items=len(items) - active,
        in_stock_items=buckets[IN_STOCK],
        low_stock_items=buckets[LOW_STOCK],
        out_of_stock_items=buckets[OUT_OF_STOCK],
        total_stock=sum(item.current_stock for item in products),
        total_stock_value=sum(item.current_stock * item.sale_price for item in products),
        category_distribution=frequency(item.category for item in items),
    )


def summarize_parties(parties: Sequence[PartyRecord]) -> PartyTotals:
    types = Counter(party.party_type for party in parties)
    active = sum(1 for party in parties if party.is_active)

    return PartyTotals(
        total_parties=len(parties),
        customers=types[PARTY_CUSTOMER],
        suppliers=types[PARTY_SUPPLIER],
        vendors=types[PARTY_VENDOR],
        active_parties=active,
        inactive_parties=len(parties) - active,
        gst_registered=sum(1 for party in parties if party.gst_registered),
        total_outstanding=sum(abs(party.balance) for party in parties),
        positive_balance=sum(1 for party in parties if party.balance > 0),
        negative_balance=sum(1 for party in parties if party.balance < 0),
    )


def summarize_companies(companies: Sequence[CompanyRecord]) -> CompanyTotals:
    active = sum(1 for company in companies if company.is_active)
    return CompanyTotals(
        total_companies=len(companies),
        active_companies=active,
        inactive_companies=len(companies) - active,
        business_type_distribution=frequency(company.business_type for company in companies),
        state_distribution=frequency(company.state for company in companies),
    )


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def aggregate(
    invoices: Sequence[InvoiceRecord],
    items: Sequence[ItemRecord],
    parties: Sequence[PartyRecord],
    now: datetime,
    companies: Sequence[CompanyRecord] = (),
    *,
    growth_months: int = DEFAULT_GROWTH_MONTHS,
) -> PartialStatistics:
    """
    Reduce canonical records into :class:`PartialStatistics`.

    Parameters
    ----------
    invoices, items, parties, companies:
        Canonical records from :mod:`stats.normalizer`.
    now:
        Reference instant for overdue evaluation (timezone-aware).
    growth_months:
        Number of trailing ``YYYY-MM`` buckets kept in growth series.
    """
    return PartialStatistics(
        invoices=summarize_invoices(invoices, now),
        stock=summarize_stock(items),
        parties=summarize_parties(parties),
        companies=summarize_companies(companies),
        invoices_growth=monthly_growth((inv.created_at for inv in invoices), growth_months),
        companies_growth=monthly_growth((company.created_at for company in companies), growth_months),
    )


def combine(
    partial: PartialStatistics,
    *,
    users: UserSummary,
    company_summary: CompanySummary,
    item_stats: ItemStatsSummary,
    low_stock_count: int = 0,
) -> DashboardCounters:
    """
    Merge record-derived statistics with the admin summary endpoints.

    Precedence
    ----------
    * Companies: the company list length, else the admin ``totalCompanies``.
      Active/inactive counts and distributions reported by the backend win
      over the ones derived from the list.
    * Inventory: item records win whenever any were returned; otherwise the
      admin item statistics are used.
    * Without item records, a non-zero low-stock endpoint count replaces
      the admin low-stock figure.  Record-derived buckets are never
      overridden, so out, low and in stock always add up to the products.
    * Parties and suppliers always come from party records.
    """
    companies = partial.companies
    stock = partial.stock

    if stock.total_items > 0:
        inventory = {
            "total_items": stock.total_items,
            "total_products": stock.total_products,
            "total_services": stock.total_services,
            "total_stock": stock.total_stock,
            "in_stock_items": stock.in_stock_items,
            "low_stock_items": stock.low_stock_items,
            "out_of_stock_items": stock.out_of_stock_items,
            "category_distribution": stock.category_distribution,
        }
    else:
        inventory = {
            "total_items": item_stats.total_items,
            "total_products": item_stats.total_products,
            "total_services": item_stats.total_services,
            "total_stock": item_stats.total_stock,
            "in_stock_items": item_stats.in_stock,
            "low_stock_items": low_stock_count if low_stock_count > 0 else item_stats.low_stock,
            "out_of_stock_items": item_stats.out_of_stock,
            "category_distribution": _frozen(item_stats.category_distribution),
        }

    return DashboardCounters(
        total_users=users.total_users,
        total_companies=companies.total_companies or (company_summary.total_companies or 0),
        active_companies=_reported(company_summary.active_companies, companies.active_companies),
        inactive_companies=_reported(company_summary.inactive_companies, companies.inactive_companies),
        companies_with_subscription=company_summary.companies_with_subscription or 0,
        recent_companies=company_summary.recent_companies or 0,
        total_parties=partial.parties.total_parties,
        total_suppliers=partial.parties.suppliers,
        business_type_distribution=(
            _frozen(company_summary.business_type_distribution)
            if company_summary.business_type_distribution is not None
            else companies.business_type_distribution
        ),
        state_distribution=(
            _frozen(company_summary.state_distribution)
            if company_summary.state_distribution is not None
            else companies.state_distribution
        ),
        **inventory,
    )


def _reported(reported: int | None, derived: int) -> int:
    return reported if reported is not None else derived
