"""
stats/normalizer.py

Map heterogeneous backend records into canonical records.

Sales and purchase endpoints describe the same concepts with different
field names.  Every logical field is resolved through an ordered chain of
accessors declared at module level; the order is part of the contract
because invoice identity displays depend on it.

Failure contract
----------------
A source that is ``ok=False`` or whose payload holds no list yields an
empty list.  Individual rows that are not JSON objects are skipped.
Nothing in this module raises for malformed input.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Mapping, Sequence

from stats.fields import (
    Accessor,
    first_of,
    is_active_default_true,
    is_nonzero_number,
    is_present,
    key,
    parse_timestamp,
    record_id,
    to_count,
    to_number,
)
from stats.records import (
    ITEM_PRODUCT,
    KIND_PURCHASE,
    KIND_SALES,
    PARTY_CUSTOMER,
    STATUS_PAID,
    STATUS_PENDING,
    CompanyRecord,
    CompanySummary,
    InvoiceRecord,
    ItemRecord,
    ItemStatsSummary,
    PartyRecord,
    SourceResult,
    UserSummary,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Field chains
# ---------------------------------------------------------------------------

SALES_NUMBER_CHAIN: Final[tuple[Accessor, ...]] = (key("invoiceNumber"), key("saleNumber"))
PURCHASE_NUMBER_CHAIN: Final[tuple[Accessor, ...]] = (key("purchaseNumber"), key("billNumber"))

CUSTOMER_NAME_CHAIN: Final[tuple[Accessor, ...]] = (key("customerName"), key("customer", "name"))
SUPPLIER_NAME_CHAIN: Final[tuple[Accessor, ...]] = (key("supplierName"), key("supplier", "name"))

TOTAL_AMOUNT_CHAIN: Final[tuple[Accessor, ...]] = (
    key("totals", "finalTotal"),
    key("amount"),
    key("total"),
)

SALES_CREATED_CHAIN: Final[tuple[Accessor, ...]] = (key("createdAt"), key("invoiceDate"))
PURCHASE_CREATED_CHAIN: Final[tuple[Accessor, ...]] = (key("createdAt"), key("purchaseDate"))

SALES_DUE_CHAIN: Final[tuple[Accessor, ...]] = (key("payment", "dueDate"),)
PURCHASE_DUE_CHAIN: Final[tuple[Accessor, ...]] = (key("payment", "dueDate"), key("dueDate"))

SALES_PAID_CHAIN: Final[tuple[Accessor, ...]] = (key("payment", "paidAmount"),)
PURCHASE_PAID_CHAIN: Final[tuple[Accessor, ...]] = (
    key("payment", "paidAmount"),
    key("paymentReceived"),
)

PENDING_CHAIN: Final[tuple[Accessor, ...]] = (key("payment", "pendingAmount"),)
PAYMENT_STATUS_CHAIN: Final[tuple[Accessor, ...]] = (key("payment", "status"), key("paymentStatus"))

MIN_STOCK_CHAIN: Final[tuple[Accessor, ...]] = (key("minStockLevel"), key("minStockToMaintain"))

PARTY_TYPE_CHAIN: Final[tuple[Accessor, ...]] = (key("partyType"), key("type"))
PARTY_BALANCE_CHAIN: Final[tuple[Accessor, ...]] = (
    key("currentBalance"),
    key("balance"),
    key("outstandingAmount"),
)
GST_NUMBER_CHAIN: Final[tuple[Accessor, ...]] = (key("gstNumber"), key("gstNo"), key("taxNumber"))

USER_TOTAL_CHAIN: Final[tuple[Accessor, ...]] = (key("totalUsers"), key("count"), key("total"))

UNKNOWN_CUSTOMER: Final[str] = "Unknown Customer"
UNKNOWN_SUPPLIER: Final[str] = "Unknown Supplier"
UNCATEGORIZED: Final[str] = "Uncategorized"

# Keys under which list endpoints nest their rows, in lookup order.
SALES_KEYS: Final[tuple[str, ...]] = ("sales", "invoices")
PURCHASE_KEYS: Final[tuple[str, ...]] = ("purchases",)
ITEM_KEYS: Final[tuple[str, ...]] = ("items",)
PARTY_KEYS: Final[tuple[str, ...]] = ("parties",)
COMPANY_KEYS: Final[tuple[str, ...]] = ("companies", "data")
LOW_STOCK_KEYS: Final[tuple[str, ...]] = ("items", "lowStockItems")


# ---------------------------------------------------------------------------
# Payload extraction
# ---------------------------------------------------------------------------


def extract_rows(result: SourceResult[Any], list_keys: Sequence[str]) -> list[Mapping[str, Any]]:
    """
    Return the list of JSON objects carried by *result*.

    The payload may be the list itself or a mapping holding it under one of
    *list_keys*.  Anything else yields ``[]``.
    """
    if not result.ok:
        return []

    payload = result.data
    rows: Any = None
    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, Mapping):
        for list_key in list_keys:
            candidate = payload.get(list_key)
            if isinstance(candidate, list):
                rows = candidate
                break

    if rows is None:
        logger.debug("extract_rows: no list payload under keys=%s", list(list_keys))
        return []

    objects = [row for row in rows if isinstance(row, Mapping)]
    skipped = len(rows) - len(objects)
    if skipped:
        logger.debug("extract_rows: skipped %d non-object rows", skipped)
    return objects


def _payload_mapping(result: SourceResult[Any]) -> Mapping[str, Any]:
    if result.ok and isinstance(result.data, Mapping):
        return result.data
    return {}


# ---------------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------------


def _placeholder_number(prefix: str, identifier: str) -> str:
    return f"{prefix}-{identifier[-6:]}"


def normalize_sales_invoice(raw: Mapping[str, Any]) -> InvoiceRecord:
    """Canonicalize one sales invoice document."""
    identifier = record_id(raw)
    total = to_number(first_of(raw, TOTAL_AMOUNT_CHAIN, 0, accept=is_nonzero_number))
    paid = to_number(first_of(raw, SALES_PAID_CHAIN, 0, accept=is_nonzero_number))
    pending = to_number(first_of(raw, PENDING_CHAIN, 0, accept=is_nonzero_number))
    status = first_of(raw, PAYMENT_STATUS_CHAIN, STATUS_PENDING)

    return InvoiceRecord(
        id=identifier,
        kind=KIND_SALES,
        number=str(first_of(raw, SALES_NUMBER_CHAIN, _placeholder_number("SALES", identifier))),
        counterparty_name=str(first_of(raw, CUSTOMER_NAME_CHAIN, UNKNOWN_CUSTOMER)),
        total_amount=total,
        paid_amount=paid,
        pending_amount=pending,
        payment_status=str(status).lower(),
        created_at=parse_timestamp(first_of(raw, SALES_CREATED_CHAIN)),
        due_date=parse_timestamp(first_of(raw, SALES_DUE_CHAIN)),
    )


def normalize_purchase_invoice(raw: Mapping[str, Any]) -> InvoiceRecord:
    """
    Canonicalize one purchase/bill document.

    Purchases frequently omit ``payment.pendingAmount``; it is then derived
    as ``total - paid`` without clamping.  A missing payment status becomes
    ``"paid"`` when the paid amount covers a positive total.
    """
    identifier = record_id(raw)
    total = to_number(first_of(raw, TOTAL_AMOUNT_CHAIN, 0, accept=is_nonzero_number))
    paid = to_number(first_of(raw, PURCHASE_PAID_CHAIN, 0, accept=is_nonzero_number))

    explicit_pending = first_of(raw, PENDING_CHAIN, None, accept=is_nonzero_number)
    pending = to_number(explicit_pending) if explicit_pending is not None else total - paid
    if pending < 0:
        logger.debug(
            "normalize_purchase_invoice id=%s: negative pending %.2f (total=%.2f paid=%.2f)",
            identifier, pending, total, paid,
        )

    derived_status = STATUS_PAID if total > 0 and paid >= total else STATUS_PENDING
    status = first_of(raw, PAYMENT_STATUS_CHAIN, derived_status)

    return InvoiceRecord(
        id=identifier,
        kind=KIND_PURCHASE,
        number=str(first_of(raw, PURCHASE_NUMBER_CHAIN, _placeholder_number("PURCHASE", identifier))),
        counterparty_name=str(first_of(raw, SUPPLIER_NAME_CHAIN, UNKNOWN_SUPPLIER)),
        total_amount=total,
        paid_amount=paid,
        pending_amount=pending,
        payment_status=str(status).lower(),
        created_at=parse_timestamp(first_of(raw, PURCHASE_CREATED_CHAIN)),
        due_date=parse_timestamp(first_of(raw, PURCHASE_DUE_CHAIN)),
    )


def normalize_invoices(
    sales: SourceResult[Any],
    purchases: SourceResult[Any],
) -> list[InvoiceRecord]:
    """
    Canonicalize both invoice sources; sales first, input order preserved.
    """
    records = [normalize_sales_invoice(raw) for raw in extract_rows(sales, SALES_KEYS)]
    records.extend(normalize_purchase_invoice(raw) for raw in extract_rows(purchases, PURCHASE_KEYS))
    return records


# ---------------------------------------------------------------------------
# Items, parties, companies
# ---------------------------------------------------------------------------


def normalize_item(raw: Mapping[str, Any]) -> ItemRecord:
    item_type = first_of(raw, (key("type"),), ITEM_PRODUCT)
    return ItemRecord(
        id=record_id(raw),
        name=str(first_of(raw, (key("name"), key("itemName")), "")),
        type=str(item_type).lower(),
        category=str(first_of(raw, (key("category"),), UNCATEGORIZED)),
        current_stock=to_number(raw.get("currentStock")),
        min_stock_level=to_number(first_of(raw, MIN_STOCK_CHAIN, 0, accept=is_nonzero_number)),
        sale_price=to_number(raw.get("salePrice")),
        is_active=is_active_default_true(raw.get("isActive")),
        created_at=parse_timestamp(raw.get("createdAt")),
    )


def normalize_items(result: SourceResult[Any]) -> list[ItemRecord]:
    return [normalize_item(raw) for raw in extract_rows(result, ITEM_KEYS)]


def _party_is_active(raw: Mapping[str, Any]) -> bool:
    # A bare status string is honoured only when no explicit flag exists.
    if "isActive" not in raw and is_present(raw.get("status")):
        return str(raw["status"]).strip().lower() == "active"
    return is_active_default_true(raw.get("isActive"))


def normalize_party(raw: Mapping[str, Any]) -> PartyRecord:
    gst_number = first_of(raw, GST_NUMBER_CHAIN)
    return PartyRecord(
        id=record_id(raw),
        name=str(first_of(raw, (key("name"),), "")),
        party_type=str(first_of(raw, PARTY_TYPE_CHAIN, PARTY_CUSTOMER)).lower(),
        balance=to_number(first_of(raw, PARTY_BALANCE_CHAIN, 0, accept=is_nonzero_number)),
        gst_number=str(gst_number) if gst_number is not None else None,
        gst_registered=gst_number is not None,
        is_active=_party_is_active(raw),
        created_at=parse_timestamp(raw.get("createdAt")),
    )


def normalize_parties(result: SourceResult[Any]) -> list[PartyRecord]:
    return [normalize_party(raw) for raw in extract_rows(result, PARTY_KEYS)]


def normalize_company(raw: Mapping[str, Any]) -> CompanyRecord:
    business_type = first_of(raw, (key("businessType"),))
    state = first_of(raw, (key("state"), key("address", "state")))
    return CompanyRecord(
        id=record_id(raw),
        name=str(first_of(raw, (key("businessName"), key("name")), "")),
        business_type=str(business_type) if business_type is not None else None,
        state=str(state) if state is not None else None,
        is_active=is_active_default_true(raw.get("isActive")),
        created_at=parse_timestamp(raw.get("createdAt")),
    )


def normalize_companies(result: SourceResult[Any]) -> list[CompanyRecord]:
    return [normalize_company(raw) for raw in extract_rows(result, COMPANY_KEYS)]


# ---------------------------------------------------------------------------
# Admin summaries
# ---------------------------------------------------------------------------


def normalize_user_summary(result: SourceResult[Any]) -> UserSummary:
    """
    Canonicalize ``/users/stats``.

    The total is resolved through ``totalUsers → count → total → len(users)``.
    """
    payload = _payload_mapping(result)
    if not payload:
        return UserSummary()

    users = payload.get("users")
    user_rows = [row for row in users if isinstance(row, Mapping)] if isinstance(users, list) else []
    total = first_of(payload, USER_TOTAL_CHAIN, len(user_rows), accept=is_nonzero_number)

    recent = payload.get("recentUsers")
    recent_rows = [row for row in recent if isinstance(row, Mapping)] if isinstance(recent, list) else user_rows
    timestamps = tuple(
        ts for ts in (parse_timestamp(row.get("createdAt")) for row in recent_rows) if ts is not None
    )

    return UserSummary(
        total_users=to_count(total),
        users_by_role=_role_counts(payload.get("usersByRole")),
        recent_user_timestamps=timestamps,
        monthly_growth=_growth_pairs(payload.get("monthlyGrowth")),
    )


def _role_counts(raw: Any) -> dict[str, int]:
    # Accepts {"admin": 2} or [{"_id": "admin", "count": 2}].
    if isinstance(raw, Mapping):
        return {str(role): to_count(count) for role, count in raw.items()}
    counts: dict[str, int] = {}
    if isinstance(raw, list):
        for row in raw:
            if not isinstance(row, Mapping):
                continue
            role = first_of(row, (key("role"), key("_id")))
            if role is not None:
                counts[str(role)] = counts.get(str(role), 0) + to_count(row.get("count"))
    return counts


def _growth_pairs(raw: Any) -> tuple[tuple[str, int], ...]:
    if not isinstance(raw, list):
        return ()
    pairs: list[tuple[str, int]] = []
    for row in raw:
        if not isinstance(row, Mapping):
            continue
        month = first_of(row, (key("month"), key("_id")))
        if month is not None:
            pairs.append((str(month), to_count(row.get("count"))))
    return tuple(pairs)


def _optional_count(payload: Mapping[str, Any], name: str) -> int | None:
    if name not in payload:
        return None
    return to_count(payload.get(name))


def _distribution(payload: Mapping[str, Any], name: str) -> dict[str, int] | None:
    raw = payload.get(name)
    if not isinstance(raw, Mapping):
        return None
    return {str(label): to_count(count) for label, count in raw.items()}


def normalize_company_summary(
    companies: SourceResult[Any],
    company_stats: SourceResult[Any],
) -> CompanySummary:
    """
    Merge the company-list ``stats`` block with the admin stats endpoint.

    Counters reported by the admin stats endpoint take precedence, the way
    a later object spread overrides an earlier one.
    """
    merged: dict[str, Any] = {}
    list_payload = _payload_mapping(companies)
    stats_block = list_payload.get("stats")
    if isinstance(stats_block, Mapping):
        merged.update(stats_block)
    merged.update(_payload_mapping(company_stats))

    return CompanySummary(
        total_companies=_optional_count(merged, "totalCompanies"),
        active_companies=_optional_count(merged, "activeCompanies"),
        inactive_companies=_optional_count(merged, "inactiveCompanies"),
        companies_with_subscription=_optional_count(merged, "companiesWithSubscription"),
        recent_companies=_optional_count(merged, "recentCompanies"),
        business_type_distribution=_distribution(merged, "businessTypeDistribution"),
        state_distribution=_distribution(merged, "stateDistribution"),
    )


def normalize_item_stats(result: SourceResult[Any]) -> ItemStatsSummary:
    payload = _payload_mapping(result)
    if not payload:
        return ItemStatsSummary()

    stock = payload.get("stockSummary")
    stock = stock if isinstance(stock, Mapping) else {}
    return ItemStatsSummary(
        total_items=to_count(payload.get("totalItems")),
        total_products=to_count(payload.get("totalProducts")),
        total_services=to_count(payload.get("totalServices")),
        low_stock=to_count(stock.get("lowStock")),
        out_of_stock=to_count(stock.get("outOfStock")),
        in_stock=to_count(stock.get("inStock")),
        total_stock=to_number(first_of(stock, (key("totalStock"), key("inStock")), 0, accept=is_nonzero_number)),
        category_distribution=_distribution(payload, "categoryDistribution") or {},
    )


def normalize_low_stock_count(result: SourceResult[Any]) -> int:
    """
    Count of low-stock items reported by the admin low-stock endpoint.

    Uses ``count`` when reported, else the length of the returned list.
    """
    payload = _payload_mapping(result)
    if "count" in payload:
        return to_count(payload.get("count"))
    return len(extract_rows(result, LOW_STOCK_KEYS))
