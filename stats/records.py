"""
stats/records.py

Canonical value objects used by the dashboard statistics engine.

Every record is constructed once per aggregation pass from raw backend
JSON and discarded after the snapshot is built.  All dataclasses are
frozen; no component mutates another component's output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final, Generic, TypeVar

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

KIND_SALES: Final[str] = "sales"
KIND_PURCHASE: Final[str] = "purchase"

STATUS_PAID: Final[str] = "paid"
STATUS_PENDING: Final[str] = "pending"
STATUS_PARTIAL: Final[str] = "partial"
STATUS_CANCELLED: Final[str] = "cancelled"

ITEM_PRODUCT: Final[str] = "product"
ITEM_SERVICE: Final[str] = "service"

PARTY_CUSTOMER: Final[str] = "customer"
PARTY_SUPPLIER: Final[str] = "supplier"
PARTY_VENDOR: Final[str] = "vendor"

NOT_REQUESTED: Final[str] = "not requested"


# ---------------------------------------------------------------------------
# Source wrapper
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """
    Outcome of one independent fetch.

    ``ok=False`` is an ordinary value, not an exception: the engine treats
    such a source as empty and keeps going.
    """

    ok: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, data: T) -> "SourceResult[T]":
        return cls(ok=True, data=data, error=None)

    @classmethod
    def failure(cls, error: str) -> "SourceResult[T]":
        return cls(ok=False, data=None, error=error or "unknown error")

    @classmethod
    def missing(cls) -> "SourceResult[T]":
        """Placeholder for a source the caller did not request."""
        return cls(ok=False, data=None, error=NOT_REQUESTED)


@dataclass(frozen=True)
class DashboardSources:
    """
    One :class:`SourceResult` per backend source feeding a dashboard.

    Sources a caller does not fetch stay ``missing`` and are treated
    exactly like failed ones.
    """

    user_stats: SourceResult[Any] = field(default_factory=SourceResult.missing)
    companies: SourceResult[Any] = field(default_factory=SourceResult.missing)
    company_stats: SourceResult[Any] = field(default_factory=SourceResult.missing)
    item_stats: SourceResult[Any] = field(default_factory=SourceResult.missing)
    low_stock: SourceResult[Any] = field(default_factory=SourceResult.missing)
    items: SourceResult[Any] = field(default_factory=SourceResult.missing)
    sales: SourceResult[Any] = field(default_factory=SourceResult.missing)
    purchases: SourceResult[Any] = field(default_factory=SourceResult.missing)
    parties: SourceResult[Any] = field(default_factory=SourceResult.missing)

    @classmethod
    def from_mapping(cls, results: dict[str, SourceResult[Any]]) -> "DashboardSources":
        """
        Build from a name-keyed mapping, ignoring names this class does not know.
        """
        known = {name: value for name, value in results.items() if name in SOURCE_NAMES}
        return cls(**known)

    def failed(self) -> tuple[str, ...]:
        """Names of sources that were requested but did not succeed."""
        return tuple(
            name
            for name in SOURCE_NAMES
            if not getattr(self, name).ok and getattr(self, name).error != NOT_REQUESTED
        )


SOURCE_NAMES: Final[tuple[str, ...]] = (
    "user_stats",
    "companies",
    "company_stats",
    "item_stats",
    "low_stock",
    "items",
    "sales",
    "purchases",
    "parties",
)


# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InvoiceRecord:
    """
    Shape-unified sales or purchase invoice.

    ``paid_amount + pending_amount`` is not guaranteed to equal
    ``total_amount``; ``pending_amount`` may be negative when upstream
    data is inconsistent.
    """

    id: str
    kind: str
    number: str
    counterparty_name: str
    total_amount: float
    paid_amount: float
    pending_amount: float
    payment_status: str
    created_at: datetime | None
    due_date: datetime | None


@dataclass(frozen=True)
class ItemRecord:
    """Inventory item; stock fields are meaningful for products only."""

    id: str
    name: str
    type: str
    category: str
    current_stock: float
    min_stock_level: float
    sale_price: float
    is_active: bool
    created_at: datetime | None = None


@dataclass(frozen=True)
class PartyRecord:
    """Customer, supplier or vendor with a signed running balance."""

    id: str
    name: str
    party_type: str
    balance: float
    gst_number: str | None
    gst_registered: bool
    is_active: bool
    created_at: datetime | None


@dataclass(frozen=True)
class CompanyRecord:
    """Company row from the admin company list."""

    id: str
    name: str
    business_type: str | None
    state: str | None
    is_active: bool
    created_at: datetime | None


# ---------------------------------------------------------------------------
# Canonical summaries of admin endpoints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserSummary:
    """Normalized ``/users/stats`` payload."""

    total_users: int = 0
    users_by_role: dict[str, int] = field(default_factory=dict)
    recent_user_timestamps: tuple[datetime, ...] = ()
    monthly_growth: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class CompanySummary:
    """
    Company counters reported by the backend.

    ``None`` means the backend did not report that counter, which is
    different from reporting zero.
    """

    total_companies: int | None = None
    active_companies: int | None = None
    inactive_companies: int | None = None
    companies_with_subscription: int | None = None
    recent_companies: int | None = None
    business_type_distribution: dict[str, int] | None = None
    state_distribution: dict[str, int] | None = None


@dataclass(frozen=True)
class ItemStatsSummary:
    """Normalized admin item statistics (``stockSummary`` and totals)."""

    total_items: int = 0
    total_products: int = 0
    total_services: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    in_stock: int = 0
    total_stock: float = 0.0
    category_distribution: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class GrowthPoint:
    """One ``YYYY-MM`` bucket of a growth series."""

    month: str
    count: int
