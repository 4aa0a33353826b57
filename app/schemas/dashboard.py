"""
app/schemas/dashboard.py

Response schemas for dashboard endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from stats.snapshot import StatisticsSnapshot


class GrowthPointResponse(BaseModel):
    month: str
    count: int = Field(..., ge=0)


class DashboardStatisticsResponse(BaseModel):
    """
    API response model for one dashboard snapshot.

    Amount fields are not constrained to be non-negative: inconsistent
    upstream invoices can legitimately produce negative pending totals.
    """

    model_config = ConfigDict(frozen=True)

    generated_at: datetime

    total_users: int = Field(..., ge=0)
    total_companies: int = Field(..., ge=0)
    active_companies: int = Field(..., ge=0)
    inactive_companies: int = Field(..., ge=0)
    companies_with_subscription: int = Field(..., ge=0)
    recent_companies: int = Field(..., ge=0)
    users_by_role: dict[str, int]
    weekly_activity: list[int] = Field(..., min_length=7, max_length=7)

    total_items: int = Field(..., ge=0)
    total_products: int = Field(..., ge=0)
    total_services: int = Field(..., ge=0)
    active_items: int = Field(..., ge=0)
    inactive_items: int = Field(..., ge=0)
    total_stock: float
    total_stock_value: float
    in_stock_items: int = Field(..., ge=0)
    low_stock_items: int = Field(..., ge=0)
    out_of_stock_items: int = Field(..., ge=0)

    total_invoices: int = Field(..., ge=0)
    sales_invoices: int = Field(..., ge=0)
    purchase_invoices: int = Field(..., ge=0)
    total_amount: float
    sales_amount: float
    purchase_amount: float
    paid_amount: float
    pending_amount: float
    overdue_amount: float
    paid_invoices: int = Field(..., ge=0)
    pending_invoices: int = Field(..., ge=0)
    overdue_invoices: int = Field(..., ge=0)

    total_parties: int = Field(..., ge=0)
    total_customers: int = Field(..., ge=0)
    total_suppliers: int = Field(..., ge=0)
    total_vendors: int = Field(..., ge=0)
    active_parties: int = Field(..., ge=0)
    inactive_parties: int = Field(..., ge=0)
    gst_registered_parties: int = Field(..., ge=0)
    total_outstanding: float = Field(..., ge=0)
    positive_balance_parties: int = Field(..., ge=0)
    negative_balance_parties: int = Field(..., ge=0)

    business_type_distribution: dict[str, int]
    state_distribution: dict[str, int]
    category_distribution: dict[str, int]
    companies_growth: list[GrowthPointResponse]
    invoices_growth: list[GrowthPointResponse]
    users_growth: list[GrowthPointResponse]

    user_growth_rate: float | None = None
    company_growth_rate: float | None = None
    subscription_rate: float | None = None
    stock_critical_pct: float | None = None
    stock_warning_pct: float | None = None
    stock_good_pct: float | None = None

    failed_sources: list[str]
    uses_fallback: bool
    fallback_fields: list[str]

    @classmethod
    def from_snapshot(cls, snapshot: StatisticsSnapshot) -> "DashboardStatisticsResponse":
        return cls.model_validate(snapshot.to_dict())


class HealthResponse(BaseModel):
    status: str = "ok"
