"""
app/api/routers/dashboard_router.py

Dashboard statistics endpoints.

The admin overview may contain placeholder figures (listed in
``fallback_fields``) unless ``real_only`` is set.  Company dashboards
always report real figures; unavailable sources are listed in
``failed_sources`` and the response is still HTTP 200.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_company_providers
from app.schemas.dashboard import DashboardStatisticsResponse
from app.services.dashboard_service import (
    CompanyNotResolvedError,
    DashboardService,
    get_dashboard_service,
)
from stats.fields import Provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/admin/overview", response_model=DashboardStatisticsResponse)
def admin_overview(
    real_only: bool = Query(default=False, description="Suppress placeholder figures"),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStatisticsResponse:
    """
    Platform-wide statistics across users and companies.
    """

    snapshot = dashboard_service.admin_overview(real_only=real_only)
    return DashboardStatisticsResponse.from_snapshot(snapshot)


@router.get("/companies/{company_id}", response_model=DashboardStatisticsResponse)
def company_dashboard(
    company_id: str,
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStatisticsResponse:
    """
    Statistics for one company, computed from its own records.
    """

    if not company_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="company_id must not be blank.",
        )
    snapshot = dashboard_service.company_dashboard(company_id.strip())
    return DashboardStatisticsResponse.from_snapshot(snapshot)


@router.get("/company", response_model=DashboardStatisticsResponse)
def current_company_dashboard(
    providers: list[Provider] = Depends(get_company_providers),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStatisticsResponse:
    """
    Statistics for the company named by the ``X-Company-ID`` header, the
    ``companyId`` query parameter or the configured default.

    Raises HTTP 400 when none of them supplies a company ID.
    """

    try:
        company_id = dashboard_service.resolve_company(providers)
    except CompanyNotResolvedError as exc:
        logger.info("Company dashboard requested without a company: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    snapshot = dashboard_service.company_dashboard(company_id)
    return DashboardStatisticsResponse.from_snapshot(snapshot)
