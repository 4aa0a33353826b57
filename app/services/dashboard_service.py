"""
app/services/dashboard_service.py

Dashboard orchestrator.

Wires BackendClient → collect_sources → build_statistics for the two
dashboards.  No statistics logic lives here; every layer keeps its own
responsibility:

    BackendClient       – one SourceResult per backend endpoint
    collect_sources     – concurrent fan-out/join, never short-circuits
    build_statistics    – normalization, aggregation, placeholder figures

Dashboards
----------
admin overview     user stats, company list, company stats and, when an
                   admin company is configured, its item stats and
                   low-stock list.  Placeholder figures apply unless
                   disabled by configuration or by the caller.
company dashboard  items, sales, purchases, parties, item stats and
                   low-stock list of one company.  Always real figures.

Failure contract
----------------
- Unavailable sources      → recorded in ``failed_sources``; never raised
- No resolvable company ID → raises CompanyNotResolvedError
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from functools import lru_cache, partial
from typing import Any, Sequence

from app.config import (
    DashboardSettings,
    get_backend_api_settings,
    get_dashboard_settings,
    get_external_http_settings,
)
from app.connectors.backend_client import BackendClient
from app.services.company_context import resolve_company_id
from app.services.source_collector import Fetcher, collect_sources
from stats.fields import Provider
from stats.records import DashboardSources
from stats.snapshot import StatisticsSnapshot, build_statistics

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DashboardError(RuntimeError):
    """
    Base class for dashboard service failures.
    """


class CompanyNotResolvedError(DashboardError):
    """
    Raised when no provider yields a company ID for a company dashboard.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class DashboardService:
    """
    Builds dashboard snapshots from live backend data.

    The service holds no per-request state; concurrent calls are safe.
    """

    def __init__(self, *, client: BackendClient, settings: DashboardSettings) -> None:
        self._client = client
        self._settings = settings

    def admin_overview(
        self,
        *,
        real_only: bool = False,
        now: datetime | None = None,
    ) -> StatisticsSnapshot:
        """
        Build the platform-wide admin overview.

        ``real_only=True`` suppresses placeholder figures for this call.
        """

        settings = self._settings
        fetchers: dict[str, Fetcher] = {
            "user_stats": self._client.fetch_user_stats,
            "companies": partial(self._client.fetch_companies, limit=settings.companies_limit),
            "company_stats": self._client.fetch_company_stats,
        }
        if settings.admin_company_id:
            company_id = settings.admin_company_id
            fetchers["item_stats"] = partial(self._client.fetch_item_stats, company_id)
            fetchers["low_stock"] = partial(
                self._client.fetch_low_stock, company_id, limit=settings.low_stock_limit
            )

        apply_fallback = settings.apply_fallback and not real_only
        return self._build("admin_overview", fetchers, apply_fallback=apply_fallback, now=now)

    def company_dashboard(
        self,
        company_id: str,
        *,
        now: datetime | None = None,
    ) -> StatisticsSnapshot:
        """
        Build the dashboard of one company from its own records.
        """

        settings = self._settings
        client = self._client
        fetchers: dict[str, Fetcher] = {
            "items": partial(client.fetch_items, company_id),
            "sales": partial(client.fetch_sales, company_id),
            "purchases": partial(client.fetch_purchases, company_id),
            "parties": partial(client.fetch_parties, company_id, limit=settings.parties_limit),
            "item_stats": partial(client.fetch_item_stats, company_id),
            "low_stock": partial(client.fetch_low_stock, company_id, limit=settings.low_stock_limit),
        }
        return self._build(f"company_dashboard[{company_id}]", fetchers, apply_fallback=False, now=now)

    def resolve_company(self, providers: Sequence[Provider]) -> str:
        """
        Return the first company ID offered by *providers*.

        Raises
        ------
        CompanyNotResolvedError
            If every provider comes up empty.
        """

        company_id = resolve_company_id(providers)
        if company_id is None:
            raise CompanyNotResolvedError(
                "No company selected. Pass a company ID in the path, the "
                "X-Company-ID header or the companyId query parameter."
            )
        return company_id

    def _build(
        self,
        label: str,
        fetchers: dict[str, Fetcher],
        *,
        apply_fallback: bool,
        now: datetime | None,
    ) -> StatisticsSnapshot:
        run_start = time.monotonic()
        results: dict[str, Any] = collect_sources(fetchers, max_workers=self._settings.fetch_workers)
        snapshot = build_statistics(
            DashboardSources.from_mapping(results),
            now=now,
            apply_fallback=apply_fallback,
            growth_months=self._settings.growth_months,
        )
        logger.info(
            "%s built in %.1f ms failed_sources=%s fallback_fields=%s",
            label,
            (time.monotonic() - run_start) * 1000,
            list(snapshot.failed_sources),
            list(snapshot.fallback_fields),
        )
        return snapshot


@lru_cache(maxsize=1)
def get_dashboard_service() -> DashboardService:
    """
    Build and cache the dashboard service.
    """

    client = BackendClient(
        settings=get_backend_api_settings(),
        http_settings=get_external_http_settings(),
    )
    return DashboardService(client=client, settings=get_dashboard_settings())
