"""
app/connectors/backend_client.py

Fetchers for the business backend endpoints that feed the dashboards.

Every fetcher returns a :class:`~stats.records.SourceResult`.  Transport
failures and ``success: false`` envelopes become failed results; nothing
here raises for an unavailable source.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from app.config import BackendAPISettings, ExternalHTTPSettings
from app.connectors.base import BaseConnector, ConnectorRequestError, unwrap_envelope
from app.logging_utils import log_event
from stats.records import SourceResult

logger = logging.getLogger(__name__)


class BackendClient(BaseConnector):
    """
    Read-only client for the user, company, item, invoice and party APIs.
    """

    def __init__(
        self,
        *,
        settings: BackendAPISettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="backend", http_settings=http_settings, session=session)
        self._base_url = settings.base_url.rstrip("/")
        self._token = settings.token

    # ------------------------------------------------------------------
    # Admin-wide sources
    # ------------------------------------------------------------------

    def fetch_user_stats(self) -> SourceResult[Any]:
        return self._get_source("user_stats", "/api/users/stats")

    def fetch_companies(self, *, limit: int = 100) -> SourceResult[Any]:
        return self._get_source("companies", "/api/companies/admin/all", params={"limit": limit})

    def fetch_company_stats(self) -> SourceResult[Any]:
        return self._get_source("company_stats", "/api/companies/admin/stats")

    # ------------------------------------------------------------------
    # Company-scoped sources
    # ------------------------------------------------------------------

    def fetch_item_stats(self, company_id: str) -> SourceResult[Any]:
        return self._get_source("item_stats", f"/api/companies/{company_id}/items/admin/stats")

    def fetch_low_stock(self, company_id: str, *, limit: int = 50) -> SourceResult[Any]:
        return self._get_source(
            "low_stock",
            f"/api/companies/{company_id}/items/admin/low-stock",
            params={"limit": limit},
        )

    def fetch_items(self, company_id: str) -> SourceResult[Any]:
        return self._get_source("items", f"/api/companies/{company_id}/items")

    def fetch_sales(self, company_id: str) -> SourceResult[Any]:
        return self._get_source("sales", "/api/sales", params={"companyId": company_id})

    def fetch_purchases(self, company_id: str) -> SourceResult[Any]:
        return self._get_source("purchases", "/api/purchases", params={"companyId": company_id})

    def fetch_parties(self, company_id: str, *, limit: int = 100) -> SourceResult[Any]:
        return self._get_source(
            "parties",
            "/api/parties",
            params={"companyId": company_id, "page": 1, "limit": limit},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get_source(
        self,
        name: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> SourceResult[Any]:
        url = f"{self._base_url}{path}"
        started = time.monotonic()
        try:
            payload = self._request_json(method="GET", url=url, params=params, headers=self._headers())
        except ConnectorRequestError as exc:
            log_event(
                logger,
                logging.WARNING,
                "backend_fetch_failed",
                source=name,
                url=url,
                error=str(exc),
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
            return SourceResult.failure(str(exc))

        result = unwrap_envelope(payload)
        log_event(
            logger,
            logging.INFO if result.ok else logging.WARNING,
            "backend_fetch",
            source=name,
            url=url,
            ok=result.ok,
            error=result.error,
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return result
