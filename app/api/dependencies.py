"""
app/api/dependencies.py

Shared FastAPI dependencies for dashboard requests.
"""

from __future__ import annotations

from fastapi import Request

from app.config import get_dashboard_settings
from app.services.company_context import request_providers
from stats.fields import Provider


def get_company_providers(request: Request) -> list[Provider]:
    """
    Company ID providers for a request without a company in its path.

    Order: ``X-Company-ID`` header, ``companyId`` query parameter, then
    ``DASHBOARD_DEFAULT_COMPANY_ID``.
    """

    return request_providers(
        headers=dict(request.headers),
        query=dict(request.query_params),
        default_company_id=get_dashboard_settings().default_company_id,
    )
