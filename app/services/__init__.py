"""
app/services package marker.
"""

from app.services.dashboard_service import (
    CompanyNotResolvedError,
    DashboardError,
    DashboardService,
    get_dashboard_service,
)
from app.services.source_collector import collect_sources

__all__ = [
    "CompanyNotResolvedError",
    "DashboardError",
    "DashboardService",
    "collect_sources",
    "get_dashboard_service",
]
