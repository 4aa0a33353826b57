"""
app/schemas package marker.
"""

from app.schemas.dashboard import DashboardStatisticsResponse, GrowthPointResponse, HealthResponse

__all__ = [
    "DashboardStatisticsResponse",
    "GrowthPointResponse",
    "HealthResponse",
]
