"""
stats

Dashboard statistics engine: normalize fetched backend payloads, aggregate
them and assemble an immutable snapshot.
"""

from stats.fallback import FallbackResult, apply_fallbacks
from stats.records import DashboardSources, GrowthPoint, SourceResult
from stats.snapshot import StatisticsSnapshot, build_statistics

__all__ = [
    "DashboardSources",
    "FallbackResult",
    "GrowthPoint",
    "SourceResult",
    "StatisticsSnapshot",
    "apply_fallbacks",
    "build_statistics",
]
