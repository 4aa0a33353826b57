"""
tests/test_source_collector.py

Fan-out/join of backend fetchers: every outcome is captured, nothing
short-circuits.
"""

from __future__ import annotations

import threading

from app.services.source_collector import collect_sources
from stats.records import SourceResult


class TestCollectSources:
    def test_successes_and_failures_captured_independently(self) -> None:
        def boom() -> SourceResult:
            raise RuntimeError("connection reset")

        results = collect_sources(
            {
                "users": lambda: SourceResult.success({"totalUsers": 4}),
                "companies": boom,
                "items": lambda: SourceResult.failure("HTTP 404"),
            }
        )
        assert list(results) == ["users", "companies", "items"]
        assert results["users"].ok is True
        assert results["companies"].ok is False
        assert "connection reset" in (results["companies"].error or "")
        assert results["items"].error == "HTTP 404"

    def test_failure_does_not_cancel_others(self) -> None:
        release = threading.Event()

        def slow() -> SourceResult:
            release.wait(timeout=5)
            return SourceResult.success([1, 2, 3])

        def failing() -> SourceResult:
            release.set()
            raise ValueError("bad payload")

        results = collect_sources({"slow": slow, "failing": failing}, max_workers=2)
        assert results["slow"].data == [1, 2, 3]
        assert results["failing"].ok is False

    def test_non_result_return_is_failure(self) -> None:
        results = collect_sources({"odd": lambda: {"not": "a result"}})  # type: ignore[dict-item]
        assert results["odd"].ok is False

    def test_empty(self) -> None:
        assert collect_sources({}) == {}
