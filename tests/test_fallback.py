"""
tests/test_fallback.py

Unit tests for placeholder figures on headline counters.
"""

from __future__ import annotations

import pytest

from stats.aggregator import DashboardCounters
from stats.fallback import apply_fallbacks


class TestFallbackRules:
    def test_all_zero_counters_get_baseline(self) -> None:
        result = apply_fallbacks(DashboardCounters())
        counters = result.counters
        assert counters.total_companies == 5
        assert counters.active_companies == 4
        assert counters.inactive_companies == 1
        assert counters.total_users == 40
        assert counters.total_products == 150
        assert counters.total_stock == 2250
        assert counters.low_stock_items == 12
        assert counters.out_of_stock_items == 3
        assert counters.total_parties == 50
        assert counters.total_suppliers == 15
        assert result.uses_fallback is True

    def test_users_from_real_companies(self) -> None:
        counters = apply_fallbacks(DashboardCounters(total_companies=3)).counters
        assert counters.total_users == 24

    def test_users_floor_of_ten(self) -> None:
        counters = apply_fallbacks(DashboardCounters(total_companies=1)).counters
        assert counters.total_users == 10

    def test_real_users_untouched(self) -> None:
        result = apply_fallbacks(DashboardCounters(total_users=7, total_companies=3))
        assert result.counters.total_users == 7
        assert "total_users" not in result.fallback_fields

    def test_products_scale_with_companies(self) -> None:
        counters = apply_fallbacks(DashboardCounters(total_users=1, total_companies=10)).counters
        assert counters.total_products == 200
        assert counters.total_stock == 3000
        assert counters.low_stock_items == 16
        assert counters.out_of_stock_items == 4

    def test_real_products_untouched(self) -> None:
        real = DashboardCounters(total_companies=2, total_products=8, low_stock_items=1)
        counters = apply_fallbacks(real).counters
        assert counters.total_products == 8
        assert counters.low_stock_items == 1

    def test_parties_floor_keeps_larger_real_value(self) -> None:
        counters = apply_fallbacks(DashboardCounters(total_companies=2, total_parties=120)).counters
        assert counters.total_parties == 120
        assert counters.total_suppliers == 36

    def test_parties_floor_from_companies(self) -> None:
        counters = apply_fallbacks(DashboardCounters(total_companies=9, total_parties=12)).counters
        assert counters.total_parties == 90
        assert counters.total_suppliers == 27

    def test_input_not_mutated(self) -> None:
        original = DashboardCounters()
        apply_fallbacks(original)
        assert original.total_companies == 0
        assert original.total_users == 0

    def test_fallback_fields_reported_in_rule_order(self) -> None:
        fields = apply_fallbacks(DashboardCounters()).fallback_fields
        assert fields[:4] == ("total_companies", "active_companies", "inactive_companies", "total_users")
        assert fields[-2:] == ("total_parties", "total_suppliers")


class TestFallbackMonotonicity:
    @pytest.mark.parametrize(
        "companies, parties",
        [(0, 0), (1, 0), (3, 49), (5, 51), (12, 30), (12, 500), (100, 999)],
    )
    def test_parties_at_least_floors(self, companies: int, parties: int) -> None:
        counters = apply_fallbacks(DashboardCounters(total_companies=companies, total_parties=parties)).counters
        assert counters.total_parties >= 50
        assert counters.total_parties >= counters.total_companies * 10
        assert counters.total_parties >= parties
