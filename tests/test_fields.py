"""
tests/test_fields.py

Unit tests for field-resolution primitives: ordered accessor chains,
provider resolution, default-active coercion and value parsing.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from stats.fields import (
    first_of,
    is_active_default_true,
    is_nonzero_number,
    is_present,
    key,
    parse_timestamp,
    record_id,
    resolve_first,
    to_count,
    to_number,
)


class TestKeyAccessor:
    def test_reads_top_level_key(self) -> None:
        assert key("name")({"name": "Acme"}) == "Acme"

    def test_reads_nested_path(self) -> None:
        assert key("payment", "dueDate")({"payment": {"dueDate": "2024-01-01"}}) == "2024-01-01"

    def test_missing_step_yields_none(self) -> None:
        assert key("payment", "dueDate")({}) is None

    def test_non_mapping_step_yields_none(self) -> None:
        assert key("payment", "dueDate")({"payment": "cash"}) is None


class TestFirstOf:
    def test_first_present_value_wins(self) -> None:
        record = {"invoiceNumber": "INV-1", "saleNumber": "S-1"}
        assert first_of(record, (key("invoiceNumber"), key("saleNumber"))) == "INV-1"

    def test_falls_through_blank_strings(self) -> None:
        record = {"invoiceNumber": "   ", "saleNumber": "S-1"}
        assert first_of(record, (key("invoiceNumber"), key("saleNumber"))) == "S-1"

    def test_default_when_nothing_matches(self) -> None:
        assert first_of({}, (key("a"), key("b")), "fallback") == "fallback"

    def test_strips_string_results(self) -> None:
        assert first_of({"a": "  x  "}, (key("a"),)) == "x"

    def test_custom_predicate_skips_zero(self) -> None:
        record = {"totals": {"finalTotal": 0}, "amount": 250}
        value = first_of(record, (key("totals", "finalTotal"), key("amount")), 0, accept=is_nonzero_number)
        assert value == 250

    def test_zero_kept_by_default_predicate(self) -> None:
        assert first_of({"a": 0, "b": 5}, (key("a"), key("b"))) == 0


class TestResolveFirst:
    def test_later_providers_not_called(self) -> None:
        calls: list[str] = []

        def provider(name: str, value: str | None):
            def _inner() -> str | None:
                calls.append(name)
                return value

            return _inner

        result = resolve_first([provider("a", None), provider("b", "B"), provider("c", "C")])
        assert result == "B"
        assert calls == ["a", "b"]

    def test_empty_provider_list_returns_default(self) -> None:
        assert resolve_first([], default="none") == "none"


class TestPredicates:
    @pytest.mark.parametrize("value, expected", [(None, False), ("", False), ("  ", False), ("x", True), (0, True)])
    def test_is_present(self, value: object, expected: bool) -> None:
        assert is_present(value) is expected

    @pytest.mark.parametrize("value, expected", [(0, False), ("0", False), (None, False), (3, True), ("2.5", True)])
    def test_is_nonzero_number(self, value: object, expected: bool) -> None:
        assert is_nonzero_number(value) is expected


class TestIsActiveDefaultTrue:
    @pytest.mark.parametrize("flag", [None, True, "false", 0, "yes"])
    def test_anything_but_false_is_active(self, flag: object) -> None:
        assert is_active_default_true(flag) is True

    def test_explicit_false_is_inactive(self) -> None:
        assert is_active_default_true(False) is False


class TestCoercions:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (12, 12.0),
            ("12.5", 12.5),
            (" 7 ", 7.0),
            ("abc", 0.0),
            (None, 0.0),
            (True, 0.0),
            (float("nan"), 0.0),
            (float("inf"), 0.0),
            ([], 0.0),
        ],
    )
    def test_to_number(self, value: object, expected: float) -> None:
        result = to_number(value)
        assert not math.isnan(result)
        assert result == expected

    def test_to_count_clamps_negative(self) -> None:
        assert to_count(-4) == 0

    def test_to_count_truncates(self) -> None:
        assert to_count("7.9") == 7


class TestParseTimestamp:
    def test_iso_with_z_suffix(self) -> None:
        parsed = parse_timestamp("2024-03-05T10:00:00Z")
        assert parsed == datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)

    def test_naive_string_assumed_utc(self) -> None:
        parsed = parse_timestamp("2024-03-05T10:00:00")
        assert parsed is not None
        assert parsed.tzinfo is not None

    def test_epoch_milliseconds(self) -> None:
        parsed = parse_timestamp(0)
        assert parsed == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "not a date", True, {}])
    def test_unparseable_is_none(self, value: object) -> None:
        assert parse_timestamp(value) is None


class TestRecordId:
    def test_prefers_underscore_id(self) -> None:
        assert record_id({"_id": "abc", "id": "xyz"}) == "abc"

    def test_falls_back_to_id(self) -> None:
        assert record_id({"id": 42}) == "42"

    def test_missing_is_empty_string(self) -> None:
        assert record_id({}) == ""
