"""
tests/test_normalizer.py

Unit tests for mapping backend documents into canonical records.

Coverage
--------
- Invoice identity chains and placeholders
- Amount, status and pending derivation for sales and purchases
- Payload extraction from lists, envelopes and failed sources
- Item, party and company defaults
- Admin summary payloads (users, companies, item stats, low stock)
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stats.normalizer import (
    SALES_NUMBER_CHAIN,
    extract_rows,
    normalize_companies,
    normalize_company_summary,
    normalize_invoices,
    normalize_item,
    normalize_item_stats,
    normalize_low_stock_count,
    normalize_parties,
    normalize_party,
    normalize_purchase_invoice,
    normalize_sales_invoice,
    normalize_user_summary,
)
from stats.records import SourceResult


# ---------------------------------------------------------------------------
# Payload extraction
# ---------------------------------------------------------------------------


class TestExtractRows:
    def test_bare_list(self) -> None:
        assert extract_rows(SourceResult.success([{"a": 1}]), ("sales",)) == [{"a": 1}]

    def test_list_under_known_key(self) -> None:
        result = SourceResult.success({"invoices": [{"a": 1}], "total": 1})
        assert extract_rows(result, ("sales", "invoices")) == [{"a": 1}]

    def test_failed_source_is_empty(self) -> None:
        assert extract_rows(SourceResult.failure("boom"), ("sales",)) == []

    def test_non_list_payload_is_empty(self) -> None:
        assert extract_rows(SourceResult.success({"sales": "nope"}), ("sales",)) == []
        assert extract_rows(SourceResult.success(None), ("sales",)) == []

    def test_non_object_rows_skipped(self) -> None:
        result = SourceResult.success([{"a": 1}, "junk", 3, None, {"b": 2}])
        assert extract_rows(result, ()) == [{"a": 1}, {"b": 2}]


# ---------------------------------------------------------------------------
# Sales invoices
# ---------------------------------------------------------------------------


class TestSalesInvoice:
    def test_chain_order_is_invoice_then_sale_number(self) -> None:
        assert [accessor({"invoiceNumber": "I", "saleNumber": "S"}) for accessor in SALES_NUMBER_CHAIN] == ["I", "S"]

    def test_invoice_number_preferred(self) -> None:
        record = normalize_sales_invoice({"_id": "abc123456", "invoiceNumber": "INV-9", "saleNumber": "S-9"})
        assert record.number == "INV-9"

    def test_sale_number_when_invoice_number_missing(self) -> None:
        record = normalize_sales_invoice({"_id": "abc123456", "saleNumber": "S-9"})
        assert record.number == "S-9"

    def test_placeholder_uses_last_six_id_chars(self) -> None:
        record = normalize_sales_invoice({"_id": "64f0aa11bb22cc"})
        assert record.number == "SALES-bb22cc"

    def test_customer_name_chain(self) -> None:
        assert normalize_sales_invoice({"customer": {"name": "Ravi"}}).counterparty_name == "Ravi"
        assert normalize_sales_invoice({}).counterparty_name == "Unknown Customer"

    def test_total_prefers_final_total(self) -> None:
        record = normalize_sales_invoice({"totals": {"finalTotal": 1180}, "amount": 1000, "total": 900})
        assert record.total_amount == pytest.approx(1180.0)

    def test_total_falls_back_to_amount_then_total(self) -> None:
        assert normalize_sales_invoice({"amount": "250.5"}).total_amount == pytest.approx(250.5)
        assert normalize_sales_invoice({"total": 75}).total_amount == pytest.approx(75.0)
        assert normalize_sales_invoice({}).total_amount == 0.0

    def test_payment_fields(self) -> None:
        record = normalize_sales_invoice(
            {
                "payment": {
                    "paidAmount": 200,
                    "pendingAmount": 300,
                    "status": "Partial",
                    "dueDate": "2024-01-10T00:00:00Z",
                },
                "createdAt": "2024-01-01T00:00:00Z",
            }
        )
        assert record.paid_amount == pytest.approx(200.0)
        assert record.pending_amount == pytest.approx(300.0)
        assert record.payment_status == "partial"
        assert record.due_date == datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert record.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_status_defaults_to_pending(self) -> None:
        assert normalize_sales_invoice({}).payment_status == "pending"

    def test_created_falls_back_to_invoice_date(self) -> None:
        record = normalize_sales_invoice({"invoiceDate": "2024-02-02"})
        assert record.created_at == datetime(2024, 2, 2, tzinfo=timezone.utc)

    def test_missing_dates_are_none(self) -> None:
        record = normalize_sales_invoice({})
        assert record.created_at is None
        assert record.due_date is None


# ---------------------------------------------------------------------------
# Purchase invoices
# ---------------------------------------------------------------------------


class TestPurchaseInvoice:
    def test_number_chain(self) -> None:
        assert normalize_purchase_invoice({"purchaseNumber": "P-1", "billNumber": "B-1"}).number == "P-1"
        assert normalize_purchase_invoice({"billNumber": "B-1"}).number == "B-1"
        assert normalize_purchase_invoice({"_id": "zzzzzz123456"}).number == "PURCHASE-123456"

    def test_supplier_name_chain(self) -> None:
        assert normalize_purchase_invoice({"supplierName": "Metro"}).counterparty_name == "Metro"
        assert normalize_purchase_invoice({"supplier": {"name": "Hub"}}).counterparty_name == "Hub"
        assert normalize_purchase_invoice({}).counterparty_name == "Unknown Supplier"

    def test_pending_derived_from_total_minus_paid(self) -> None:
        record = normalize_purchase_invoice({"totals": {"finalTotal": 800}, "paymentReceived": 300})
        assert record.paid_amount == pytest.approx(300.0)
        assert record.pending_amount == pytest.approx(500.0)

    def test_negative_pending_propagates(self) -> None:
        record = normalize_purchase_invoice({"amount": 100, "payment": {"paidAmount": 150}})
        assert record.pending_amount == pytest.approx(-50.0)

    def test_explicit_pending_wins(self) -> None:
        record = normalize_purchase_invoice({"amount": 100, "payment": {"paidAmount": 20, "pendingAmount": 10}})
        assert record.pending_amount == pytest.approx(10.0)

    def test_status_derived_paid_when_fully_covered(self) -> None:
        record = normalize_purchase_invoice({"amount": 100, "payment": {"paidAmount": 100}})
        assert record.payment_status == "paid"

    def test_status_pending_when_partially_covered(self) -> None:
        record = normalize_purchase_invoice({"amount": 100, "payment": {"paidAmount": 40}})
        assert record.payment_status == "pending"

    def test_zero_total_is_not_paid(self) -> None:
        assert normalize_purchase_invoice({}).payment_status == "pending"

    def test_explicit_status_wins_over_derivation(self) -> None:
        record = normalize_purchase_invoice({"amount": 100, "paymentReceived": 100, "paymentStatus": "cancelled"})
        assert record.payment_status == "cancelled"

    def test_due_date_fallback(self) -> None:
        record = normalize_purchase_invoice({"dueDate": "2024-05-01T00:00:00Z"})
        assert record.due_date == datetime(2024, 5, 1, tzinfo=timezone.utc)


class TestNormalizeInvoices:
    def test_sales_first_order_preserved(self) -> None:
        sales = SourceResult.success({"sales": [{"_id": "s1"}, {"_id": "s2"}]})
        purchases = SourceResult.success([{"_id": "p1"}])
        records = normalize_invoices(sales, purchases)
        assert [(r.kind, r.id) for r in records] == [("sales", "s1"), ("sales", "s2"), ("purchase", "p1")]

    def test_failed_sources_yield_nothing(self) -> None:
        assert normalize_invoices(SourceResult.failure("x"), SourceResult.missing()) == []


# ---------------------------------------------------------------------------
# Items, parties, companies
# ---------------------------------------------------------------------------


class TestItems:
    def test_defaults(self) -> None:
        item = normalize_item({"_id": "i1"})
        assert item.type == "product"
        assert item.category == "Uncategorized"
        assert item.is_active is True
        assert item.current_stock == 0.0

    def test_min_stock_chain(self) -> None:
        assert normalize_item({"minStockLevel": 5, "minStockToMaintain": 9}).min_stock_level == 5.0
        assert normalize_item({"minStockToMaintain": 9}).min_stock_level == 9.0

    def test_explicit_inactive(self) -> None:
        assert normalize_item({"isActive": False}).is_active is False

    def test_service_type(self) -> None:
        assert normalize_item({"type": "Service"}).type == "service"


class TestParties:
    def test_party_type_chain(self) -> None:
        assert normalize_party({"partyType": "supplier", "type": "customer"}).party_type == "supplier"
        assert normalize_party({"type": "vendor"}).party_type == "vendor"
        assert normalize_party({}).party_type == "customer"

    def test_balance_chain(self) -> None:
        assert normalize_party({"currentBalance": -120, "balance": 50}).balance == pytest.approx(-120.0)
        assert normalize_party({"outstandingAmount": "75"}).balance == pytest.approx(75.0)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ({"gstNumber": "27ABCDE1234F1Z5"}, True),
            ({"gstNo": "  29XYZ  "}, True),
            ({"taxNumber": "TX-1"}, True),
            ({"gstNumber": "   "}, False),
            ({}, False),
        ],
    )
    def test_gst_registration(self, raw: dict, expected: bool) -> None:
        assert normalize_party(raw).gst_registered is expected

    def test_activity_rules(self) -> None:
        assert normalize_party({}).is_active is True
        assert normalize_party({"status": "active"}).is_active is True
        assert normalize_party({"status": "inactive"}).is_active is False
        assert normalize_party({"isActive": False}).is_active is False
        assert normalize_party({"isActive": True, "status": "inactive"}).is_active is True

    def test_normalize_parties_skips_failed(self) -> None:
        assert normalize_parties(SourceResult.failure("down")) == []


class TestCompanies:
    def test_company_fields(self) -> None:
        result = SourceResult.success(
            {
                "companies": [
                    {
                        "_id": "c1",
                        "businessName": "Acme",
                        "businessType": "Retail",
                        "address": {"state": "Kerala"},
                        "createdAt": "2024-04-01T00:00:00Z",
                    }
                ]
            }
        )
        [company] = normalize_companies(result)
        assert company.name == "Acme"
        assert company.business_type == "Retail"
        assert company.state == "Kerala"
        assert company.is_active is True


# ---------------------------------------------------------------------------
# Admin summaries
# ---------------------------------------------------------------------------


class TestUserSummary:
    def test_total_users_chain(self) -> None:
        assert normalize_user_summary(SourceResult.success({"totalUsers": 12, "count": 3})).total_users == 12
        assert normalize_user_summary(SourceResult.success({"count": 3})).total_users == 3
        assert normalize_user_summary(SourceResult.success({"total": 4})).total_users == 4

    def test_total_falls_back_to_user_list_length(self) -> None:
        payload = {"users": [{"createdAt": "2024-01-01T00:00:00Z"}, {}]}
        assert normalize_user_summary(SourceResult.success(payload)).total_users == 2

    def test_failed_source_is_zero(self) -> None:
        assert normalize_user_summary(SourceResult.failure("x")).total_users == 0

    def test_roles_from_aggregation_rows(self) -> None:
        payload = {"usersByRole": [{"_id": "admin", "count": 2}, {"_id": "user", "count": 5}]}
        assert normalize_user_summary(SourceResult.success(payload)).users_by_role == {"admin": 2, "user": 5}

    def test_monthly_growth_pairs(self) -> None:
        payload = {"monthlyGrowth": [{"_id": "2024-01", "count": 3}, {"month": "2024-02", "count": 5}]}
        summary = normalize_user_summary(SourceResult.success(payload))
        assert summary.monthly_growth == (("2024-01", 3), ("2024-02", 5))


class TestCompanySummary:
    def test_admin_stats_override_list_stats(self) -> None:
        companies = SourceResult.success({"companies": [], "stats": {"activeCompanies": 1, "recentCompanies": 2}})
        stats = SourceResult.success({"activeCompanies": 7, "totalCompanies": 9})
        summary = normalize_company_summary(companies, stats)
        assert summary.active_companies == 7
        assert summary.recent_companies == 2
        assert summary.total_companies == 9

    def test_unreported_counters_are_none(self) -> None:
        summary = normalize_company_summary(SourceResult.failure("x"), SourceResult.failure("y"))
        assert summary.total_companies is None
        assert summary.business_type_distribution is None


class TestItemStatsAndLowStock:
    def test_stock_summary(self) -> None:
        payload = {
            "totalProducts": 40,
            "stockSummary": {"lowStock": 4, "outOfStock": 2, "inStock": 34},
        }
        summary = normalize_item_stats(SourceResult.success(payload))
        assert summary.total_products == 40
        assert summary.low_stock == 4
        assert summary.out_of_stock == 2
        assert summary.total_stock == pytest.approx(34.0)

    def test_low_stock_count_prefers_reported_count(self) -> None:
        assert normalize_low_stock_count(SourceResult.success({"count": 6, "items": [{}]})) == 6

    def test_low_stock_count_from_list(self) -> None:
        assert normalize_low_stock_count(SourceResult.success([{}, {}, {}])) == 3

    def test_low_stock_failed(self) -> None:
        assert normalize_low_stock_count(SourceResult.failure("x")) == 0
