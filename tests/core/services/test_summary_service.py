"""Tests for SummaryService."""

from datetime import timedelta

import pytest

from core.models import (
    InvoiceIssue, InvoiceStatus, InvoiceType, InvoiceUpdate, PaymentCreate, PaymentMethod,
)
from core.services.summary_service import SummaryService, collection_rate


@pytest.fixture
def summary_service(stores):
    return SummaryService(stores)


def pay_verified(payment_service, owner_id, invoice, amount_satang):
    return payment_service.create(owner_id, PaymentCreate(
        invoice_id=invoice.id, amount_satang=amount_satang, method=PaymentMethod.CASH, auto_verify=True,
    ))


class TestCollectionRate:

    def test_rounds_to_one_decimal(self):
        assert collection_rate(1, 3) == 33.3
        assert collection_rate(2, 3) == 66.7

    def test_nothing_invoiced(self):
        assert collection_rate(0, 0) == 0.0


class TestMonthly:
    """Tests for the per-month breakdown."""

    def test_unpaid_invoice_is_missing_payment(self, summary_service, rent_invoice, test_user_id):
        result = summary_service.monthly(test_user_id)

        month = result["summary_by_month"][0]
        assert month["billing_month"] == rent_invoice.billing_month
        assert month["total_invoiced"] == 1_050_000
        assert month["total_outstanding"] == 1_050_000
        assert month["pending_count"] == 1
        assert month["collection_rate"] == 0.0
        missing = month["missing_payments"][0]
        assert missing["invoice_no"] == rent_invoice.invoice_no
        assert missing["tenant"] == "Somchai Jaidee"
        assert missing["unit"] == "101"

    def test_partial_collection(self, summary_service, payment_service, rent_invoice, test_user_id):
        pay_verified(payment_service, test_user_id, rent_invoice, 525_000)

        month = summary_service.monthly(test_user_id)["summary_by_month"][0]

        assert month["partial_count"] == 1
        assert month["total_paid"] == 525_000
        assert month["collection_rate"] == 50.0
        assert month["missing_payments"] == []
        assert month["by_type"]["rent"] == {"invoiced": 1_050_000, "paid": 525_000}
        assert month["by_project"] == [{
            "project_id": str(rent_invoice.project_id),
            "project_name": "Sukhumvit Place",
            "total_invoiced": 1_050_000,
            "total_paid": 525_000,
            "collection_rate": 50.0,
        }]

    def test_same_named_projects_kept_apart(self, stores, summary_service, invoice_service, rent_invoice,
                                            test_user_id, billing_month, today):
        twin = stores.projects.insert(test_user_id, {"name": "Sukhumvit Place"})
        unit = stores.units.insert({"project_id": twin.id, "unit_number": "201"})
        stores.tenants.insert({
            "unit_id": unit.id, "name": "Malee Suksan", "base_rent_satang": 800_000,
            "contract_start": today - timedelta(days=30),
        })
        invoice_service.create_for_unit(test_user_id, InvoiceIssue(
            unit_id=unit.id, type=InvoiceType.RENT, billing_month=billing_month,
            due_date=today + timedelta(days=7),
        ))

        month = summary_service.monthly(test_user_id)["summary_by_month"][0]

        by_project = {p["project_id"]: p for p in month["by_project"]}
        assert set(by_project) == {str(rent_invoice.project_id), str(twin.id)}
        assert by_project[str(twin.id)]["project_name"] == "Sukhumvit Place"
        assert by_project[str(twin.id)]["total_invoiced"] == 800_000
        assert by_project[str(rent_invoice.project_id)]["total_invoiced"] == 1_050_000

    def test_overpayment_flagged(self, summary_service, payment_service, rent_invoice, test_user_id):
        pay_verified(payment_service, test_user_id, rent_invoice, 1_050_000)
        pay_verified(payment_service, test_user_id, rent_invoice, 1_050_000)

        result = summary_service.monthly(test_user_id)
        month = result["summary_by_month"][0]

        assert month["paid_count"] == 1
        assert month["receipts_count"] == 1
        duplicate = month["potential_duplicates"][0]
        assert duplicate["payments_count"] == 2
        assert duplicate["overpaid_by"] == 1_050_000
        assert result["overall_stats"]["total_potential_duplicates"] == 1

    def test_cancelled_invoice_not_missing(self, summary_service, invoice_service, rent_invoice, test_user_id):
        invoice_service.update(test_user_id, rent_invoice.id, InvoiceUpdate(status=InvoiceStatus.CANCELLED))

        month = summary_service.monthly(test_user_id)["summary_by_month"][0]

        assert month["missing_payments"] == []
        assert month["invoice_count"] == 1

    def test_months_newest_first_and_bounded(self, summary_service, invoice_service, rent_invoice,
                                             test_user_id, unit, today):
        invoice_service.create_for_unit(test_user_id, InvoiceIssue(
            unit_id=unit.id, type=InvoiceType.RENT, billing_month="2020-01", due_date=today + timedelta(days=1),
        ))

        result = summary_service.monthly(test_user_id)
        assert [m["billing_month"] for m in result["summary_by_month"]] == [rent_invoice.billing_month, "2020-01"]

        bounded = summary_service.monthly(test_user_id, start_month="2020-01", end_month="2020-12")
        assert [m["billing_month"] for m in bounded["summary_by_month"]] == ["2020-01"]

    def test_overall_stats(self, summary_service, invoice_service, rent_invoice, test_user_id):
        invoice_service.update(test_user_id, rent_invoice.id, InvoiceUpdate(status=InvoiceStatus.OVERDUE))

        stats = summary_service.monthly(test_user_id)["overall_stats"]

        assert stats["total_invoices"] == 1
        assert stats["overdue_invoices"] == 1
        assert stats["overdue_amount"] == 1_050_000
        assert stats["total_missing_payments"] == 1
        assert stats["average_collection_rate"] == 0.0

    def test_empty(self, summary_service, test_user_id):
        result = summary_service.monthly(test_user_id)

        assert result["summary_by_month"] == []
        assert result["overall_stats"]["total_invoices"] == 0

    def test_other_owner_sees_nothing(self, summary_service, rent_invoice, test_user_b_id):
        assert summary_service.monthly(test_user_b_id)["summary_by_month"] == []
