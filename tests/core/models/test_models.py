"""Tests for core domain models - validators and derived properties only."""

from datetime import date
from uuid import uuid4

import pytest
from pydantic import ValidationError

from core.models import (
    InvoiceStatus, InvoiceType, MeterReadingCreate, MeterType,
    PaymentCreate, PaymentMethod, TenantCreate, TenantSnapshot,
    validate_billing_month,
)


class TestBillingMonth:
    """Tests for the YYYY-MM billing month format."""

    @pytest.mark.parametrize("value", ["2025-01", "2025-12", "1999-06"])
    def test_accepts(self, value):
        assert validate_billing_month(value) == value

    @pytest.mark.parametrize("value", ["2025-13", "2025-00", "2025-1", "25-01", "2025/01", ""])
    def test_rejects(self, value):
        with pytest.raises(ValueError, match="YYYY-MM"):
            validate_billing_month(value)

    def test_enforced_on_request_models(self):
        with pytest.raises(ValidationError, match="YYYY-MM"):
            MeterReadingCreate(
                unit_id=uuid4(),
                type=MeterType.WATER,
                billing_month="January",
                current_reading=10,
                reading_date=date(2025, 1, 31),
            )


class TestTenantCreate:

    def test_bps_capped_at_100_percent(self):
        with pytest.raises(ValidationError, match="withholding_tax_bps"):
            TenantCreate(unit_id=uuid4(), name="A", withholding_tax_bps=10001)

    def test_negative_rent_rejected(self):
        with pytest.raises(ValidationError, match="base_rent_satang"):
            TenantCreate(unit_id=uuid4(), name="A", base_rent_satang=-1)

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError, match="email"):
            TenantCreate(unit_id=uuid4(), name="A", email="not-an-email")


class TestPaymentCreate:

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError, match="amount_satang"):
            PaymentCreate(invoice_id=uuid4(), amount_satang=0, method=PaymentMethod.CASH)


class TestInvoice:
    """Derived invoice properties."""

    @pytest.fixture
    def invoice(self, stores, project, unit, tenant):
        return stores.invoices.insert({
            "invoice_no": "INV-SUK-202501-0001",
            "project_id": project.id,
            "unit_id": unit.id,
            "tenant_id": tenant.id,
            "type": InvoiceType.COMBINED,
            "billing_month": "2025-01",
            "due_date": date(2025, 1, 31),
            "subtotal_satang": 1_200_000,
            "total_amount_satang": 1_200_000,
            "paid_amount_satang": 200_000,
            "status": InvoiceStatus.PARTIAL,
        })

    def test_balance_due(self, invoice):
        assert invoice.balance_due_satang == 1_000_000

    def test_payable_statuses(self, invoice):
        assert invoice.is_payable
        assert not invoice.model_copy(update={"status": InvoiceStatus.CANCELLED}).is_payable
        assert not invoice.model_copy(update={"status": InvoiceStatus.PAID}).is_payable

    def test_snapshot(self, invoice):
        snapshot = invoice.snapshot()

        assert snapshot.invoice_no == "INV-SUK-202501-0001"
        assert snapshot.total_amount_satang == 1_200_000
        assert snapshot.invoice_date == invoice.created_at

    def test_type_flags(self):
        assert InvoiceType.COMBINED.includes_rent and InvoiceType.COMBINED.includes_utilities
        assert not InvoiceType.RENT.includes_utilities
        assert not InvoiceType.UTILITY.includes_rent


class TestTenantSnapshot:

    def test_display_name_prefers_thai(self, tenant):
        snapshot = tenant.snapshot()

        assert snapshot.display_name("th") == "สมชาย ใจดี"
        assert snapshot.display_name("en") == "Somchai Jaidee"

    def test_frozen(self):
        snapshot = TenantSnapshot(name="A")

        with pytest.raises(ValidationError):
            snapshot.name = "B"
