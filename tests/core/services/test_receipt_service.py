"""Tests for ReceiptService."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from core.exceptions import BusinessRuleError, NotFoundError
from core.models import (
    InvoiceStatus, InvoiceUpdate, PaymentCreate, PaymentMethod, ReceiptCreate, ReceiptUpdate,
)


def verified_payment(payment_service, owner_id, invoice, amount_satang):
    return payment_service.create(owner_id, PaymentCreate(
        invoice_id=invoice.id, amount_satang=amount_satang,
        method=PaymentMethod.CASH, auto_verify=True,
    ))


class TestCreate:
    """Tests for issuing receipts by hand."""

    def test_defaults_to_invoice_total(self, receipt_service, rent_invoice, test_user_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        assert receipt.amount_satang == 1_050_000
        assert receipt.invoice_snapshot.invoice_no == rent_invoice.invoice_no
        assert receipt.tenant_snapshot.name == "Somchai Jaidee"

    def test_explicit_amount_and_date(self, receipt_service, rent_invoice, test_user_id):
        issued = datetime(2025, 1, 31, 3, 0, tzinfo=timezone.utc)

        receipt = receipt_service.create(test_user_id, ReceiptCreate(
            invoice_id=rent_invoice.id, amount_satang=500_000, issued_at=issued,
        ))

        assert receipt.amount_satang == 500_000
        assert receipt.issued_at == issued

    def test_one_receipt_per_invoice(self, receipt_service, rent_invoice, test_user_id):
        receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        with pytest.raises(BusinessRuleError):
            receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

    def test_foreign_invoice(self, receipt_service, rent_invoice, test_user_b_id):
        with pytest.raises(NotFoundError):
            receipt_service.create(test_user_b_id, ReceiptCreate(invoice_id=rent_invoice.id))

    def test_falls_back_to_live_tenant(self, stores, receipt_service, rent_invoice, test_user_id):
        """Invoices issued before snapshots existed still get a tenant snapshot."""
        stores.invoices.update(rent_invoice.id, {"tenant_snapshot": None})

        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        assert receipt.tenant_snapshot.name == "Somchai Jaidee"


class TestUpdate:

    def test_update_amount(self, receipt_service, audit, rent_invoice, test_user_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        updated = receipt_service.update(test_user_id, receipt.id, ReceiptUpdate(amount_satang=1_000_000))

        assert updated.amount_satang == 1_000_000
        changes = audit.log_change.call_args.args[3]
        assert changes["amount_satang"] == {"old": 1_050_000, "new": 1_000_000}

    def test_empty_update(self, receipt_service, rent_invoice, test_user_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        assert receipt_service.update(test_user_id, receipt.id, ReceiptUpdate()) == receipt


class TestDelete:
    """Deleting a receipt resynchronises the invoice with verified payments."""

    def test_paid_invoice_reverts_to_verified_sum(self, stores, receipt_service, payment_service,
                                                  rent_invoice, test_user_id):
        verified_payment(payment_service, test_user_id, rent_invoice, 1_050_000)
        receipt = stores.receipts.get_for_invoice(rent_invoice.id)

        invoice = receipt_service.delete(test_user_id, receipt.id)

        assert stores.receipts.get(receipt.id) is None
        assert invoice.paid_amount_satang == 1_050_000
        assert invoice.status == InvoiceStatus.PAID

    def test_manual_receipt_without_payments(self, stores, receipt_service, rent_invoice, test_user_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        invoice = receipt_service.delete(test_user_id, receipt.id)

        assert invoice.paid_amount_satang == 0
        assert invoice.status == InvoiceStatus.PENDING

    def test_drifted_paid_amount_corrected(self, stores, receipt_service, payment_service,
                                           rent_invoice, test_user_id):
        verified_payment(payment_service, test_user_id, rent_invoice, 300_000)
        stores.invoices.set_paid(rent_invoice.id, 1_050_000, InvoiceStatus.PAID)
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        invoice = receipt_service.delete(test_user_id, receipt.id)

        assert invoice.paid_amount_satang == 300_000
        assert invoice.status == InvoiceStatus.PARTIAL

    def test_cancelled_invoice_stays_cancelled(self, receipt_service, invoice_service, rent_invoice, test_user_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))
        invoice_service.update(test_user_id, rent_invoice.id, InvoiceUpdate(status=InvoiceStatus.CANCELLED))

        invoice = receipt_service.delete(test_user_id, receipt.id)

        assert invoice.status == InvoiceStatus.CANCELLED

    def test_foreign_receipt(self, receipt_service, rent_invoice, test_user_id, test_user_b_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        with pytest.raises(NotFoundError):
            receipt_service.delete(test_user_b_id, receipt.id)


class TestRead:

    def test_list_and_get(self, receipt_service, rent_invoice, test_user_id, project):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        assert [r.id for r in receipt_service.list_all(test_user_id)] == [receipt.id]
        assert [r.id for r in receipt_service.list_all(test_user_id, project_id=project.id)] == [receipt.id]
        assert receipt_service.get(test_user_id, receipt.id).receipt_no == receipt.receipt_no

    def test_get_missing(self, receipt_service, test_user_id):
        with pytest.raises(NotFoundError):
            receipt_service.get(test_user_id, uuid4())

    def test_document_context(self, receipt_service, rent_invoice, test_user_id, unit):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        _, invoice, _, ctx_unit, tenant = receipt_service.document_context(test_user_id, receipt.id)

        assert invoice.id == rent_invoice.id
        assert ctx_unit.id == unit.id
        assert tenant.name == "Somchai Jaidee"

    def test_mark_sent(self, receipt_service, rent_invoice, test_user_id):
        receipt = receipt_service.create(test_user_id, ReceiptCreate(invoice_id=rent_invoice.id))

        assert receipt_service.mark_sent_via_line(receipt.id).sent_via_line is True
