"""Tests for the receipt issued handler.

On ReceiptIssued: push the receipt text to the tenant's linked LINE contact.

Runs through build_services so the subscription itself is covered.
"""

import logging
from datetime import timedelta
from unittest.mock import Mock

import pytest

from app import build_services
from clients.line_client import LineClient
from core.exceptions import UpstreamError
from core.handlers.receipt_issued_handler import handle_receipt_issued
from core.models import InvoiceIssue, InvoiceType, MessageDirection, PaymentCreate, PaymentMethod


@pytest.fixture
def line_client():
    return Mock(spec=LineClient)


@pytest.fixture
def services(stores, audit, storage, config, line_client):
    return build_services(stores, audit, storage, config, line_client_factory=Mock(return_value=line_client))


@pytest.fixture
def invoice(services, test_user_id, unit, tenant, today):
    return services["invoice"].create_for_unit(test_user_id, InvoiceIssue(
        unit_id=unit.id,
        type=InvoiceType.RENT,
        billing_month=f"{today:%Y-%m}",
        due_date=today + timedelta(days=7),
    ))


@pytest.fixture
def linked_contact(stores, project, tenant):
    contact = stores.line_contacts.insert({
        "project_id": project.id,
        "line_user_id": "U-tenant",
        "display_name": "Somchai",
    })
    return stores.line_contacts.update(contact.id, {"tenant_id": tenant.id})


def pay_in_full(services, owner_id, invoice):
    return services["payment"].create(owner_id, PaymentCreate(
        invoice_id=invoice.id,
        amount_satang=invoice.total_amount_satang,
        method=PaymentMethod.CASH,
        auto_verify=True,
    ))


class TestReceiptIssuedHandler:

    def test_pushes_receipt_to_linked_tenant(self, services, stores, line_client, linked_contact, invoice, test_user_id):
        pay_in_full(services, test_user_id, invoice)

        receipt = stores.receipts.get_for_invoice(invoice.id)
        to, messages = line_client.push.call_args.args
        assert to == "U-tenant"
        assert receipt.receipt_no in messages[0]["text"]
        assert "10,500.00" in messages[0]["text"]
        assert receipt.sent_via_line is True
        assert receipt.sent_at is not None

        logged = stores.line_messages.list_for_contact(linked_contact.id)
        assert [m.direction for m in logged] == [MessageDirection.OUTGOING]

    def test_tenant_without_contact_skipped(self, services, stores, line_client, invoice, test_user_id, caplog):
        with caplog.at_level(logging.INFO, logger="core.handlers.receipt_issued_handler"):
            pay_in_full(services, test_user_id, invoice)

        line_client.push.assert_not_called()
        assert stores.receipts.get_for_invoice(invoice.id).sent_via_line is False
        assert "no LINE contact" in caplog.text

    def test_push_failure_does_not_undo_payment(self, services, stores, line_client, linked_contact, invoice, test_user_id):
        line_client.push.side_effect = UpstreamError("LINE push failed", 500)

        payment = pay_in_full(services, test_user_id, invoice)

        assert payment.status.value == "verified"
        assert stores.invoices.get(invoice.id).status.value == "paid"
        assert stores.receipts.get_for_invoice(invoice.id).sent_via_line is False


class TestHandlerFactory:

    def test_delegates_to_line_service(self):
        line_service = Mock()
        line_service.push_receipt.return_value = True
        event = Mock(receipt=Mock(receipt_no="RCP-SUK-202501-0001"), invoice=Mock())

        handle_receipt_issued(line_service)(event)

        line_service.push_receipt.assert_called_once_with(event.receipt, event.invoice)
