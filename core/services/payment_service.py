"""
Payment reconciliation service.

Payments start PENDING and are reviewed once: VERIFIED adds the amount to the
invoice, REJECTED leaves the invoice alone. Both transitions are terminal.

Two compare-and-set writes keep concurrent reviewers honest:
- the payment leaves PENDING only if it is still PENDING, so a payment is
  applied at most once;
- the invoice's paid amount is replaced only if it still holds the value the
  new amount was computed from, retried a bounded number of times.

The verification that moves an invoice to PAID issues its receipt.
"""

import logging
from uuid import UUID

from clients.storage_client import StorageClient
from core.access import AccessGate
from core.audit import AuditLogger, AuditAction
from core.billing import settlement_status
from core.config import BillingConfig
from core.event_bus import EventBus
from core.events import InvoicePaid, PaymentVerified, ReceiptIssued
from core.exceptions import BusinessRuleError, ConcurrentUpdateError, UpstreamError
from core.models import (
    Invoice, InvoiceStatus, Payment, PaymentCreate, PaymentMethod,
    PaymentStatus, PaymentUpdate, Project,
)
from core.services.receipt_service import issue_receipt
from core.stores import Stores
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_TRANSFER_FIELDS = ("transfer_ref", "transfer_bank")
_CHECK_FIELDS = ("check_no", "check_bank", "check_date")


def method_fields(data: PaymentCreate | PaymentUpdate) -> dict:
    """Method-specific fields, with those of other methods cleared."""
    fields = {name: None for name in _TRANSFER_FIELDS + _CHECK_FIELDS}
    if data.method == PaymentMethod.TRANSFER:
        fields.update({name: getattr(data, name) for name in _TRANSFER_FIELDS})
    elif data.method == PaymentMethod.CHECK:
        fields.update({name: getattr(data, name) for name in _CHECK_FIELDS})
    return fields


class PaymentService:
    """Service for payment operations."""

    def __init__(
        self,
        stores: Stores,
        audit: AuditLogger,
        event_bus: EventBus,
        storage: StorageClient | None = None,
        config: BillingConfig | None = None,
    ):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.event_bus = event_bus
        self.storage = storage
        self.config = config or BillingConfig()

    def create(self, owner_id: UUID, data: PaymentCreate) -> Payment:
        """
        Record a payment against an invoice.

        Returns:
            The PENDING payment, or the VERIFIED one when auto_verify is set

        Raises:
            NotFoundError: Invoice missing or foreign
            BusinessRuleError: Invoice is cancelled
        """
        invoice, _ = self.gate.invoice(owner_id, data.invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED:
            raise BusinessRuleError("Cannot record a payment against a cancelled invoice")

        payment = self.stores.payments.insert({
            "invoice_id": invoice.id,
            "tenant_id": invoice.tenant_id,
            "amount_satang": data.amount_satang,
            "method": data.method,
            **method_fields(data),
            "notes": data.notes,
            "status": PaymentStatus.PENDING,
            "paid_at": now_utc(),
            "invoice_snapshot": invoice.snapshot(),
            "tenant_snapshot": self._tenant_snapshot(invoice),
        })

        self.audit.log_change(
            "payment", payment.id, AuditAction.CREATE,
            {"created": {
                "invoice_id": str(invoice.id),
                "amount_satang": payment.amount_satang,
                "method": payment.method.value,
            }},
            user_id=owner_id,
        )

        if data.auto_verify:
            return self.verify(owner_id, payment.id, approved=True)
        return payment

    def _tenant_snapshot(self, invoice: Invoice):
        if invoice.tenant_snapshot is not None:
            return invoice.tenant_snapshot
        tenant = self.stores.tenants.get(invoice.tenant_id)
        return tenant.snapshot() if tenant else None

    def verify(self, owner_id: UUID, payment_id: UUID, approved: bool) -> Payment:
        """
        Approve or reject a pending payment.

        On approval the amount is added to the invoice and its status is
        recomputed. The approval that takes the invoice to PAID issues its
        receipt for the new paid amount. Later approvals on a paid invoice
        raise the paid amount without a second receipt.

        Raises:
            NotFoundError: Payment missing or foreign
            BusinessRuleError: Payment is no longer PENDING, or its invoice
                was cancelled
            ConcurrentUpdateError: The invoice kept changing under us
        """
        payment, invoice, project = self.gate.payment(owner_id, payment_id)

        if payment.status != PaymentStatus.PENDING:
            raise BusinessRuleError(f"Payment is already {payment.status.value}")
        if approved and invoice.status == InvoiceStatus.CANCELLED:
            raise BusinessRuleError("Cannot verify a payment for a cancelled invoice")

        new_status = PaymentStatus.VERIFIED if approved else PaymentStatus.REJECTED
        reviewed = self.stores.payments.compare_and_set_status(
            payment_id, PaymentStatus.PENDING, new_status,
            verified_by=owner_id, verified_at=now_utc(),
        )
        if reviewed is None:
            raise BusinessRuleError("Payment was already reviewed")

        self.audit.log_change(
            "payment", payment_id, AuditAction.UPDATE,
            {"status": {"old": PaymentStatus.PENDING.value, "new": new_status.value}},
            user_id=owner_id,
        )

        if not approved:
            logger.info(f"Rejected payment {payment_id}")
            return reviewed

        before, after = self._apply_to_invoice(owner_id, reviewed, invoice.id)

        self.event_bus.publish(PaymentVerified.create(payment=reviewed, invoice=after, owner_id=owner_id))

        if before.status != InvoiceStatus.PAID and after.status == InvoiceStatus.PAID:
            self.event_bus.publish(InvoicePaid.create(invoice=after, owner_id=owner_id))
            self._issue_receipt(owner_id, after, project)

        logger.info(
            f"Verified payment {payment_id}: invoice {after.invoice_no} "
            f"{after.paid_amount_satang}/{after.total_amount_satang} {after.status.value}"
        )
        return reviewed

    def _apply_to_invoice(self, owner_id: UUID, payment: Payment, invoice_id: UUID) -> tuple[Invoice, Invoice]:
        """
        Add a verified amount to the invoice's paid amount.

        Returns:
            (invoice before, invoice after)

        Raises:
            BusinessRuleError: The invoice was cancelled after the payment was
                approved. The payment is returned to PENDING.
            ConcurrentUpdateError: Every attempt lost the compare-and-set. The
                payment is returned to PENDING so it can be verified again.
        """
        for _ in range(self.config.paid_amount_retry_attempts):
            before = self.stores.invoices.get(invoice_id)
            if before.status == InvoiceStatus.CANCELLED:
                self._reopen(payment)
                raise BusinessRuleError("Cannot verify a payment for a cancelled invoice")
            new_paid = before.paid_amount_satang + payment.amount_satang
            status = settlement_status(new_paid, before.total_amount_satang)

            after = self.stores.invoices.compare_and_set_paid(
                invoice_id, before.paid_amount_satang, new_paid, status,
            )
            if after is not None:
                self.audit.log_change(
                    "invoice", invoice_id, AuditAction.UPDATE,
                    {
                        "paid_amount_satang": {"old": before.paid_amount_satang, "new": new_paid},
                        "status": {"old": before.status.value, "new": status.value},
                    },
                    user_id=owner_id,
                )
                return before, after

        logger.warning(f"Gave up applying payment {payment.id} to invoice {invoice_id}")
        self._reopen(payment)
        raise ConcurrentUpdateError("Invoice was updated concurrently, please retry")

    def _reopen(self, payment: Payment) -> None:
        self.stores.payments.compare_and_set_status(
            payment.id, PaymentStatus.VERIFIED, PaymentStatus.PENDING,
            verified_by=None, verified_at=None,
        )

    def _issue_receipt(self, owner_id: UUID, invoice: Invoice, project: Project) -> None:
        receipt = issue_receipt(
            self.stores,
            invoice,
            project,
            amount_satang=invoice.paid_amount_satang,
            attempts=self.config.document_number_attempts,
        )
        if receipt is None:
            logger.info(f"Invoice {invoice.invoice_no} already has a receipt")
            return

        self.audit.log_change(
            "receipt", receipt.id, AuditAction.CREATE,
            {"created": {
                "receipt_no": receipt.receipt_no,
                "invoice_id": str(invoice.id),
                "amount_satang": receipt.amount_satang,
            }},
            user_id=owner_id,
        )
        self.event_bus.publish(ReceiptIssued.create(receipt=receipt, invoice=invoice, owner_id=owner_id))

    def get(self, owner_id: UUID, payment_id: UUID) -> Payment:
        payment, _, _ = self.gate.payment(owner_id, payment_id)
        return payment

    def list_all(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        status: PaymentStatus | None = None,
    ) -> list[Payment]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)
        return self.stores.payments.list_for_projects(project_ids, status=status)

    def update(self, owner_id: UUID, payment_id: UUID, data: PaymentUpdate) -> Payment:
        """
        Edit a pending payment.

        Raises:
            BusinessRuleError: Payment was already verified or rejected
        """
        current, _, _ = self.gate.payment(owner_id, payment_id)
        if current.status != PaymentStatus.PENDING:
            raise BusinessRuleError("Cannot edit verified or rejected payments")

        fields = {
            "amount_satang": data.amount_satang,
            "method": data.method,
            **method_fields(data),
            "notes": data.notes,
        }
        updated = self.stores.payments.update(payment_id, fields)

        changes = {}
        old = current.model_dump(mode="json")
        new = updated.model_dump(mode="json")
        for name in fields:
            if old.get(name) != new.get(name):
                changes[name] = {"old": old.get(name), "new": new.get(name)}
        if changes:
            self.audit.log_change("payment", payment_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete(self, owner_id: UUID, payment_id: UUID) -> None:
        """
        Delete a pending payment together with its slips.

        Raises:
            BusinessRuleError: Payment was already verified or rejected
        """
        current, _, _ = self.gate.payment(owner_id, payment_id)
        if current.status != PaymentStatus.PENDING:
            raise BusinessRuleError("Cannot delete verified or rejected payments")

        for slip in self.stores.slips.list_for_payment(payment_id):
            if self.storage is not None:
                try:
                    self.storage.delete(slip.storage_key)
                except UpstreamError as e:
                    logger.warning(f"Could not delete slip object {slip.storage_key}: {e}")
            self.stores.slips.delete(slip.id)

        self.stores.payments.delete(payment_id)
        self.audit.log_change(
            "payment", payment_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )
