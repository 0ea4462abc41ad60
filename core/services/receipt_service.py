"""
Receipt service.

A receipt is proof that an invoice was paid in full. Receipts are normally
issued by PaymentService when a verification moves an invoice to PAID, and
can also be issued by hand. An invoice has at most one receipt.
"""

import logging
from datetime import datetime
from uuid import UUID

from core.access import AccessGate
from core.audit import AuditLogger, AuditAction, compute_changes
from core.billing import settlement_status
from core.config import BillingConfig
from core.exceptions import BusinessRuleError
from core.models import Invoice, InvoiceStatus, Project, Receipt, ReceiptCreate, ReceiptUpdate, Tenant, Unit
from core.numbering import receipt_number, with_unique_number
from core.stores import Stores
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def issue_receipt(
    stores: Stores,
    invoice: Invoice,
    project: Project,
    amount_satang: int,
    attempts: int,
    issued_at: datetime | None = None,
) -> Receipt | None:
    """
    Insert the invoice's receipt.

    Returns:
        The new receipt, or None when the invoice already has one

    Raises:
        DuplicateNumberError: No free receipt number after `attempts` tries
    """
    tenant_snapshot = invoice.tenant_snapshot
    if tenant_snapshot is None:
        tenant = stores.tenants.get(invoice.tenant_id)
        tenant_snapshot = tenant.snapshot() if tenant else None

    base = {
        "invoice_id": invoice.id,
        "amount_satang": amount_satang,
        "issued_at": issued_at or now_utc(),
        "invoice_snapshot": invoice.snapshot(),
        "tenant_snapshot": tenant_snapshot,
    }
    return with_unique_number(
        lambda: receipt_number(project.code),
        lambda number: stores.receipts.insert_once({**base, "receipt_no": number}),
        attempts,
    )


class ReceiptService:
    """Service for receipt operations."""

    def __init__(self, stores: Stores, audit: AuditLogger, config: BillingConfig | None = None):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.config = config or BillingConfig()

    def list_all(self, owner_id: UUID, project_id: UUID | None = None) -> list[Receipt]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)
        return self.stores.receipts.list_for_projects(project_ids)

    def get(self, owner_id: UUID, receipt_id: UUID) -> Receipt:
        receipt, _, _ = self.gate.receipt(owner_id, receipt_id)
        return receipt

    def document_context(
        self, owner_id: UUID, receipt_id: UUID,
    ) -> tuple[Receipt, Invoice, Project, Unit, Tenant | None]:
        """Everything needed to render a receipt."""
        receipt, invoice, project = self.gate.receipt(owner_id, receipt_id)
        unit = self.stores.units.get(invoice.unit_id)
        tenant = self.stores.tenants.get(invoice.tenant_id)
        return receipt, invoice, project, unit, tenant

    def create(self, owner_id: UUID, data: ReceiptCreate) -> Receipt:
        """
        Issue a receipt by hand. Amount defaults to the invoice total.

        Raises:
            NotFoundError: Invoice missing or foreign
            BusinessRuleError: Invoice already has a receipt
        """
        invoice, project = self.gate.invoice(owner_id, data.invoice_id)

        if self.stores.receipts.get_for_invoice(invoice.id) is not None:
            raise BusinessRuleError("Receipt already exists for this invoice")

        receipt = issue_receipt(
            self.stores,
            invoice,
            project,
            amount_satang=data.amount_satang or invoice.total_amount_satang,
            attempts=self.config.document_number_attempts,
            issued_at=data.issued_at,
        )
        if receipt is None:
            # Lost the race to a concurrent verification
            raise BusinessRuleError("Receipt already exists for this invoice")

        self.audit.log_change(
            "receipt", receipt.id, AuditAction.CREATE,
            {"created": {
                "receipt_no": receipt.receipt_no,
                "invoice_id": str(invoice.id),
                "amount_satang": receipt.amount_satang,
            }},
            user_id=owner_id,
        )
        logger.info(f"Issued receipt {receipt.receipt_no} for invoice {invoice.invoice_no}")
        return receipt

    def update(self, owner_id: UUID, receipt_id: UUID, data: ReceiptUpdate) -> Receipt:
        current, _, _ = self.gate.receipt(owner_id, receipt_id)

        updates = data.model_dump(exclude_none=True)
        if not updates:
            return current

        updated = self.stores.receipts.update(receipt_id, updates)
        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change("receipt", receipt_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete(self, owner_id: UUID, receipt_id: UUID) -> Invoice:
        """
        Delete a receipt and resynchronise its invoice with verified payments.

        The invoice's paid amount becomes the sum of its VERIFIED payments
        and its status follows from that sum.

        Returns:
            The invoice after recomputation
        """
        current, invoice, _ = self.gate.receipt(owner_id, receipt_id)

        self.stores.receipts.delete(receipt_id)

        paid = self.stores.payments.sum_verified(invoice.id)
        status = invoice.status
        if status != InvoiceStatus.CANCELLED:
            status = settlement_status(paid, invoice.total_amount_satang)
        updated_invoice = self.stores.invoices.set_paid(invoice.id, paid, status)

        self.audit.log_change(
            "receipt", receipt_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )
        if paid != invoice.paid_amount_satang or status != invoice.status:
            self.audit.log_change(
                "invoice", invoice.id, AuditAction.UPDATE,
                {
                    "paid_amount_satang": {"old": invoice.paid_amount_satang, "new": paid},
                    "status": {"old": invoice.status.value, "new": status.value},
                },
                user_id=owner_id,
            )

        logger.info(f"Deleted receipt {current.receipt_no}; invoice {invoice.invoice_no} now {status.value}")
        return updated_invoice

    def mark_sent_via_line(self, receipt_id: UUID) -> Receipt:
        """Record that the receipt was pushed to the tenant over LINE."""
        return self.stores.receipts.update(receipt_id, {"sent_via_line": True, "sent_at": now_utc()})
