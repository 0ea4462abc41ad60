"""
Invoice issuance service.

Invoices are issued from a tenant's rent terms and the unit's meter readings
for a billing month. Amounts and line items are computed once by
core.billing and frozen on the invoice together with a tenant snapshot.
After issuance only payments (through PaymentService) and receipt deletion
(through ReceiptService) move the paid amount and status.
"""

import logging
from uuid import UUID

from core.access import AccessGate
from core.audit import AuditLogger, AuditAction
from core.billing import ActiveTenantRule, compute_invoice, is_active_tenant, select_active_tenant
from core.config import BillingConfig
from core.event_bus import EventBus
from core.events import InvoiceIssued
from core.exceptions import BusinessRuleError, NotFoundError
from core.models import (
    BulkInvoiceIssue, Invoice, InvoiceIssue, InvoiceStatus, InvoiceType,
    InvoiceUpdate, Project, Tenant, Unit,
)
from core.numbering import invoice_number, with_unique_number
from core.stores import Stores
from utils.timezone import now_utc, today_local

logger = logging.getLogger(__name__)

# Statuses an owner may set by hand. The rest follow from payments.
_MANUAL_STATUSES = {InvoiceStatus.CANCELLED, InvoiceStatus.OVERDUE}


class InvoiceService:
    """Service for invoice operations."""

    def __init__(
        self,
        stores: Stores,
        audit: AuditLogger,
        event_bus: EventBus,
        config: BillingConfig | None = None,
    ):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.event_bus = event_bus
        self.config = config or BillingConfig()

    def _issue(
        self,
        owner_id: UUID,
        project: Project,
        unit: Unit,
        tenant: Tenant,
        invoice_type: InvoiceType,
        billing_month: str,
        due_date,
    ) -> Invoice | None:
        """Compute and insert one invoice. None when there is nothing to bill."""
        readings = []
        if invoice_type.includes_utilities:
            readings = self.stores.meters.list_for_unit_month(unit.id, billing_month)

        amounts = compute_invoice(tenant, readings, invoice_type)
        if amounts.is_empty:
            return None

        base = {
            "project_id": project.id,
            "unit_id": unit.id,
            "tenant_id": tenant.id,
            "type": invoice_type,
            "billing_month": billing_month,
            "due_date": due_date,
            "line_items": amounts.line_items,
            "subtotal_satang": amounts.subtotal_satang,
            "withholding_tax_bps": amounts.withholding_tax_bps,
            "withholding_tax_satang": amounts.withholding_tax_satang,
            "total_amount_satang": amounts.total_amount_satang,
            "paid_amount_satang": 0,
            "status": InvoiceStatus.PENDING,
            "tenant_snapshot": tenant.snapshot(),
        }

        invoice = with_unique_number(
            lambda: invoice_number(project.code),
            lambda number: self.stores.invoices.insert({**base, "invoice_no": number}),
            self.config.document_number_attempts,
        )

        self.audit.log_change(
            entity_type="invoice",
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={
                "created": {
                    "invoice_no": invoice.invoice_no,
                    "tenant_id": str(tenant.id),
                    "billing_month": billing_month,
                    "type": invoice_type.value,
                    "subtotal_satang": amounts.subtotal_satang,
                    "withholding_tax_satang": amounts.withholding_tax_satang,
                    "total_amount_satang": amounts.total_amount_satang,
                }
            },
            user_id=owner_id,
        )

        self.event_bus.publish(InvoiceIssued.create(invoice=invoice, owner_id=owner_id))
        return invoice

    def create_for_unit(self, owner_id: UUID, data: InvoiceIssue) -> Invoice:
        """
        Issue an invoice for the tenant currently renting a unit.

        The tenant must have a running contract (start <= today <= end).

        Args:
            owner_id: Acting owner
            data: Unit, type, billing month and due date

        Returns:
            Created invoice in PENDING status

        Raises:
            NotFoundError: Unit missing/foreign, or no running tenant contract
            BusinessRuleError: Invoice already exists for the tenant, month and
                type, or there is nothing to bill
        """
        unit, project = self.gate.unit(owner_id, data.unit_id)

        tenants = self.stores.tenants.list_for_units([unit.id])
        tenant = select_active_tenant(
            tenants, today_local(self.config.timezone), ActiveTenantRule.CONTRACT_WINDOW,
        )
        if tenant is None:
            raise NotFoundError("Tenant", message="No active tenant found for this unit")

        if self.stores.invoices.exists_for(tenant.id, data.billing_month, data.type):
            raise BusinessRuleError(
                f"Invoice already exists for this tenant ({data.type.value}, {data.billing_month})"
            )

        invoice = self._issue(
            owner_id, project, unit, tenant, data.type, data.billing_month, data.due_date,
        )
        if invoice is None:
            raise BusinessRuleError("Nothing to bill: no rent or meter readings for this period")

        logger.info(f"Issued invoice {invoice.invoice_no} for unit {unit.unit_number}")
        return invoice

    def create_bulk(self, owner_id: UUID, data: BulkInvoiceIssue) -> dict:
        """
        Issue invoices for every tenant whose contract has not ended.

        Tenants that already have an invoice for the month and type are
        skipped, as are tenants with nothing to bill. Tenants are processed
        in order. The first failure aborts the rest of the batch, and
        invoices created before it stay.

        Returns:
            {"created": int, "skipped": int, "invoices": [Invoice]}
        """
        if data.project_id is not None:
            projects = [self.gate.project(owner_id, data.project_id)]
        else:
            projects = self.stores.projects.list_for_owner(owner_id)

        projects_by_id = {p.id: p for p in projects}
        units = self.stores.units.list_for_projects(list(projects_by_id))
        units_by_id = {u.id: u for u in units}

        today = today_local(self.config.timezone)
        tenants = [
            t for t in self.stores.tenants.list_for_units(list(units_by_id))
            if is_active_tenant(t, today, ActiveTenantRule.CONTRACT_END)
        ]

        created: list[Invoice] = []
        skipped = 0

        for tenant in tenants:
            if self.stores.invoices.exists_for(tenant.id, data.billing_month, data.type):
                skipped += 1
                continue

            unit = units_by_id[tenant.unit_id]
            invoice = self._issue(
                owner_id, projects_by_id[unit.project_id], unit, tenant,
                data.type, data.billing_month, data.due_date,
            )
            if invoice is not None:
                created.append(invoice)

        logger.info(
            f"Bulk issuance {data.type.value} {data.billing_month}: "
            f"{len(created)} created, {skipped} skipped"
        )
        return {"created": len(created), "skipped": skipped, "invoices": created}

    def get(self, owner_id: UUID, invoice_id: UUID) -> Invoice:
        invoice, _ = self.gate.invoice(owner_id, invoice_id)
        return invoice

    def document_context(self, owner_id: UUID, invoice_id: UUID) -> tuple[Invoice, Project, Unit, Tenant | None]:
        """Everything needed to render an invoice."""
        invoice, project = self.gate.invoice(owner_id, invoice_id)
        unit = self.stores.units.get(invoice.unit_id)
        tenant = self.stores.tenants.get(invoice.tenant_id)
        return invoice, project, unit, tenant

    def list_all(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        status: InvoiceStatus | None = None,
        billing_month: str | None = None,
    ) -> list[Invoice]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)
        return self.stores.invoices.list_for_projects(
            project_ids, status=status, billing_month=billing_month,
        )

    def update(self, owner_id: UUID, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        """
        Change the due date, cancel, or mark overdue.

        Raises:
            BusinessRuleError: Status not settable by hand, or the invoice is
                already paid or cancelled
        """
        current, _ = self.gate.invoice(owner_id, invoice_id)

        fields = {}
        changes = {}

        if data.due_date is not None and data.due_date != current.due_date:
            fields["due_date"] = data.due_date
            changes["due_date"] = {"old": current.due_date.isoformat(), "new": data.due_date.isoformat()}

        if data.status is not None and data.status != current.status:
            if data.status not in _MANUAL_STATUSES:
                raise BusinessRuleError(
                    f"Status {data.status.value} follows from payments and cannot be set directly"
                )
            if current.status in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
                raise BusinessRuleError(f"Invoice is {current.status.value} and cannot change status")
            fields["status"] = data.status
            changes["status"] = {"old": current.status.value, "new": data.status.value}

        if not fields:
            return current

        updated = self.stores.invoices.update(invoice_id, fields)
        self.audit.log_change("invoice", invoice_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete(self, owner_id: UUID, invoice_id: UUID) -> None:
        """
        Delete an invoice that was never paid against.

        Raises:
            BusinessRuleError: Invoice has payments or a receipt
        """
        current, _ = self.gate.invoice(owner_id, invoice_id)

        if self.stores.payments.list_for_invoice(invoice_id):
            raise BusinessRuleError("Cannot delete an invoice that has payments")
        if self.stores.receipts.get_for_invoice(invoice_id) is not None:
            raise BusinessRuleError("Cannot delete an invoice that has a receipt")

        self.stores.invoices.delete(invoice_id)
        self.audit.log_change(
            "invoice", invoice_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )

    def mark_sent_via_line(self, invoice_id: UUID) -> Invoice:
        """Record that the invoice was pushed to the tenant over LINE."""
        return self.stores.invoices.mark_sent(invoice_id, now_utc())
