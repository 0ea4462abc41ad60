"""
Ownership checks.

Every owner-scoped operation resolves its target through AccessGate, which
walks the relation chain back to the project and compares project.owner_id
with the caller. Nothing is cached: each call re-reads the chain, so a
transferred or deleted project takes effect immediately.

Missing and foreign records look the same to the caller (NotFoundError), so
ids reveal nothing. Contracts are the exception: a foreign contract raises
ForbiddenError.
"""

from uuid import UUID

from core.exceptions import ForbiddenError, NotFoundError
from core.models import (
    Invoice, LeaseContract, LineContact, MaintenanceRequest, MeterReading, Payment,
    Project, Receipt, Tenant, Unit,
)
from core.stores import Stores


class AccessGate:
    """Resolves records on behalf of an owner, raising when they are not theirs."""

    def __init__(self, stores: Stores):
        self.stores = stores

    def project_ids(self, owner_id: UUID) -> list[UUID]:
        return [p.id for p in self.stores.projects.list_for_owner(owner_id)]

    def project(self, owner_id: UUID, project_id: UUID) -> Project:
        project = self.stores.projects.get(project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("Project", project_id)
        return project

    def unit(self, owner_id: UUID, unit_id: UUID) -> tuple[Unit, Project]:
        unit = self.stores.units.get(unit_id)
        if unit is None:
            raise NotFoundError("Unit", unit_id)
        project = self.stores.projects.get(unit.project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("Unit", unit_id)
        return unit, project

    def tenant(self, owner_id: UUID, tenant_id: UUID) -> tuple[Tenant, Unit, Project]:
        tenant = self.stores.tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        try:
            unit, project = self.unit(owner_id, tenant.unit_id)
        except NotFoundError:
            raise NotFoundError("Tenant", tenant_id)
        return tenant, unit, project

    def meter_reading(self, owner_id: UUID, reading_id: UUID) -> tuple[MeterReading, Project]:
        reading = self.stores.meters.get(reading_id)
        if reading is None:
            raise NotFoundError("Meter reading", reading_id)
        project = self.stores.projects.get(reading.project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("Meter reading", reading_id)
        return reading, project

    def invoice(self, owner_id: UUID, invoice_id: UUID) -> tuple[Invoice, Project]:
        invoice = self.stores.invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        project = self.stores.projects.get(invoice.project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("Invoice", invoice_id)
        return invoice, project

    def payment(self, owner_id: UUID, payment_id: UUID) -> tuple[Payment, Invoice, Project]:
        payment = self.stores.payments.get(payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        try:
            invoice, project = self.invoice(owner_id, payment.invoice_id)
        except NotFoundError:
            raise NotFoundError("Payment", payment_id)
        return payment, invoice, project

    def receipt(self, owner_id: UUID, receipt_id: UUID) -> tuple[Receipt, Invoice, Project]:
        receipt = self.stores.receipts.get(receipt_id)
        if receipt is None:
            raise NotFoundError("Receipt", receipt_id)
        try:
            invoice, project = self.invoice(owner_id, receipt.invoice_id)
        except NotFoundError:
            raise NotFoundError("Receipt", receipt_id)
        return receipt, invoice, project

    def contract(self, owner_id: UUID, contract_id: UUID) -> tuple[LeaseContract, Project]:
        contract = self.stores.contracts.get(contract_id)
        if contract is None:
            raise NotFoundError("Contract", contract_id)
        project = self.stores.projects.get(contract.project_id)
        if project is None:
            raise NotFoundError("Contract", contract_id)
        if project.owner_id != owner_id:
            raise ForbiddenError("Contract belongs to another owner")
        return contract, project

    def maintenance_request(self, owner_id: UUID, request_id: UUID) -> tuple[MaintenanceRequest, Project]:
        request = self.stores.maintenance.get(request_id)
        if request is None:
            raise NotFoundError("Maintenance request", request_id)
        project = self.stores.projects.get(request.project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("Maintenance request", request_id)
        return request, project

    def line_contact(self, owner_id: UUID, contact_id: UUID) -> tuple[LineContact, Project]:
        contact = self.stores.line_contacts.get(contact_id)
        if contact is None:
            raise NotFoundError("LINE contact", contact_id)
        project = self.stores.projects.get(contact.project_id)
        if project is None or project.owner_id != owner_id:
            raise NotFoundError("LINE contact", contact_id)
        return contact, project
