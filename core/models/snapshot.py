"""Immutable snapshots of related records.

Invoices, payments and receipts keep the tenant and invoice details they were
issued with, so historical documents still display correctly after the live
tenant record changes.
"""

from datetime import datetime

from pydantic import BaseModel

from core.models.tenant import TenantType


class TenantSnapshot(BaseModel):
    """Tenant details as they were when a document was issued."""

    name: str
    name_th: str | None = None
    tenant_type: TenantType = TenantType.INDIVIDUAL
    tax_id: str | None = None
    id_card: str | None = None
    phone: str | None = None
    email: str | None = None

    model_config = {"frozen": True}

    def display_name(self, lang: str = "th") -> str:
        if lang == "th" and self.name_th:
            return self.name_th
        return self.name


class InvoiceSnapshot(BaseModel):
    """Invoice details copied onto payments and receipts."""

    invoice_no: str
    invoice_date: datetime
    total_amount_satang: int

    model_config = {"frozen": True}
