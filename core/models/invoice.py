"""Invoice domain models.

All amounts are integer satang to avoid floating point issues.
฿100.00 = 10000 satang. Tax rates are basis points (10000 = 100%).
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.meter import BillingMonth
from core.models.snapshot import InvoiceSnapshot, TenantSnapshot


class InvoiceStatus(str, Enum):
    """Invoice settlement status."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# Statuses a tenant can still pay against
PAYABLE_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE)


class InvoiceType(str, Enum):
    RENT = "rent"
    UTILITY = "utility"
    COMBINED = "combined"

    @property
    def includes_rent(self) -> bool:
        return self in (InvoiceType.RENT, InvoiceType.COMBINED)

    @property
    def includes_utilities(self) -> bool:
        return self in (InvoiceType.UTILITY, InvoiceType.COMBINED)


class LineItem(BaseModel):
    """One billed line. Metered lines also carry usage and rate."""

    description: str
    amount_satang: int
    quantity: int | None = None
    unit_price_satang: int | None = None
    usage: Decimal | None = None
    rate_satang: int | None = None


class InvoiceIssue(BaseModel):
    """Issue an invoice for the active tenant of one unit."""

    unit_id: UUID
    type: InvoiceType
    billing_month: BillingMonth
    due_date: date


class BulkInvoiceIssue(BaseModel):
    """Issue invoices for every active tenant, optionally within one project."""

    project_id: UUID | None = None
    type: InvoiceType
    billing_month: BillingMonth
    due_date: date


class InvoiceUpdate(BaseModel):
    """
    Editable invoice fields.

    Amounts and line items are fixed at issuance. Payments move the status,
    except cancellation which is explicit.
    """

    due_date: date | None = None
    status: InvoiceStatus | None = None


class Invoice(BaseModel):
    """Full invoice entity as stored."""

    id: UUID
    invoice_no: str
    project_id: UUID
    unit_id: UUID
    tenant_id: UUID
    type: InvoiceType
    billing_month: str
    due_date: date
    line_items: list[LineItem] = Field(default_factory=list)
    subtotal_satang: int
    withholding_tax_bps: int = 0
    withholding_tax_satang: int = 0
    total_amount_satang: int
    paid_amount_satang: int = 0
    status: InvoiceStatus = InvoiceStatus.PENDING
    tenant_snapshot: TenantSnapshot | None = None
    sent_via_line: bool = False
    sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def balance_due_satang(self) -> int:
        """Remaining amount to be paid in satang."""
        return self.total_amount_satang - self.paid_amount_satang

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def is_payable(self) -> bool:
        return self.status in PAYABLE_STATUSES

    def snapshot(self) -> InvoiceSnapshot:
        """Freeze the fields payments and receipts display."""
        return InvoiceSnapshot(
            invoice_no=self.invoice_no,
            invoice_date=self.created_at,
            total_amount_satang=self.total_amount_satang,
        )
