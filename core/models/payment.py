"""Payment, slip and receipt domain models."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.snapshot import InvoiceSnapshot, TenantSnapshot


class PaymentStatus(str, Enum):
    """Verification state. VERIFIED and REJECTED are terminal."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CHECK = "check"


class PaymentCreate(BaseModel):
    """
    Record a payment against an invoice.

    auto_verify is for money already in hand (cash, cleared check): the
    payment is verified immediately instead of waiting for slip review.
    """

    invoice_id: UUID
    amount_satang: int = Field(..., gt=0)
    method: PaymentMethod
    transfer_ref: str | None = Field(None, max_length=100)
    transfer_bank: str | None = Field(None, max_length=100)
    check_no: str | None = Field(None, max_length=50)
    check_bank: str | None = Field(None, max_length=100)
    check_date: date | None = None
    notes: str | None = Field(None, max_length=2000)
    auto_verify: bool = False


class PaymentUpdate(BaseModel):
    """Edit a pending payment. Method-specific fields are cleared when the method changes."""

    amount_satang: int = Field(..., gt=0)
    method: PaymentMethod
    transfer_ref: str | None = Field(None, max_length=100)
    transfer_bank: str | None = Field(None, max_length=100)
    check_no: str | None = Field(None, max_length=50)
    check_bank: str | None = Field(None, max_length=100)
    check_date: date | None = None
    notes: str | None = Field(None, max_length=2000)


class PaymentVerify(BaseModel):
    """Owner decision on a pending payment."""

    approved: bool


class Payment(BaseModel):
    """Full payment entity as stored."""

    id: UUID
    invoice_id: UUID
    tenant_id: UUID
    amount_satang: int
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    transfer_ref: str | None = None
    transfer_bank: str | None = None
    check_no: str | None = None
    check_bank: str | None = None
    check_date: date | None = None
    notes: str | None = None
    paid_at: datetime | None = None
    verified_at: datetime | None = None
    verified_by: UUID | None = None
    invoice_snapshot: InvoiceSnapshot | None = None
    tenant_snapshot: TenantSnapshot | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SlipSource(str, Enum):
    """Channel a payment slip arrived through."""

    MANUAL = "manual"
    LINE_CHAT = "line_chat"
    LIFF = "liff"


class SlipUpload(BaseModel):
    """Base64 data URL of a slip image, e.g. 'data:image/png;base64,...'."""

    base64_image: str = Field(..., min_length=1)
    file_name: str | None = Field(None, max_length=255)


class PaymentSlip(BaseModel):
    id: UUID
    payment_id: UUID
    storage_key: str
    file_name: str
    content_type: str
    uploaded_by: str
    source: SlipSource
    created_at: datetime

    model_config = {"from_attributes": True}


class ReceiptCreate(BaseModel):
    """Manually issue a receipt. Amount defaults to the invoice total."""

    invoice_id: UUID
    amount_satang: int | None = Field(None, gt=0)
    issued_at: datetime | None = None


class ReceiptUpdate(BaseModel):
    amount_satang: int | None = Field(None, gt=0)
    issued_at: datetime | None = None


class Receipt(BaseModel):
    """Proof of full payment. At most one per invoice."""

    id: UUID
    receipt_no: str
    invoice_id: UUID
    amount_satang: int
    issued_at: datetime
    sent_via_line: bool = False
    sent_at: datetime | None = None
    invoice_snapshot: InvoiceSnapshot | None = None
    tenant_snapshot: TenantSnapshot | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
