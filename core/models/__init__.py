"""Core domain models."""

from core.models.project import (
    Project, ProjectCreate, ProjectUpdate,
    Unit, UnitCreate, UnitUpdate, UnitStatus, ImageUpload,
)
from core.models.tenant import Tenant, TenantCreate, TenantUpdate, TenantType, TenantStatus
from core.models.snapshot import TenantSnapshot, InvoiceSnapshot
from core.models.meter import (
    MeterReading, MeterReadingCreate, MeterReadingUpdate, MeterType,
    BillingMonth, validate_billing_month,
)
from core.models.invoice import (
    Invoice, InvoiceIssue, BulkInvoiceIssue, InvoiceUpdate,
    InvoiceStatus, InvoiceType, LineItem, PAYABLE_STATUSES,
)
from core.models.payment import (
    Payment, PaymentCreate, PaymentUpdate, PaymentVerify, PaymentStatus, PaymentMethod,
    PaymentSlip, SlipSource, SlipUpload,
    Receipt, ReceiptCreate, ReceiptUpdate,
)
from core.models.contract import (
    LeaseContract, ContractCreate, ContractUpdate, ContractStatus,
    SignatureSubmit, PublicContractView,
)
from core.models.line import (
    LineContact, LineContactLink, LineMessage, MessageDirection,
    LineSendRequest, LineSlipSave, LiffSlipSubmit, ContractLinkSend,
)
from core.models.maintenance import (
    MaintenanceRequest, MaintenanceRequestCreate, MaintenanceRequestUpdate,
    MaintenanceStatus, MaintenanceCategory, MaintenancePriority,
)

__all__ = [
    # Project / Unit
    "Project", "ProjectCreate", "ProjectUpdate",
    "Unit", "UnitCreate", "UnitUpdate", "UnitStatus", "ImageUpload",
    # Tenant
    "Tenant", "TenantCreate", "TenantUpdate", "TenantType", "TenantStatus",
    # Snapshots
    "TenantSnapshot", "InvoiceSnapshot",
    # Meter
    "MeterReading", "MeterReadingCreate", "MeterReadingUpdate", "MeterType",
    "BillingMonth", "validate_billing_month",
    # Invoice
    "Invoice", "InvoiceIssue", "BulkInvoiceIssue", "InvoiceUpdate",
    "InvoiceStatus", "InvoiceType", "LineItem", "PAYABLE_STATUSES",
    # Payment / Slip / Receipt
    "Payment", "PaymentCreate", "PaymentUpdate", "PaymentVerify", "PaymentStatus", "PaymentMethod",
    "PaymentSlip", "SlipSource", "SlipUpload",
    "Receipt", "ReceiptCreate", "ReceiptUpdate",
    # Contract
    "LeaseContract", "ContractCreate", "ContractUpdate", "ContractStatus",
    "SignatureSubmit", "PublicContractView",
    # LINE
    "LineContact", "LineContactLink", "LineMessage", "MessageDirection",
    "LineSendRequest", "LineSlipSave", "LiffSlipSubmit", "ContractLinkSend",
    # Maintenance
    "MaintenanceRequest", "MaintenanceRequestCreate", "MaintenanceRequestUpdate",
    "MaintenanceStatus", "MaintenanceCategory", "MaintenancePriority",
]
