"""
Domain events for billing.

Immutable event objects that represent state changes in billing. A service
publishes what happened and handlers react without the publisher knowing
who's listening.

Event Categories:
- InvoiceEvent: Invoice lifecycle (issued, paid)
- PaymentEvent: Payment lifecycle (verified)
- ReceiptEvent: Receipt lifecycle (issued)

Events carry the full domain object so handlers don't need to re-fetch state.
Owner-scoped events also carry owner_id, because handlers run after the
request's owner check and must not repeat it.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class BillingEvent:
    """Base class for all billing domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# INVOICE EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceEvent(BillingEvent):
    """Events related to invoice lifecycle."""
    pass


@dataclass(frozen=True)
class InvoiceIssued(InvoiceEvent):
    """A new invoice was issued for a tenant."""
    invoice: Any = None  # Invoice
    owner_id: UUID | None = None

    @classmethod
    def create(cls, invoice: Any, owner_id: UUID) -> "InvoiceIssued":
        return cls(invoice=invoice, owner_id=owner_id)


@dataclass(frozen=True)
class InvoicePaid(InvoiceEvent):
    """Invoice reached PAID through a verified payment."""
    invoice: Any = None
    owner_id: UUID | None = None

    @classmethod
    def create(cls, invoice: Any, owner_id: UUID) -> "InvoicePaid":
        return cls(invoice=invoice, owner_id=owner_id)


# =============================================================================
# PAYMENT EVENTS
# =============================================================================


@dataclass(frozen=True)
class PaymentEvent(BillingEvent):
    """Events related to payment lifecycle."""
    pass


@dataclass(frozen=True)
class PaymentVerified(PaymentEvent):
    """A pending payment was approved and applied to its invoice."""
    payment: Any = None
    invoice: Any = None
    owner_id: UUID | None = None

    @classmethod
    def create(cls, payment: Any, invoice: Any, owner_id: UUID) -> "PaymentVerified":
        return cls(payment=payment, invoice=invoice, owner_id=owner_id)


# =============================================================================
# RECEIPT EVENTS
# =============================================================================


@dataclass(frozen=True)
class ReceiptEvent(BillingEvent):
    """Events related to receipt lifecycle."""
    pass


@dataclass(frozen=True)
class ReceiptIssued(ReceiptEvent):
    """A receipt was issued for a fully paid invoice."""
    receipt: Any = None
    invoice: Any = None
    owner_id: UUID | None = None

    @classmethod
    def create(cls, receipt: Any, invoice: Any, owner_id: UUID) -> "ReceiptIssued":
        return cls(receipt=receipt, invoice=invoice, owner_id=owner_id)
