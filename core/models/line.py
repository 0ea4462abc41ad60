"""LINE Official Account contact and message models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class MessageDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class LineContact(BaseModel):
    """A LINE user who follows a project's Official Account."""

    id: UUID
    project_id: UUID
    line_user_id: str
    display_name: str
    picture_url: str | None = None
    status_message: str | None = None
    tenant_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LineContactLink(BaseModel):
    """Link a contact to a tenant, or unlink with null."""

    tenant_id: UUID | None = None


class LineMessage(BaseModel):
    id: UUID
    line_contact_id: UUID
    direction: MessageDirection
    message_type: str
    content: str | None = None
    media_ref: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LineSendRequest(BaseModel):
    """
    Push a message to a tenant.

    With invoice_id or receipt_id the text is generated from the document and
    the recipient is the tenant's linked contact. Otherwise line_contact_id and
    message are required.
    """

    line_contact_id: UUID | None = None
    message: str | None = Field(None, max_length=5000)
    invoice_id: UUID | None = None
    receipt_id: UUID | None = None


class LineSlipSave(BaseModel):
    """Save an image a tenant sent in chat as a payment slip."""

    message_id: str = Field(..., min_length=1)
    project_id: UUID
    invoice_id: UUID


class LiffSlipSubmit(BaseModel):
    """Slip submitted from the LIFF page, identified by the LINE user id."""

    line_user_id: str = Field(..., min_length=1)
    invoice_id: UUID
    base64_image: str = Field(..., min_length=1)


class ContractLinkSend(BaseModel):
    """Push a contract's signing link to the tenant's linked contact."""

    base_url: str | None = Field(None, max_length=500, description="Origin of the public signing page")
