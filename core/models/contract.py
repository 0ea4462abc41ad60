"""Lease contract domain models."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ContractStatus(str, Enum):
    """Signing workflow: DRAFT -> PENDING_TENANT (landlord signed) -> SIGNED."""

    DRAFT = "draft"
    PENDING_TENANT = "pending_tenant"
    SIGNED = "signed"
    CANCELLED = "cancelled"


class ContractCreate(BaseModel):
    """Draft a contract from a tenant's current terms."""

    tenant_id: UUID
    title: str | None = Field(None, max_length=200)
    title_th: str | None = Field(None, max_length=200)
    clauses: list[str] | None = None


class ContractUpdate(BaseModel):
    """Edit a draft. Omitted fields keep their current value."""

    title: str | None = Field(None, max_length=200)
    title_th: str | None = Field(None, max_length=200)
    clauses: list[str] | None = None
    base_rent_satang: int | None = Field(None, ge=0)
    common_fee_satang: int | None = Field(None, ge=0)
    deposit_satang: int | None = Field(None, ge=0)
    contract_start: date | None = None
    contract_end: date | None = None


class SignatureSubmit(BaseModel):
    """Signature image as a base64 data URL (PNG)."""

    signature: str = Field(..., min_length=1)


class LeaseContract(BaseModel):
    """Full contract entity as stored."""

    id: UUID
    contract_no: str
    project_id: UUID
    unit_id: UUID
    tenant_id: UUID
    title: str | None = None
    title_th: str | None = None
    base_rent_satang: int
    common_fee_satang: int = 0
    deposit_satang: int = 0
    contract_start: date
    contract_end: date
    clauses: list[str] | None = None
    status: ContractStatus = ContractStatus.DRAFT
    signing_token: str
    token_expires_at: datetime | None = None
    landlord_signature: str | None = None
    landlord_signed_at: datetime | None = None
    tenant_signature: str | None = None
    tenant_signed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PublicContractView(BaseModel):
    """What the tenant sees on the signing page. No tokens, no storage keys."""

    contract_no: str
    title: str | None
    title_th: str | None
    base_rent_satang: int
    common_fee_satang: int
    deposit_satang: int
    contract_start: date
    contract_end: date
    clauses: list[str] | None
    project_name: str
    project_name_th: str | None
    company_name: str | None
    company_address: str | None
    logo_url: str | None
    unit_number: str
    tenant_name: str
    tenant_name_th: str | None
    landlord_signed_at: datetime | None
