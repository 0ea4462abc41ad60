"""Tenant domain models.

Amounts are integer satang (1 THB = 100 satang). Percentages are basis
points (10000 = 100%).
"""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class TenantType(str, Enum):
    """Legal form of the tenant. Only companies withhold tax."""

    INDIVIDUAL = "individual"
    COMPANY = "company"


class TenantStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class TenantCreate(BaseModel):
    """Data required to create a tenant on a unit."""

    unit_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    name_th: str | None = Field(None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=30)
    id_card: str | None = Field(None, max_length=20)
    tax_id: str | None = Field(None, max_length=20)
    tenant_type: TenantType = TenantType.INDIVIDUAL
    withholding_tax_bps: int = Field(0, ge=0, le=10000)
    base_rent_satang: int = Field(0, ge=0)
    common_fee_satang: int = Field(0, ge=0)
    deposit_satang: int = Field(0, ge=0)
    discount_bps: int = Field(0, ge=0, le=10000)
    discount_amount_satang: int = Field(0, ge=0)
    contract_start: date | None = None
    contract_end: date | None = None


class TenantUpdate(BaseModel):
    """Partial tenant update. Only provided fields change."""

    status: TenantStatus | None = None
    name: str | None = Field(None, min_length=1, max_length=200)
    name_th: str | None = Field(None, max_length=200)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=30)
    id_card: str | None = Field(None, max_length=20)
    tax_id: str | None = Field(None, max_length=20)
    tenant_type: TenantType | None = None
    withholding_tax_bps: int | None = Field(None, ge=0, le=10000)
    base_rent_satang: int | None = Field(None, ge=0)
    common_fee_satang: int | None = Field(None, ge=0)
    deposit_satang: int | None = Field(None, ge=0)
    discount_bps: int | None = Field(None, ge=0, le=10000)
    discount_amount_satang: int | None = Field(None, ge=0)
    contract_start: date | None = None
    contract_end: date | None = None


class Tenant(BaseModel):
    """Full tenant entity as stored."""

    id: UUID
    unit_id: UUID
    status: TenantStatus = TenantStatus.ACTIVE
    name: str
    name_th: str | None = None
    email: str | None = None
    phone: str | None = None
    id_card: str | None = None
    tax_id: str | None = None
    tenant_type: TenantType = TenantType.INDIVIDUAL
    withholding_tax_bps: int = 0
    base_rent_satang: int = 0
    common_fee_satang: int = 0
    deposit_satang: int = 0
    discount_bps: int = 0
    discount_amount_satang: int = 0
    contract_start: date | None = None
    contract_end: date | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_company(self) -> bool:
        return self.tenant_type == TenantType.COMPANY

    def snapshot(self):
        """Freeze the fields documents display."""
        from core.models.snapshot import TenantSnapshot

        return TenantSnapshot(
            name=self.name,
            name_th=self.name_th,
            tenant_type=self.tenant_type,
            tax_id=self.tax_id,
            id_card=self.id_card,
            phone=self.phone,
            email=self.email,
        )
