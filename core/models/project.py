"""Project and unit domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    """Data required to create a project. The owner comes from the session."""

    name: str = Field(..., min_length=1, max_length=200)
    name_th: str | None = Field(None, max_length=200)
    company_name: str | None = Field(None, max_length=200)
    company_name_th: str | None = Field(None, max_length=200)
    company_address: str | None = Field(None, max_length=1000)
    tax_id: str | None = Field(None, max_length=20)
    electricity_rate_satang: int = Field(0, ge=0)
    water_rate_satang: int = Field(0, ge=0)
    line_access_token: str | None = None
    line_channel_secret: str | None = None
    liff_id: str | None = None


class ProjectUpdate(BaseModel):
    """Partial project update."""

    name: str | None = Field(None, min_length=1, max_length=200)
    name_th: str | None = Field(None, max_length=200)
    company_name: str | None = Field(None, max_length=200)
    company_name_th: str | None = Field(None, max_length=200)
    company_address: str | None = Field(None, max_length=1000)
    tax_id: str | None = Field(None, max_length=20)
    electricity_rate_satang: int | None = Field(None, ge=0)
    water_rate_satang: int | None = Field(None, ge=0)
    line_access_token: str | None = None
    line_channel_secret: str | None = None
    liff_id: str | None = None


class Project(BaseModel):
    """Full project entity as stored."""

    id: UUID
    owner_id: UUID
    name: str
    name_th: str | None = None
    company_name: str | None = None
    company_name_th: str | None = None
    company_address: str | None = None
    tax_id: str | None = None
    logo_key: str | None = None
    electricity_rate_satang: int = 0
    water_rate_satang: int = 0
    line_access_token: str | None = None
    line_channel_secret: str | None = None
    liff_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def code(self) -> str:
        """Short code embedded in invoice and receipt numbers."""
        return self.name[:3].upper()

    @property
    def line_enabled(self) -> bool:
        return bool(self.line_access_token and self.line_channel_secret)

    def display_name(self, lang: str = "th") -> str:
        if lang == "th" and self.name_th:
            return self.name_th
        return self.name

    def display_company(self, lang: str = "th") -> str:
        if lang == "th" and self.company_name_th:
            return self.company_name_th
        return self.company_name or self.display_name(lang)


class UnitStatus(str, Enum):
    VACANT = "vacant"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    MAINTENANCE = "maintenance"


class UnitCreate(BaseModel):
    project_id: UUID
    unit_number: str = Field(..., min_length=1, max_length=50)
    floor: int | None = None
    size_sqm: Decimal | None = Field(None, ge=0)
    status: UnitStatus = UnitStatus.VACANT


class UnitUpdate(BaseModel):
    unit_number: str | None = Field(None, min_length=1, max_length=50)
    floor: int | None = None
    size_sqm: Decimal | None = Field(None, ge=0)
    status: UnitStatus | None = None


class Unit(BaseModel):
    """Rentable space within a project."""

    id: UUID
    project_id: UUID
    unit_number: str
    floor: int | None = None
    size_sqm: Decimal | None = None
    status: UnitStatus = UnitStatus.VACANT
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ImageUpload(BaseModel):
    """Image as a base64 data URL, e.g. 'data:image/png;base64,...'."""

    base64_image: str = Field(..., min_length=1)
