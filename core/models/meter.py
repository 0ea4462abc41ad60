"""Meter reading domain models."""

import re
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field

BILLING_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def validate_billing_month(value: str) -> str:
    if not BILLING_MONTH_PATTERN.match(value):
        raise ValueError(f"billing_month must look like YYYY-MM, got '{value}'")
    return value


BillingMonth = Annotated[str, AfterValidator(validate_billing_month)]


class MeterType(str, Enum):
    ELECTRICITY = "electricity"
    WATER = "water"


class MeterReadingCreate(BaseModel):
    """
    A reading to record for a unit and billing month.

    previous_reading is only needed for the first reading of a meter. Later
    readings chain from the previous month's current_reading.
    """

    unit_id: UUID
    type: MeterType
    billing_month: BillingMonth
    current_reading: Decimal = Field(..., ge=0)
    previous_reading: Decimal | None = Field(None, ge=0)
    reading_date: date


class MeterReadingUpdate(BaseModel):
    previous_reading: Decimal | None = Field(None, ge=0)
    current_reading: Decimal | None = Field(None, ge=0)
    reading_date: date | None = None


class MeterReading(BaseModel):
    """Recorded usage for one meter over one billing month."""

    id: UUID
    project_id: UUID
    unit_id: UUID
    type: MeterType
    billing_month: str
    previous_reading: Decimal
    current_reading: Decimal
    usage: Decimal
    rate_satang: int
    amount_satang: int
    reading_date: date
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
