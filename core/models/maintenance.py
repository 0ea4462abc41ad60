"""Maintenance request domain models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class MaintenanceStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MaintenanceCategory(str, Enum):
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    STRUCTURAL = "structural"
    HVAC = "hvac"
    GENERAL = "general"
    OTHER = "other"


class MaintenancePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MaintenanceRequestCreate(BaseModel):
    unit_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    category: MaintenanceCategory = MaintenanceCategory.GENERAL
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    image_urls: list[str] = Field(default_factory=list, max_length=20)


class MaintenanceRequestUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    category: MaintenanceCategory | None = None
    priority: MaintenancePriority | None = None
    status: MaintenanceStatus | None = None
    image_urls: list[str] | None = Field(None, max_length=20)


class MaintenanceRequest(BaseModel):
    """
    A repair reported for a unit.

    Raised by the owner in the dashboard or by a linked tenant through LINE
    chat, in which case line_message_id names the message that reported it.
    resolved_at is stamped when the request first becomes COMPLETED.
    """

    id: UUID
    project_id: UUID
    unit_id: UUID
    title: str
    description: str | None = None
    category: MaintenanceCategory
    priority: MaintenancePriority
    status: MaintenanceStatus = MaintenanceStatus.PENDING
    image_urls: list[str] = Field(default_factory=list)
    line_message_id: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
