"""
Meter reading service.

Readings chain month to month: a reading's previous value is the explicit
value given with the first reading of a meter, otherwise the current value
of the latest earlier month, otherwise zero. Usage and amount are computed
here and stored, so invoices never recompute them.
"""

import logging
from decimal import Decimal
from uuid import UUID

from core.access import AccessGate
from core.audit import AuditLogger, AuditAction, compute_changes
from core.billing import ActiveTenantRule, meter_amount, meter_usage, select_active_tenant
from core.exceptions import BusinessRuleError
from core.models import (
    MeterReading, MeterReadingCreate, MeterReadingUpdate, MeterType, Project,
)
from core.stores import Stores
from utils.timezone import today_local

logger = logging.getLogger(__name__)


def rate_for(project: Project, meter_type: MeterType) -> int:
    """Project's unit rate in satang for the meter type."""
    if meter_type == MeterType.ELECTRICITY:
        return project.electricity_rate_satang
    return project.water_rate_satang


class MeterService:
    """Service for meter reading operations."""

    def __init__(self, stores: Stores, audit: AuditLogger, timezone: str = "Asia/Bangkok"):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.timezone = timezone

    def previous_reading(
        self,
        owner_id: UUID,
        unit_id: UUID,
        meter_type: MeterType,
        billing_month: str,
    ) -> MeterReading | None:
        """Latest reading of this meter before the billing month, if any."""
        self.gate.unit(owner_id, unit_id)
        return self.stores.meters.latest_before(unit_id, meter_type, billing_month)

    def record(self, owner_id: UUID, data: MeterReadingCreate) -> MeterReading:
        """
        Record a reading, replacing any reading for the same meter and month.

        Args:
            owner_id: Acting owner
            data: The reading

        Returns:
            Stored reading with usage, rate and amount filled in

        Raises:
            NotFoundError: Unit missing or foreign
            BusinessRuleError: No tenant contract is running on the unit
        """
        unit, project = self.gate.unit(owner_id, data.unit_id)

        tenants = self.stores.tenants.list_for_units([unit.id])
        if select_active_tenant(tenants, today_local(self.timezone), ActiveTenantRule.CONTRACT_WINDOW) is None:
            raise BusinessRuleError("No active tenant contract for this unit")

        if data.previous_reading is not None:
            previous = data.previous_reading
        else:
            earlier = self.stores.meters.latest_before(unit.id, data.type, data.billing_month)
            previous = earlier.current_reading if earlier else Decimal("0")

        usage = meter_usage(previous, data.current_reading)
        rate = rate_for(project, data.type)

        reading = self.stores.meters.upsert({
            "project_id": project.id,
            "unit_id": unit.id,
            "type": data.type,
            "billing_month": data.billing_month,
            "previous_reading": previous,
            "current_reading": data.current_reading,
            "usage": usage,
            "rate_satang": rate,
            "amount_satang": meter_amount(usage, rate),
            "reading_date": data.reading_date,
        })

        self.audit.log_change(
            "meter_reading", reading.id, AuditAction.CREATE,
            {"created": reading.model_dump(mode="json")},
            user_id=owner_id,
        )
        return reading

    def get(self, owner_id: UUID, reading_id: UUID) -> MeterReading:
        reading, _ = self.gate.meter_reading(owner_id, reading_id)
        return reading

    def list_all(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        unit_id: UUID | None = None,
        billing_month: str | None = None,
        meter_type: MeterType | None = None,
    ) -> list[MeterReading]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)
        return self.stores.meters.list_for_projects(
            project_ids, billing_month=billing_month, meter_type=meter_type, unit_id=unit_id,
        )

    def update(self, owner_id: UUID, reading_id: UUID, data: MeterReadingUpdate) -> MeterReading:
        """Correct a reading. Usage and amount are recomputed at the stored rate."""
        current, _ = self.gate.meter_reading(owner_id, reading_id)

        previous = data.previous_reading if data.previous_reading is not None else current.previous_reading
        present = data.current_reading if data.current_reading is not None else current.current_reading
        usage = meter_usage(previous, present)

        fields = {
            "previous_reading": previous,
            "current_reading": present,
            "usage": usage,
            "amount_satang": meter_amount(usage, current.rate_satang),
        }
        if data.reading_date is not None:
            fields["reading_date"] = data.reading_date

        updated = self.stores.meters.update(reading_id, fields)
        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change("meter_reading", reading_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete(self, owner_id: UUID, reading_id: UUID) -> None:
        current, _ = self.gate.meter_reading(owner_id, reading_id)
        self.stores.meters.delete(reading_id)
        self.audit.log_change(
            "meter_reading", reading_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )
