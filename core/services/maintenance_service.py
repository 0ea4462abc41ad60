"""
Maintenance request service.

Requests are raised by the owner against a unit, or by a linked tenant who
reports a repair in LINE chat. resolved_at is stamped on the first move to
COMPLETED and kept if the request is later reopened.
"""

import logging
from uuid import UUID

from core.access import AccessGate
from core.audit import AuditLogger, AuditAction, compute_changes
from core.billing import select_active_tenant
from core.models import (
    MaintenanceCategory, MaintenancePriority, MaintenanceRequest, MaintenanceRequestCreate,
    MaintenanceRequestUpdate, MaintenanceStatus, Tenant,
)
from core.stores import Stores
from utils.timezone import now_utc, today_local

logger = logging.getLogger(__name__)

LINE_REQUEST_TITLE = "แจ้งซ่อมจาก LINE / Maintenance from LINE"


class MaintenanceService:
    """Service for maintenance request operations."""

    def __init__(self, stores: Stores, audit: AuditLogger, timezone: str = "Asia/Bangkok"):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.timezone = timezone

    def create(self, owner_id: UUID, data: MaintenanceRequestCreate) -> MaintenanceRequest:
        """
        Raises:
            NotFoundError: Unit missing or foreign
        """
        unit, project = self.gate.unit(owner_id, data.unit_id)
        request = self.stores.maintenance.insert({
            "project_id": project.id,
            "unit_id": unit.id,
            "title": data.title,
            "description": data.description,
            "category": data.category,
            "priority": data.priority,
            "status": MaintenanceStatus.PENDING,
            "image_urls": data.image_urls,
        })
        self.audit.log_change(
            "maintenance_request", request.id, AuditAction.CREATE,
            {"created": {"unit_id": str(unit.id), "title": request.title, "priority": request.priority.value}},
            user_id=owner_id,
        )
        return request

    def create_from_line(self, tenant: Tenant, project_id: UUID, text: str, message_id: str | None) -> MaintenanceRequest:
        """Request for the tenant's unit, described by the chat message that reported it."""
        request = self.stores.maintenance.insert({
            "project_id": project_id,
            "unit_id": tenant.unit_id,
            "title": LINE_REQUEST_TITLE,
            "description": text,
            "category": MaintenanceCategory.GENERAL,
            "priority": MaintenancePriority.MEDIUM,
            "status": MaintenanceStatus.PENDING,
            "line_message_id": message_id,
        })
        self.audit.log_change(
            "maintenance_request", request.id, AuditAction.CREATE,
            {"created": {"unit_id": str(tenant.unit_id), "source": "line", "tenant_id": str(tenant.id)}},
        )
        logger.info(f"Maintenance request {request.id} reported over LINE by tenant {tenant.id}")
        return request

    def get(self, owner_id: UUID, request_id: UUID) -> dict:
        """The request with its unit number and the unit's current tenant."""
        request, _ = self.gate.maintenance_request(owner_id, request_id)
        unit = self.stores.units.get(request.unit_id)
        tenant = select_active_tenant(
            self.stores.tenants.list_for_units([request.unit_id]), today_local(self.timezone),
        )
        return {
            **request.model_dump(mode="json"),
            "unit_number": unit.unit_number if unit else None,
            "tenant": tenant.model_dump(mode="json") if tenant else None,
        }

    def list_all(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        status: MaintenanceStatus | None = None,
    ) -> list[dict]:
        """Newest first, each with its project name and unit number."""
        if project_id is not None:
            projects = {project_id: self.gate.project(owner_id, project_id)}
        else:
            projects = {p.id: p for p in self.stores.projects.list_for_owner(owner_id)}

        requests = self.stores.maintenance.list_for_projects(list(projects), status=status)
        units = {u.id: u for u in self.stores.units.list_for_projects(list(projects))}
        return [
            {
                **r.model_dump(mode="json"),
                "project_name": projects[r.project_id].name,
                "unit_number": units[r.unit_id].unit_number if r.unit_id in units else None,
            }
            for r in requests
        ]

    def update(self, owner_id: UUID, request_id: UUID, data: MaintenanceRequestUpdate) -> MaintenanceRequest:
        current, _ = self.gate.maintenance_request(owner_id, request_id)

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return current
        if data.status == MaintenanceStatus.COMPLETED and current.resolved_at is None:
            updates["resolved_at"] = now_utc()

        updated = self.stores.maintenance.update(request_id, updates)
        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change("maintenance_request", request_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete(self, owner_id: UUID, request_id: UUID) -> None:
        current, _ = self.gate.maintenance_request(owner_id, request_id)
        self.stores.maintenance.delete(request_id)
        self.audit.log_change(
            "maintenance_request", request_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )
