"""
Project and unit service.

Projects are the ownership root: every other record reaches its owner through
a project. Units are the rentable spaces inside a project.
"""

import logging
from uuid import UUID

from core.access import AccessGate
from core.audit import AuditLogger, AuditAction, compute_changes
from core.exceptions import BusinessRuleError
from core.models import (
    Project, ProjectCreate, ProjectUpdate,
    Unit, UnitCreate, UnitUpdate, UnitStatus,
)
from core.stores import Stores

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for project and unit operations."""

    def __init__(self, stores: Stores, audit: AuditLogger):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit

    # =========================================================================
    # Projects
    # =========================================================================

    def create(self, owner_id: UUID, data: ProjectCreate) -> Project:
        project = self.stores.projects.insert(owner_id, data.model_dump())

        self.audit.log_change(
            entity_type="project",
            entity_id=project.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(
                mode="json", exclude_none=True,
                exclude={"line_access_token", "line_channel_secret"},
            )},
            user_id=owner_id,
        )

        logger.info(f"Created project {project.id} ({project.name})")
        return project

    def get(self, owner_id: UUID, project_id: UUID) -> Project:
        """
        Raises:
            NotFoundError: Missing or owned by someone else
        """
        return self.gate.project(owner_id, project_id)

    def list_all(self, owner_id: UUID) -> list[Project]:
        return self.stores.projects.list_for_owner(owner_id)

    def update(self, owner_id: UUID, project_id: UUID, data: ProjectUpdate) -> Project:
        current = self.gate.project(owner_id, project_id)

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return current

        updated = self.stores.projects.update(project_id, updates)

        changes = compute_changes(
            current.model_dump(mode="json", exclude={"line_access_token", "line_channel_secret"}),
            updated.model_dump(mode="json", exclude={"line_access_token", "line_channel_secret"}),
        )
        if changes:
            self.audit.log_change("project", project_id, AuditAction.UPDATE, changes, user_id=owner_id)

        return updated

    def set_logo(self, owner_id: UUID, project_id: UUID, logo_key: str) -> Project:
        self.gate.project(owner_id, project_id)
        updated = self.stores.projects.update(project_id, {"logo_key": logo_key})
        self.audit.log_change(
            "project", project_id, AuditAction.UPDATE,
            {"logo_key": {"new": logo_key}}, user_id=owner_id,
        )
        return updated

    def delete(self, owner_id: UUID, project_id: UUID) -> None:
        """
        Delete an empty project.

        Raises:
            NotFoundError: Missing or foreign
            BusinessRuleError: Project still has units
        """
        current = self.gate.project(owner_id, project_id)

        if self.stores.units.list_for_projects([project_id]):
            raise BusinessRuleError("Cannot delete a project that still has units")

        self.stores.projects.delete(project_id)
        self.audit.log_change(
            "project", project_id, AuditAction.DELETE,
            {"deleted": current.model_dump(
                mode="json", exclude={"line_access_token", "line_channel_secret"},
            )},
            user_id=owner_id,
        )

    # =========================================================================
    # Units
    # =========================================================================

    def create_unit(self, owner_id: UUID, data: UnitCreate) -> Unit:
        self.gate.project(owner_id, data.project_id)

        unit = self.stores.units.insert(data.model_dump())

        self.audit.log_change(
            "unit", unit.id, AuditAction.CREATE,
            {"created": data.model_dump(mode="json", exclude_none=True)},
            user_id=owner_id,
        )
        return unit

    def get_unit(self, owner_id: UUID, unit_id: UUID) -> Unit:
        unit, _ = self.gate.unit(owner_id, unit_id)
        return unit

    def list_units(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        status: UnitStatus | None = None,
    ) -> list[Unit]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)

        units = self.stores.units.list_for_projects(project_ids)
        if status is not None:
            units = [u for u in units if u.status == status]
        return units

    def update_unit(self, owner_id: UUID, unit_id: UUID, data: UnitUpdate) -> Unit:
        current, _ = self.gate.unit(owner_id, unit_id)

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return current

        updated = self.stores.units.update(unit_id, updates)
        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change("unit", unit_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def delete_unit(self, owner_id: UUID, unit_id: UUID) -> None:
        """
        Raises:
            BusinessRuleError: Unit has tenants (their invoices are history)
        """
        current, _ = self.gate.unit(owner_id, unit_id)

        if self.stores.tenants.list_for_units([unit_id]):
            raise BusinessRuleError("Cannot delete a unit that has tenants")

        self.stores.units.delete(unit_id)
        self.audit.log_change(
            "unit", unit_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )
