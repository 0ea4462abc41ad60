"""
Tenant service.

A tenant is a rental contract on a unit: the party, its rent terms and its
tax status. Unit occupancy follows the tenants: the first tenant occupies a
vacant or reserved unit, and the unit returns to vacant when no tenant with a
running contract remains.
"""

import logging
from datetime import date
from uuid import UUID

from core.access import AccessGate
from core.audit import AuditLogger, AuditAction, compute_changes
from core.billing import ActiveTenantRule, is_active_tenant
from core.exceptions import BusinessRuleError
from core.models import Tenant, TenantCreate, TenantStatus, TenantUpdate, UnitStatus
from core.stores import Stores
from utils.timezone import today_local

logger = logging.getLogger(__name__)


class TenantService:
    """Service for tenant operations."""

    def __init__(self, stores: Stores, audit: AuditLogger, timezone: str = "Asia/Bangkok"):
        self.stores = stores
        self.gate = AccessGate(stores)
        self.audit = audit
        self.timezone = timezone

    def create(self, owner_id: UUID, data: TenantCreate) -> Tenant:
        """
        Create a tenant on a unit and mark the unit occupied.

        Several tenants per unit are allowed so a new contract can be entered
        before the current one ends.
        """
        unit, _ = self.gate.unit(owner_id, data.unit_id)

        tenant = self.stores.tenants.insert({
            **data.model_dump(),
            "status": TenantStatus.ACTIVE,
        })

        if unit.status in (UnitStatus.VACANT, UnitStatus.RESERVED):
            self.stores.units.update(unit.id, {"status": UnitStatus.OCCUPIED})

        self.audit.log_change(
            "tenant", tenant.id, AuditAction.CREATE,
            {"created": data.model_dump(mode="json", exclude_none=True)},
            user_id=owner_id,
        )

        logger.info(f"Created tenant {tenant.id} on unit {unit.id}")
        return tenant

    def get(self, owner_id: UUID, tenant_id: UUID) -> Tenant:
        tenant, _, _ = self.gate.tenant(owner_id, tenant_id)
        return tenant

    def list_all(
        self,
        owner_id: UUID,
        project_id: UUID | None = None,
        status: TenantStatus | None = None,
    ) -> list[Tenant]:
        if project_id is not None:
            project_ids = [self.gate.project(owner_id, project_id).id]
        else:
            project_ids = self.gate.project_ids(owner_id)

        unit_ids = [u.id for u in self.stores.units.list_for_projects(project_ids)]
        return self.stores.tenants.list_for_units(unit_ids, status=status)

    def update(self, owner_id: UUID, tenant_id: UUID, data: TenantUpdate) -> Tenant:
        current, _, _ = self.gate.tenant(owner_id, tenant_id)

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            return current

        updated = self.stores.tenants.update(tenant_id, updates)
        changes = compute_changes(current.model_dump(mode="json"), updated.model_dump(mode="json"))
        if changes:
            self.audit.log_change("tenant", tenant_id, AuditAction.UPDATE, changes, user_id=owner_id)
        return updated

    def end_contract(self, owner_id: UUID, tenant_id: UUID, end_date: date | None = None) -> Tenant:
        """
        End a contract early (default today) and free the unit if nobody else holds it.
        """
        current, unit, _ = self.gate.tenant(owner_id, tenant_id)
        end = end_date or today_local(self.timezone)

        updated = self.stores.tenants.update(tenant_id, {"contract_end": end})
        self.audit.log_change(
            "tenant", tenant_id, AuditAction.UPDATE,
            {"contract_end": {
                "old": current.contract_end.isoformat() if current.contract_end else None,
                "new": end.isoformat(),
            }},
            user_id=owner_id,
        )

        if end <= today_local(self.timezone):
            self._release_unit_if_empty(unit.id, exclude_tenant_id=tenant_id)
        return updated

    def delete(self, owner_id: UUID, tenant_id: UUID) -> None:
        """
        Delete a tenant without invoices.

        Raises:
            BusinessRuleError: Tenant has invoices (historical data is kept)
        """
        current, unit, _ = self.gate.tenant(owner_id, tenant_id)

        invoice_count = self.stores.invoices.count_for_tenant(tenant_id)
        if invoice_count > 0:
            raise BusinessRuleError(
                f"Cannot delete tenant with linked invoices ({invoice_count}). "
                "Historical data must be preserved."
            )

        self.stores.tenants.delete(tenant_id)
        self.audit.log_change(
            "tenant", tenant_id, AuditAction.DELETE,
            {"deleted": current.model_dump(mode="json")}, user_id=owner_id,
        )

        self._release_unit_if_empty(unit.id, exclude_tenant_id=tenant_id)

    def _release_unit_if_empty(self, unit_id: UUID, exclude_tenant_id: UUID) -> None:
        today = today_local(self.timezone)
        remaining = [
            t for t in self.stores.tenants.list_for_units([unit_id])
            if t.id != exclude_tenant_id
            and is_active_tenant(t, today, ActiveTenantRule.CONTRACT_END)
        ]
        if not remaining:
            self.stores.units.update(unit_id, {"status": UnitStatus.VACANT})
