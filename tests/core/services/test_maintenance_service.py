"""Tests for MaintenanceService."""

from uuid import uuid4

import pytest

from core.audit import AuditAction
from core.exceptions import NotFoundError
from core.models import (
    MaintenanceCategory, MaintenancePriority, MaintenanceRequestCreate,
    MaintenanceRequestUpdate, MaintenanceStatus, TenantStatus,
)


@pytest.fixture
def leak(maintenance_service, unit, test_user_id):
    return maintenance_service.create(test_user_id, MaintenanceRequestCreate(
        unit_id=unit.id,
        title="Leaking sink",
        category=MaintenanceCategory.PLUMBING,
        priority=MaintenancePriority.HIGH,
    ))


class TestCreate:

    def test_defaults(self, maintenance_service, unit, project, test_user_id):
        request = maintenance_service.create(test_user_id, MaintenanceRequestCreate(
            unit_id=unit.id, title="Door hinge",
        ))

        assert request.project_id == project.id
        assert request.status == MaintenanceStatus.PENDING
        assert request.category == MaintenanceCategory.GENERAL
        assert request.priority == MaintenancePriority.MEDIUM
        assert request.image_urls == []
        assert request.resolved_at is None

    def test_audited(self, audit, leak, test_user_id):
        entity_type, entity_id, action, changes = audit.log_change.call_args.args
        assert (entity_type, entity_id, action) == ("maintenance_request", leak.id, AuditAction.CREATE)
        assert changes["created"]["priority"] == "high"
        assert audit.log_change.call_args.kwargs["user_id"] == test_user_id

    def test_foreign_unit(self, maintenance_service, unit, test_user_b_id):
        with pytest.raises(NotFoundError):
            maintenance_service.create(test_user_b_id, MaintenanceRequestCreate(unit_id=unit.id, title="x"))


class TestRead:

    def test_get_includes_unit_and_current_tenant(self, maintenance_service, leak, tenant, test_user_id):
        detail = maintenance_service.get(test_user_id, leak.id)

        assert detail["title"] == "Leaking sink"
        assert detail["unit_number"] == "101"
        assert detail["tenant"]["name"] == "Somchai Jaidee"

    def test_get_without_current_tenant(self, stores, maintenance_service, leak, tenant, test_user_id):
        stores.tenants.update(tenant.id, {"status": TenantStatus.TERMINATED})

        assert maintenance_service.get(test_user_id, leak.id)["tenant"] is None

    def test_get_foreign(self, maintenance_service, leak, test_user_b_id):
        with pytest.raises(NotFoundError):
            maintenance_service.get(test_user_b_id, leak.id)

    def test_get_missing(self, maintenance_service, test_user_id):
        with pytest.raises(NotFoundError):
            maintenance_service.get(test_user_id, uuid4())

    def test_list_newest_first_with_names(self, maintenance_service, leak, unit, test_user_id):
        later = maintenance_service.create(test_user_id, MaintenanceRequestCreate(unit_id=unit.id, title="Bulb"))

        requests = maintenance_service.list_all(test_user_id)

        assert [r["id"] for r in requests] == [str(later.id), str(leak.id)]
        assert requests[0]["project_name"] == "Sukhumvit Place"
        assert requests[0]["unit_number"] == "101"

    def test_list_filters(self, maintenance_service, leak, project, test_user_id):
        assert maintenance_service.list_all(test_user_id, status=MaintenanceStatus.COMPLETED) == []
        assert len(maintenance_service.list_all(test_user_id, project_id=project.id)) == 1

    def test_list_scoped_to_owner(self, maintenance_service, leak, test_user_b_id):
        assert maintenance_service.list_all(test_user_b_id) == []

    def test_list_foreign_project(self, maintenance_service, project, test_user_b_id):
        with pytest.raises(NotFoundError):
            maintenance_service.list_all(test_user_b_id, project_id=project.id)


class TestUpdate:

    def test_completion_stamps_resolved_at(self, maintenance_service, leak, test_user_id):
        updated = maintenance_service.update(test_user_id, leak.id, MaintenanceRequestUpdate(
            status=MaintenanceStatus.COMPLETED,
        ))

        assert updated.status == MaintenanceStatus.COMPLETED
        assert updated.resolved_at is not None

    def test_resolved_at_kept_after_reopen(self, maintenance_service, leak, test_user_id):
        done = maintenance_service.update(test_user_id, leak.id, MaintenanceRequestUpdate(
            status=MaintenanceStatus.COMPLETED,
        ))
        maintenance_service.update(test_user_id, leak.id, MaintenanceRequestUpdate(
            status=MaintenanceStatus.IN_PROGRESS,
        ))

        again = maintenance_service.update(test_user_id, leak.id, MaintenanceRequestUpdate(
            status=MaintenanceStatus.COMPLETED,
        ))

        assert again.resolved_at == done.resolved_at

    def test_progress_leaves_resolved_at_unset(self, maintenance_service, leak, test_user_id):
        updated = maintenance_service.update(test_user_id, leak.id, MaintenanceRequestUpdate(
            status=MaintenanceStatus.IN_PROGRESS, priority=MaintenancePriority.URGENT,
        ))

        assert updated.priority == MaintenancePriority.URGENT
        assert updated.resolved_at is None

    def test_empty_update_is_noop(self, audit, maintenance_service, leak, test_user_id):
        audit.log_change.reset_mock()

        assert maintenance_service.update(test_user_id, leak.id, MaintenanceRequestUpdate()) == leak
        audit.log_change.assert_not_called()

    def test_foreign(self, maintenance_service, leak, test_user_b_id):
        with pytest.raises(NotFoundError):
            maintenance_service.update(test_user_b_id, leak.id, MaintenanceRequestUpdate(title="x"))


class TestDelete:

    def test_delete(self, stores, audit, maintenance_service, leak, test_user_id):
        maintenance_service.delete(test_user_id, leak.id)

        assert stores.maintenance.get(leak.id) is None
        assert audit.log_change.call_args.args[2] == AuditAction.DELETE

    def test_foreign(self, stores, maintenance_service, leak, test_user_b_id):
        with pytest.raises(NotFoundError):
            maintenance_service.delete(test_user_b_id, leak.id)

        assert stores.maintenance.get(leak.id) is not None


class TestFromLine:

    def test_request_for_tenant_unit(self, audit, maintenance_service, tenant, project, unit):
        request = maintenance_service.create_from_line(tenant, project.id, "water heater broken", "m-7")

        assert request.unit_id == unit.id
        assert request.title == "แจ้งซ่อมจาก LINE / Maintenance from LINE"
        assert request.description == "water heater broken"
        assert request.line_message_id == "m-7"
        assert "user_id" not in audit.log_change.call_args.kwargs
