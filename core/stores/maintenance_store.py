"""Store for maintenance requests."""

from uuid import UUID

from core.models import MaintenanceRequest, MaintenanceStatus
from core.stores.base import PostgresStore, to_db


class MaintenanceStore(PostgresStore):
    table = "maintenance_requests"
    model = MaintenanceRequest
    updatable_columns = frozenset({
        "title", "description", "category", "priority", "status", "image_urls", "resolved_at",
    })

    def insert(self, data: dict) -> MaintenanceRequest:
        return self._insert(data)

    def list_for_projects(
        self,
        project_ids: list[UUID],
        status: MaintenanceStatus | None = None,
    ) -> list[MaintenanceRequest]:
        if not project_ids:
            return []
        query = "SELECT * FROM maintenance_requests WHERE project_id = ANY(%s::uuid[])"
        params: list = [list(project_ids)]
        if status is not None:
            query += " AND status = %s"
            params.append(to_db(status))
        query += " ORDER BY created_at DESC"
        return self._to_models(self._db.execute(query, tuple(params)))
