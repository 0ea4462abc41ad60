"""Stores for projects, units and tenants."""

from uuid import UUID

from core.models import Project, Tenant, Unit, TenantStatus
from core.stores.base import PostgresStore, to_db


class ProjectStore(PostgresStore):
    table = "projects"
    model = Project
    updatable_columns = frozenset({
        "name", "name_th", "company_name", "company_name_th", "company_address",
        "tax_id", "logo_key", "electricity_rate_satang", "water_rate_satang",
        "line_access_token", "line_channel_secret", "liff_id",
    })

    def insert(self, owner_id: UUID, data: dict) -> Project:
        return self._insert({"owner_id": owner_id, **data})

    def list_for_owner(self, owner_id: UUID) -> list[Project]:
        rows = self._db.execute(
            "SELECT * FROM projects WHERE owner_id = %s ORDER BY created_at DESC",
            (owner_id,),
        )
        return self._to_models(rows)

    def list_line_enabled(self) -> list[Project]:
        """Projects with a LINE Official Account connected, across all owners."""
        rows = self._db.execute(
            """
            SELECT * FROM projects
            WHERE line_access_token IS NOT NULL AND line_channel_secret IS NOT NULL
            ORDER BY created_at
            """
        )
        return self._to_models(rows)


class UnitStore(PostgresStore):
    table = "units"
    model = Unit
    updatable_columns = frozenset({"unit_number", "floor", "size_sqm", "status"})

    def insert(self, data: dict) -> Unit:
        return self._insert(data)

    def list_for_projects(self, project_ids: list[UUID]) -> list[Unit]:
        if not project_ids:
            return []
        rows = self._db.execute(
            """
            SELECT * FROM units
            WHERE project_id = ANY(%s::uuid[])
            ORDER BY unit_number
            """,
            (list(project_ids),),
        )
        return self._to_models(rows)


class TenantStore(PostgresStore):
    table = "tenants"
    model = Tenant
    updatable_columns = frozenset({
        "status", "name", "name_th", "email", "phone", "id_card", "tax_id",
        "tenant_type", "withholding_tax_bps", "base_rent_satang",
        "common_fee_satang", "deposit_satang", "discount_bps",
        "discount_amount_satang", "contract_start", "contract_end",
    })

    def insert(self, data: dict) -> Tenant:
        return self._insert(data)

    def list_for_units(self, unit_ids: list[UUID], status: TenantStatus | None = None) -> list[Tenant]:
        """Tenants of the given units, newest contract first."""
        if not unit_ids:
            return []
        query = "SELECT * FROM tenants WHERE unit_id = ANY(%s::uuid[])"
        params: list = [list(unit_ids)]
        if status is not None:
            query += " AND status = %s"
            params.append(to_db(status))
        query += " ORDER BY contract_start DESC NULLS LAST, created_at DESC"
        return self._to_models(self._db.execute(query, tuple(params)))
