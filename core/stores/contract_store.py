"""Store for lease contracts."""

from uuid import UUID

from core.models import ContractStatus, LeaseContract
from core.stores.base import PostgresStore, to_db


class ContractStore(PostgresStore):
    table = "lease_contracts"
    model = LeaseContract
    number_constraint = "lease_contracts_contract_no_key"
    updatable_columns = frozenset({
        "title", "title_th", "clauses", "base_rent_satang", "common_fee_satang",
        "deposit_satang", "contract_start", "contract_end", "status",
        "signing_token", "token_expires_at", "landlord_signature",
        "landlord_signed_at", "tenant_signature", "tenant_signed_at",
    })

    def insert(self, data: dict) -> LeaseContract:
        """
        Raises:
            DuplicateNumberError: contract_no is taken
        """
        return self._insert(data)

    def get_by_token(self, token: str) -> LeaseContract | None:
        row = self._db.execute_single(
            "SELECT * FROM lease_contracts WHERE signing_token = %s",
            (token,),
        )
        return self._to_model(row)

    def count_with_prefix(self, prefix: str) -> int:
        count = self._db.execute_scalar(
            "SELECT COUNT(*) FROM lease_contracts WHERE contract_no LIKE %s",
            (f"{prefix}%",),
        )
        return int(count or 0)

    def list_for_projects(
        self,
        project_ids: list[UUID],
        status: ContractStatus | None = None,
    ) -> list[LeaseContract]:
        if not project_ids:
            return []
        query = "SELECT * FROM lease_contracts WHERE project_id = ANY(%s::uuid[])"
        params: list = [list(project_ids)]
        if status is not None:
            query += " AND status = %s"
            params.append(to_db(status))
        query += " ORDER BY created_at DESC"
        return self._to_models(self._db.execute(query, tuple(params)))
