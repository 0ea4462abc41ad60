"""Store for receipts."""

from uuid import UUID

from core.models import Receipt
from core.stores.base import PostgresStore


class ReceiptStore(PostgresStore):
    table = "receipts"
    model = Receipt
    number_constraint = "receipts_receipt_no_key"
    updatable_columns = frozenset({
        "amount_satang", "issued_at", "sent_via_line", "sent_at",
        "invoice_snapshot", "tenant_snapshot",
    })

    def insert_once(self, data: dict) -> Receipt | None:
        """
        Insert the invoice's receipt unless one already exists.

        Returns:
            New receipt, or None if the invoice already has one

        Raises:
            DuplicateNumberError: receipt_no is taken
        """
        return self._insert(data, conflict_clause="ON CONFLICT (invoice_id) DO NOTHING")

    def get_for_invoice(self, invoice_id: UUID) -> Receipt | None:
        row = self._db.execute_single(
            "SELECT * FROM receipts WHERE invoice_id = %s",
            (invoice_id,),
        )
        return self._to_model(row)

    def list_for_projects(self, project_ids: list[UUID]) -> list[Receipt]:
        if not project_ids:
            return []
        rows = self._db.execute(
            """
            SELECT r.* FROM receipts r
            JOIN invoices i ON i.id = r.invoice_id
            WHERE i.project_id = ANY(%s::uuid[])
            ORDER BY r.created_at DESC
            """,
            (list(project_ids),),
        )
        return self._to_models(rows)

    def list_missing_snapshots(self, project_ids: list[UUID] | None = None) -> list[Receipt]:
        query = """
            SELECT r.* FROM receipts r
            JOIN invoices i ON i.id = r.invoice_id
            WHERE (r.invoice_snapshot IS NULL OR r.tenant_snapshot IS NULL)
        """
        params: tuple = ()
        if project_ids is not None:
            query += " AND i.project_id = ANY(%s::uuid[])"
            params = (list(project_ids),)
        query += " ORDER BY r.created_at"
        return self._to_models(self._db.execute(query, params))
