"""Store for invoices."""

from datetime import datetime
from uuid import UUID

from core.models import Invoice, InvoiceStatus, InvoiceType, PAYABLE_STATUSES
from core.stores.base import PostgresStore, to_db
from utils.timezone import now_utc


class InvoiceStore(PostgresStore):
    table = "invoices"
    model = Invoice
    number_constraint = "invoices_invoice_no_key"
    updatable_columns = frozenset({
        "due_date", "status", "tenant_snapshot", "sent_via_line", "sent_at",
    })

    def insert(self, data: dict) -> Invoice:
        """
        Raises:
            DuplicateNumberError: invoice_no is taken
        """
        return self._insert(data)

    def list_for_projects(
        self,
        project_ids: list[UUID],
        status: InvoiceStatus | None = None,
        billing_month: str | None = None,
    ) -> list[Invoice]:
        if not project_ids:
            return []
        query = "SELECT * FROM invoices WHERE project_id = ANY(%s::uuid[])"
        params: list = [list(project_ids)]
        if status is not None:
            query += " AND status = %s"
            params.append(to_db(status))
        if billing_month:
            query += " AND billing_month = %s"
            params.append(billing_month)
        query += " ORDER BY created_at DESC"
        return self._to_models(self._db.execute(query, tuple(params)))

    def exists_for(self, tenant_id: UUID, billing_month: str, invoice_type: InvoiceType) -> bool:
        """Whether the tenant already has an invoice of this type for the month."""
        count = self._db.execute_scalar(
            """
            SELECT COUNT(*) FROM invoices
            WHERE tenant_id = %s AND billing_month = %s AND type = %s
            """,
            (tenant_id, billing_month, to_db(invoice_type)),
        )
        return bool(count)

    def count_for_tenant(self, tenant_id: UUID) -> int:
        count = self._db.execute_scalar(
            "SELECT COUNT(*) FROM invoices WHERE tenant_id = %s",
            (tenant_id,),
        )
        return int(count or 0)

    def list_payable_for_tenant(self, tenant_id: UUID) -> list[Invoice]:
        rows = self._db.execute(
            """
            SELECT * FROM invoices
            WHERE tenant_id = %s AND status = ANY(%s)
            ORDER BY created_at DESC
            """,
            (tenant_id, [s.value for s in PAYABLE_STATUSES]),
        )
        return self._to_models(rows)

    def compare_and_set_paid(
        self,
        invoice_id: UUID,
        expected_paid_satang: int,
        new_paid_satang: int,
        status: InvoiceStatus,
    ) -> Invoice | None:
        """
        Set paid amount and status only if paid amount is still the expected value
        and the invoice has not been cancelled.

        Returns:
            Updated invoice, or None if another writer changed it first or it was cancelled
        """
        rows = self._db.execute_returning(
            """
            UPDATE invoices
            SET paid_amount_satang = %s, status = %s, updated_at = %s
            WHERE id = %s AND paid_amount_satang = %s AND status <> 'cancelled'
            RETURNING *
            """,
            (new_paid_satang, to_db(status), now_utc(), invoice_id, expected_paid_satang),
        )
        return self._to_model(rows[0]) if rows else None

    def set_paid(self, invoice_id: UUID, paid_satang: int, status: InvoiceStatus) -> Invoice | None:
        rows = self._db.execute_returning(
            """
            UPDATE invoices
            SET paid_amount_satang = %s, status = %s, updated_at = %s
            WHERE id = %s
            RETURNING *
            """,
            (paid_satang, to_db(status), now_utc(), invoice_id),
        )
        return self._to_model(rows[0]) if rows else None

    def mark_sent(self, invoice_id: UUID, sent_at: datetime) -> Invoice | None:
        return self.update(invoice_id, {"sent_via_line": True, "sent_at": sent_at})

    def list_missing_tenant_snapshot(self, project_ids: list[UUID] | None = None) -> list[Invoice]:
        """Invoices issued before snapshots existed. None means every project."""
        query = "SELECT * FROM invoices WHERE tenant_snapshot IS NULL"
        params: tuple = ()
        if project_ids is not None:
            query += " AND project_id = ANY(%s::uuid[])"
            params = (list(project_ids),)
        query += " ORDER BY created_at"
        return self._to_models(self._db.execute(query, params))
