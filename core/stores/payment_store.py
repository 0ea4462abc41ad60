"""Stores for payments and their slips."""

from datetime import datetime
from uuid import UUID

from core.models import Payment, PaymentSlip, PaymentStatus
from core.stores.base import PostgresStore, to_db
from utils.timezone import now_utc


class PaymentStore(PostgresStore):
    table = "payments"
    model = Payment
    updatable_columns = frozenset({
        "amount_satang", "method", "transfer_ref", "transfer_bank", "check_no",
        "check_bank", "check_date", "notes", "invoice_snapshot", "tenant_snapshot",
    })

    def insert(self, data: dict) -> Payment:
        return self._insert(data)

    def list_for_projects(self, project_ids: list[UUID], status: PaymentStatus | None = None) -> list[Payment]:
        if not project_ids:
            return []
        query = """
            SELECT p.* FROM payments p
            JOIN invoices i ON i.id = p.invoice_id
            WHERE i.project_id = ANY(%s::uuid[])
        """
        params: list = [list(project_ids)]
        if status is not None:
            query += " AND p.status = %s"
            params.append(to_db(status))
        query += " ORDER BY p.created_at DESC"
        return self._to_models(self._db.execute(query, tuple(params)))

    def list_for_invoice(self, invoice_id: UUID) -> list[Payment]:
        rows = self._db.execute(
            "SELECT * FROM payments WHERE invoice_id = %s ORDER BY created_at",
            (invoice_id,),
        )
        return self._to_models(rows)

    def find_pending_for_invoice(self, invoice_id: UUID) -> Payment | None:
        row = self._db.execute_single(
            """
            SELECT * FROM payments
            WHERE invoice_id = %s AND status = 'pending'
            ORDER BY created_at
            LIMIT 1
            """,
            (invoice_id,),
        )
        return self._to_model(row)

    def compare_and_set_status(
        self,
        payment_id: UUID,
        expected: PaymentStatus,
        new_status: PaymentStatus,
        verified_by: UUID | None,
        verified_at: datetime | None,
    ) -> Payment | None:
        """
        Move the payment out of `expected` status.

        Returns:
            Updated payment, or None if its status was no longer `expected`
        """
        rows = self._db.execute_returning(
            """
            UPDATE payments
            SET status = %s, verified_at = %s, verified_by = %s, updated_at = %s
            WHERE id = %s AND status = %s
            RETURNING *
            """,
            (to_db(new_status), verified_at, verified_by, now_utc(), payment_id, to_db(expected)),
        )
        return self._to_model(rows[0]) if rows else None

    def sum_verified(self, invoice_id: UUID) -> int:
        total = self._db.execute_scalar(
            """
            SELECT COALESCE(SUM(amount_satang), 0) FROM payments
            WHERE invoice_id = %s AND status = 'verified'
            """,
            (invoice_id,),
        )
        return int(total or 0)

    def list_missing_snapshots(self, project_ids: list[UUID] | None = None) -> list[Payment]:
        query = """
            SELECT p.* FROM payments p
            JOIN invoices i ON i.id = p.invoice_id
            WHERE (p.invoice_snapshot IS NULL OR p.tenant_snapshot IS NULL)
        """
        params: tuple = ()
        if project_ids is not None:
            query += " AND i.project_id = ANY(%s::uuid[])"
            params = (list(project_ids),)
        query += " ORDER BY p.created_at"
        return self._to_models(self._db.execute(query, params))


class SlipStore(PostgresStore):
    table = "payment_slips"
    model = PaymentSlip

    def insert(self, data: dict) -> PaymentSlip:
        return self._insert(data)

    def list_for_payment(self, payment_id: UUID) -> list[PaymentSlip]:
        rows = self._db.execute(
            "SELECT * FROM payment_slips WHERE payment_id = %s ORDER BY created_at",
            (payment_id,),
        )
        return self._to_models(rows)
