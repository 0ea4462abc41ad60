"""Store for meter readings."""

from uuid import UUID

from core.models import MeterReading, MeterType
from core.stores.base import PostgresStore, to_db


class MeterStore(PostgresStore):
    table = "meter_readings"
    model = MeterReading
    updatable_columns = frozenset({
        "previous_reading", "current_reading", "usage", "rate_satang",
        "amount_satang", "reading_date",
    })

    def upsert(self, data: dict) -> MeterReading:
        """Insert, or overwrite the reading for the same (unit, type, month)."""
        return self._insert(
            data,
            conflict_clause="""
                ON CONFLICT (unit_id, type, billing_month) DO UPDATE SET
                    previous_reading = EXCLUDED.previous_reading,
                    current_reading = EXCLUDED.current_reading,
                    usage = EXCLUDED.usage,
                    rate_satang = EXCLUDED.rate_satang,
                    amount_satang = EXCLUDED.amount_satang,
                    reading_date = EXCLUDED.reading_date,
                    updated_at = EXCLUDED.updated_at
            """,
        )

    def list_for_projects(
        self,
        project_ids: list[UUID],
        billing_month: str | None = None,
        meter_type: MeterType | None = None,
        unit_id: UUID | None = None,
    ) -> list[MeterReading]:
        if not project_ids:
            return []
        query = "SELECT * FROM meter_readings WHERE project_id = ANY(%s::uuid[])"
        params: list = [list(project_ids)]
        if billing_month:
            query += " AND billing_month = %s"
            params.append(billing_month)
        if meter_type is not None:
            query += " AND type = %s"
            params.append(to_db(meter_type))
        if unit_id is not None:
            query += " AND unit_id = %s"
            params.append(unit_id)
        query += " ORDER BY billing_month DESC, type"
        return self._to_models(self._db.execute(query, tuple(params)))

    def list_for_unit_month(self, unit_id: UUID, billing_month: str) -> list[MeterReading]:
        rows = self._db.execute(
            """
            SELECT * FROM meter_readings
            WHERE unit_id = %s AND billing_month = %s
            ORDER BY type
            """,
            (unit_id, billing_month),
        )
        return self._to_models(rows)

    def latest_before(self, unit_id: UUID, meter_type: MeterType, billing_month: str) -> MeterReading | None:
        """Most recent reading of this meter from an earlier month."""
        row = self._db.execute_single(
            """
            SELECT * FROM meter_readings
            WHERE unit_id = %s AND type = %s AND billing_month < %s
            ORDER BY billing_month DESC
            LIMIT 1
            """,
            (unit_id, to_db(meter_type), billing_month),
        )
        return self._to_model(row)
