"""
Shared plumbing for PostgreSQL stores.

Each store owns the SQL for one aggregate and returns pydantic models. Stores
never check ownership; services do that through AccessGate before calling in.
"""

import logging
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID, uuid4

from psycopg2.extras import Json
from pydantic import BaseModel

from clients.postgres_client import PostgresClient, UniqueViolation
from core.exceptions import DuplicateNumberError
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def to_db(value: Any) -> Any:
    """Adapt a Python value for a query parameter. Models and containers go to JSONB."""
    if isinstance(value, BaseModel):
        return Json(value.model_dump(mode="json"))
    if isinstance(value, list):
        return Json([v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value])
    if isinstance(value, dict):
        return Json(value)
    if isinstance(value, Enum):
        return value.value
    return value


class PostgresStore:
    """
    Base for per-aggregate stores.

    Subclasses set table, model and updatable_columns.
    """

    table: ClassVar[str]
    model: ClassVar[type[BaseModel]]
    updatable_columns: ClassVar[frozenset[str]] = frozenset()
    # Unique constraint on a generated document number, if the table has one
    number_constraint: ClassVar[str | None] = None

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def _to_model(self, row: dict | None):
        if row is None:
            return None
        return self.model.model_validate(row)

    def _to_models(self, rows: list[dict]) -> list:
        return [self.model.model_validate(row) for row in rows]

    def get(self, entity_id: UUID):
        row = self._db.execute_single(
            f"SELECT * FROM {self.table} WHERE id = %s",
            (entity_id,),
        )
        return self._to_model(row)

    def _insert(self, data: dict[str, Any], conflict_clause: str = ""):
        """
        INSERT one row with generated id and timestamps.

        Returns the model, or None when conflict_clause suppressed the insert.

        Raises:
            DuplicateNumberError: The generated document number is taken
        """
        now = now_utc()
        values = {"id": uuid4(), "created_at": now, **data}
        if "updated_at" in self.model.model_fields:
            values.setdefault("updated_at", now)

        columns = ", ".join(values.keys())
        placeholders = ", ".join(["%s"] * len(values))
        params = tuple(to_db(v) for v in values.values())

        try:
            rows = self._db.execute_returning(
                f"""
                INSERT INTO {self.table} ({columns})
                VALUES ({placeholders})
                {conflict_clause}
                RETURNING *
                """,
                params,
            )
        except UniqueViolation as e:
            constraint = getattr(getattr(e, "diag", None), "constraint_name", None)
            if self.number_constraint and constraint == self.number_constraint:
                raise DuplicateNumberError(str(e)) from e
            raise

        return self._to_model(rows[0]) if rows else None

    def update(self, entity_id: UUID, fields: dict[str, Any]):
        """
        Update whitelisted columns. Unknown fields are logged and ignored.

        Returns:
            Updated model, or None if the row no longer exists
        """
        for field in fields:
            if field not in self.updatable_columns:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on {self.table} {entity_id}"
                )

        valid = {k: v for k, v in fields.items() if k in self.updatable_columns}
        if not valid:
            return self.get(entity_id)

        set_parts = []
        params = []
        for field, value in valid.items():
            set_parts.append(f"{field} = %s")
            params.append(to_db(value))

        if "updated_at" in self.model.model_fields:
            set_parts.append("updated_at = %s")
            params.append(now_utc())
        params.append(entity_id)

        rows = self._db.execute_returning(
            f"""
            UPDATE {self.table}
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params),
        )
        return self._to_model(rows[0]) if rows else None

    def delete(self, entity_id: UUID) -> bool:
        rows = self._db.execute_returning(
            f"DELETE FROM {self.table} WHERE id = %s RETURNING id",
            (entity_id,),
        )
        return len(rows) > 0
