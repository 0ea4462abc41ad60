"""Stores for LINE contacts and their message history."""

from uuid import UUID

from core.models import LineContact, LineMessage
from core.stores.base import PostgresStore


class LineContactStore(PostgresStore):
    table = "line_contacts"
    model = LineContact
    updatable_columns = frozenset({"display_name", "picture_url", "status_message", "tenant_id"})

    def insert(self, data: dict) -> LineContact:
        return self._insert(data)

    def find(self, project_id: UUID, line_user_id: str) -> LineContact | None:
        row = self._db.execute_single(
            "SELECT * FROM line_contacts WHERE project_id = %s AND line_user_id = %s",
            (project_id, line_user_id),
        )
        return self._to_model(row)

    def find_linked_by_line_user(self, line_user_id: str) -> LineContact | None:
        """Contact for this LINE user that is linked to a tenant, most recent first."""
        row = self._db.execute_single(
            """
            SELECT * FROM line_contacts
            WHERE line_user_id = %s AND tenant_id IS NOT NULL
            ORDER BY updated_at DESC
            LIMIT 1
            """,
            (line_user_id,),
        )
        return self._to_model(row)

    def find_for_tenant(self, tenant_id: UUID) -> LineContact | None:
        row = self._db.execute_single(
            """
            SELECT * FROM line_contacts
            WHERE tenant_id = %s
            ORDER BY updated_at DESC
            LIMIT 1
            """,
            (tenant_id,),
        )
        return self._to_model(row)

    def list_for_projects(self, project_ids: list[UUID]) -> list[LineContact]:
        if not project_ids:
            return []
        rows = self._db.execute(
            """
            SELECT * FROM line_contacts
            WHERE project_id = ANY(%s::uuid[])
            ORDER BY updated_at DESC
            """,
            (list(project_ids),),
        )
        return self._to_models(rows)


class LineMessageStore(PostgresStore):
    table = "line_messages"
    model = LineMessage

    def insert(self, data: dict) -> LineMessage:
        return self._insert(data)

    def list_for_contact(self, contact_id: UUID, limit: int = 100) -> list[LineMessage]:
        """Oldest first, like a chat transcript."""
        rows = self._db.execute(
            """
            SELECT * FROM (
                SELECT * FROM line_messages
                WHERE line_contact_id = %s
                ORDER BY created_at DESC
                LIMIT %s
            ) recent
            ORDER BY created_at
            """,
            (contact_id, limit),
        )
        return self._to_models(rows)
