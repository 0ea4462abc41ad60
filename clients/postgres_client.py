"""
PostgreSQL access for the stores.

One psycopg2 ThreadedConnectionPool per database URL, shared by every
PostgresClient built for that URL. Each checkout publishes the acting owner
as ``app.current_user_id`` so audit triggers and ad-hoc queries can see who
is acting; public requests publish an empty string. Ownership itself is
checked in the application by core.access.AccessGate.

Every call runs in its own transaction: committed on success, rolled back
before the connection goes back to the pool on failure.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple

import psycopg2
import psycopg2.errors
import psycopg2.extras
import psycopg2.pool

from utils.user_context import peek_current_user_id

logger = logging.getLogger(__name__)

UniqueViolation = psycopg2.errors.UniqueViolation

Params = Tuple | Dict | None

_adapters_lock = threading.Lock()
_adapters_registered = False


def _register_adapters() -> None:
    """JSONB columns come back as Python objects, UUIDs go both ways natively."""
    global _adapters_registered
    with _adapters_lock:
        if not _adapters_registered:
            psycopg2.extras.register_default_jsonb(globally=True)
            psycopg2.extras.register_uuid()
            _adapters_registered = True


class PostgresClient:
    """
    Query helpers returning plain dict rows.

        db = PostgresClient(database_url)
        rows = db.execute("SELECT * FROM units WHERE project_id = %s", (project_id,))
        invoice = db.execute_single("SELECT * FROM invoices WHERE id = %s", (invoice_id,))
    """

    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        _register_adapters()
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                self._pools[self._database_url] = pool
                logger.info(f"Connection pool created ({self._min_connections}-{self._max_connections})")
            return pool

    @contextmanager
    def _cursor(self, dict_rows: bool = True) -> Iterator[Any]:
        """Cursor inside one transaction on a pooled connection."""
        pool = self._pool()
        conn = pool.getconn()
        if conn is None:
            raise RuntimeError("Could not get connection from pool")

        cursor_factory = psycopg2.extras.RealDictCursor if dict_rows else None
        try:
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                user_id = peek_current_user_id()
                cur.execute("SET app.current_user_id = %s", (str(user_id) if user_id else "",))
                yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run a statement. Rows as dicts, empty when it returns none."""
        with self._cursor() as cur:
            cur.execute(query, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """First column of the first row, or None."""
        with self._cursor(dict_rows=False) as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return row[0] if row else None

    # INSERT/UPDATE/DELETE ... RETURNING read the same way as a SELECT
    execute_returning = execute

    def close(self) -> None:
        """Close this URL's pool. Other clients on the same URL lose it too."""
        with self._pools_lock:
            pool = self._pools.pop(self._database_url, None)
            if pool is not None:
                pool.closeall()
