"""
PostgreSQL-backed remote store for donation records.

Owns a psycopg connection pool with an explicit lifecycle (`open()` at
process start, `close()` at shutdown). Driver errors never leave this module:
every psycopg failure is re-raised as `RemoteStoreError` so the reconcilers
can treat "remote rejected" uniformly.

Connection acquisition is retried with tenacity for transient failures; a
statement that reached the server and failed is not retried here, the push
reconciler retries the whole batch on its next pass instead.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from offline_sync.config import Settings, build_remote_dsn, get_settings
from offline_sync.domain.models import RemoteDonation
from offline_sync.errors import RemoteStoreError
from offline_sync.utils.logging import get_logger

log = get_logger(__name__)

REMOTE_COLUMNS = (
    "uuid",
    "donation_date",
    "narration",
    "amount",
    "type",
    "book_type",
    "sl_no",
    "receipt_no",
    "phone",
)

_TRANSIENT_ERRORS = (psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout)


class PostgresRemoteStore:
    """
    Remote store adapter over a PostgreSQL table keyed by `uuid`.

    Parameters
    ----------
    dsn : str, optional
        Connection string. Defaults to the DSN built from settings.
    table : str, optional
        Remote table name. Defaults to `settings.remote_table`.
    pool_min_size, pool_max_size : int
        Connection pool bounds.
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        table: Optional[str] = None,
        pool_min_size: int = 1,
        pool_max_size: int = 4,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._dsn = dsn or build_remote_dsn(settings)
        self.table = table or settings.remote_table
        self.connect_timeout = settings.remote_connect_timeout_seconds
        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size
        self._pool: Optional[ConnectionPool] = None
        self._lock = threading.Lock()

    # === Lifecycle ===

    def open(self) -> "PostgresRemoteStore":
        """Create the connection pool. Connections are made lazily on first use."""
        with self._lock:
            if self._pool is None:
                self._pool = ConnectionPool(
                    conninfo=self._dsn,
                    min_size=self.pool_min_size,
                    max_size=self.pool_max_size,
                    kwargs={"connect_timeout": self.connect_timeout},
                    open=True,
                )
                log.debug("Remote pool opened", extra={"table": self.table})
        return self

    def close(self) -> None:
        with self._lock:
            if self._pool is not None:
                try:
                    self._pool.close()
                finally:
                    self._pool = None

    def __enter__(self) -> "PostgresRemoteStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def _checkout(self) -> psycopg.Connection:
        """Take a connection from the pool, retrying transient failures."""
        if self._pool is None:
            self.open()
        assert self._pool is not None
        return self._pool.getconn(timeout=self.connect_timeout)

    @contextmanager
    def _connection(self) -> Generator[psycopg.Connection, None, None]:
        try:
            conn = self._checkout()
        except _TRANSIENT_ERRORS as exc:
            raise RemoteStoreError(f"Remote store unreachable: {exc}") from exc
        try:
            # psycopg commits on clean exit and rolls back on error
            with conn.transaction():
                yield conn
        except psycopg.Error as exc:
            raise RemoteStoreError(f"Remote store rejected request: {exc}") from exc
        finally:
            assert self._pool is not None
            self._pool.putconn(conn)

    # === Schema ===

    def ensure_schema(self) -> None:
        """Create the remote table if it does not exist."""
        statement = sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {table} (
                id BIGSERIAL PRIMARY KEY,
                uuid TEXT NOT NULL UNIQUE,
                donation_date TEXT,
                narration TEXT,
                amount NUMERIC(12, 2),
                type TEXT,
                book_type TEXT,
                sl_no TEXT,
                receipt_no TEXT,
                phone TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
            """
        ).format(table=sql.Identifier(self.table))
        with self._connection() as conn:
            conn.execute(statement)
        log.info("Remote schema ready", extra={"table": self.table})

    # === Operations ===

    @staticmethod
    def _row_params(record: RemoteDonation) -> Dict[str, Any]:
        params = record.model_dump()
        if params["book_type"] is not None:
            params["book_type"] = str(params["book_type"])
        return params

    def upsert(self, batch: Sequence[RemoteDonation]) -> None:
        """
        Insert-or-update the batch keyed by `uuid`, in one transaction.

        Re-sending a row that is already present overwrites it with the same
        values instead of failing on the unique key.
        """
        if not batch:
            return
        columns = sql.SQL(", ").join(sql.Identifier(c) for c in REMOTE_COLUMNS)
        values = sql.SQL(", ").join(sql.Placeholder(c) for c in REMOTE_COLUMNS)
        updates = sql.SQL(", ").join(
            sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(c))
            for c in REMOTE_COLUMNS
            if c != "uuid"
        )
        statement = sql.SQL(
            "INSERT INTO {table} ({columns}) VALUES ({values}) "
            "ON CONFLICT (uuid) DO UPDATE SET {updates}"
        ).format(
            table=sql.Identifier(self.table), columns=columns, values=values, updates=updates
        )
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(statement, [self._row_params(r) for r in batch])
        log.debug("Remote upsert applied", extra={"rows": len(batch), "table": self.table})

    def select_range(self, offset: int, last: int) -> List[Mapping[str, Any]]:
        """
        Return rows `offset` through `last` (inclusive) in insertion order.

        `id` is the table's BIGSERIAL key, so rows other devices add during a
        restore land after every page already read.
        """
        if last < offset:
            return []
        statement = sql.SQL(
            "SELECT {columns} FROM {table} ORDER BY id, uuid OFFSET %s LIMIT %s"
        ).format(
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in REMOTE_COLUMNS),
            table=sql.Identifier(self.table),
        )
        with self._connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(statement, (offset, last - offset + 1))
                return list(cur.fetchall())

    def count(self) -> int:
        statement = sql.SQL("SELECT COUNT(*) FROM {table}").format(
            table=sql.Identifier(self.table)
        )
        with self._connection() as conn:
            row = conn.execute(statement).fetchone()
        return int(row[0]) if row else 0


__all__ = ["PostgresRemoteStore", "REMOTE_COLUMNS"]
