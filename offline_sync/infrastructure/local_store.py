"""
SQLite-backed local store for donation records.

The handle is owned explicitly: open it once at process start, inject it into
the reconcilers, close it at shutdown (or use it as a context manager). Every
statement commits on its own; no transaction spans a whole push or restore
pass, and the `UNIQUE(uuid)` constraint is the backstop against duplicates.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from offline_sync.config import get_settings
from offline_sync.domain.models import Donation, NewDonation, SyncStatus, new_global_id
from offline_sync.errors import LocalStoreError
from offline_sync.sync.state import INITIAL_LOCAL_STATUS, ensure_transition
from offline_sync.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS donations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid TEXT UNIQUE,
    date TEXT NOT NULL,
    donor_name TEXT NOT NULL,
    amount REAL NOT NULL,
    type TEXT NOT NULL,
    denomination INTEGER,
    sl_no TEXT,
    receipt_no TEXT,
    phone TEXT,
    sync_status TEXT DEFAULT 'pending',
    last_updated DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""

# Columns added after the first release; databases created by older builds
# are brought forward by adding whichever of these are missing.
COLUMN_MIGRATIONS = (
    "ALTER TABLE donations ADD COLUMN phone TEXT;",
    "ALTER TABLE donations ADD COLUMN uuid TEXT;",
    "ALTER TABLE donations ADD COLUMN sync_status TEXT DEFAULT 'pending';",
    "ALTER TABLE donations ADD COLUMN last_updated DATETIME;",
)

UNIQUE_GLOBAL_ID_INDEX = "CREATE UNIQUE INDEX IF NOT EXISTS idx_donations_uuid ON donations(uuid);"

_INSERT_COLUMNS = (
    "uuid",
    "date",
    "donor_name",
    "amount",
    "type",
    "denomination",
    "sl_no",
    "receipt_no",
    "phone",
    "sync_status",
)


class LocalStore:
    """
    Local persistent store adapter.

    Parameters
    ----------
    db_path : str | Path, optional
        SQLite database file. Defaults to `settings.local_db_path`.
    timeout : float, optional
        Seconds to wait on a locked database before failing.
    """

    def __init__(self, db_path: str | Path | None = None, timeout: Optional[float] = None) -> None:
        settings = get_settings()
        self.db_path = str(db_path or settings.local_db_path)
        self.timeout = timeout if timeout is not None else settings.local_db_timeout_seconds
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # === Lifecycle ===

    def open(self) -> "LocalStore":
        """Open the database and bring its schema up to date (idempotent)."""
        with self._lock:
            if self._conn is not None:
                return self
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(
                    self.db_path, timeout=self.timeout, check_same_thread=False
                )
            except sqlite3.Error as exc:
                raise LocalStoreError(f"Cannot open local store {self.db_path}: {exc}") from exc
            conn.row_factory = sqlite3.Row
            self._conn = conn
            try:
                self.init_schema()
            except LocalStoreError:
                self._conn = None
                conn.close()
                raise
            log.info("Local store opened", extra={"db_path": self.db_path})
            return self

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                log.debug("Local store closed", extra={"db_path": self.db_path})

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> "LocalStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise LocalStoreError("Local store is not open; call open() first")
        return self._conn

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            conn = self._connection()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise LocalStoreError(str(exc)) from exc
            return cursor

    def _fetch(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock:
            try:
                return self._connection().execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise LocalStoreError(str(exc)) from exc

    # === Schema ===

    def init_schema(self) -> None:
        """
        Create the donations table and bring older databases forward.

        Missing columns are added, legacy rows get a global id, duplicated
        global ids are re-keyed, then the unique index on `uuid` is created.
        """
        conn = self._connection()
        with self._lock:
            try:
                conn.executescript(SCHEMA)
                for statement in COLUMN_MIGRATIONS:
                    try:
                        conn.execute(statement)
                    except sqlite3.OperationalError as exc:
                        if "duplicate column" not in str(exc):
                            raise
                conn.commit()
                self._backfill_global_ids(conn)
                self._rekey_duplicate_global_ids(conn)
                conn.execute(UNIQUE_GLOBAL_ID_INDEX)
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise LocalStoreError(f"Cannot migrate local store {self.db_path}: {exc}") from exc

    def _backfill_global_ids(self, conn: sqlite3.Connection) -> None:
        """Give rows written before the uuid column existed a global id."""
        missing = conn.execute("SELECT id FROM donations WHERE uuid IS NULL").fetchall()
        for row in missing:
            conn.execute(
                "UPDATE donations SET uuid = ? WHERE id = ?", (new_global_id(), row["id"])
            )
        if missing:
            conn.commit()
            log.info("Assigned global ids to legacy rows", extra={"rows": len(missing)})

    def _rekey_duplicate_global_ids(self, conn: sqlite3.Connection) -> None:
        """
        Keep the oldest row of each duplicated uuid; give the others a fresh
        uuid and mark them pending so they reach the remote store as records
        of their own.
        """
        duplicates = conn.execute(
            "SELECT id FROM donations d WHERE EXISTS ("
            "SELECT 1 FROM donations o WHERE o.uuid = d.uuid AND o.id < d.id)"
        ).fetchall()
        for row in duplicates:
            conn.execute(
                "UPDATE donations SET uuid = ?, sync_status = ? WHERE id = ?",
                (new_global_id(), SyncStatus.PENDING.value, row["id"]),
            )
        if duplicates:
            conn.commit()
            log.warning(
                "Re-keyed legacy rows sharing a global id", extra={"rows": len(duplicates)}
            )

    # === Queries ===

    @staticmethod
    def _row_to_donation(row: sqlite3.Row) -> Donation:
        data: Dict[str, Any] = dict(row)
        for column in ("sl_no", "receipt_no", "phone"):
            data[column] = data.get(column) or ""
        data["sync_status"] = data.get("sync_status") or SyncStatus.PENDING.value
        if isinstance(data.get("last_updated"), str):
            data["last_updated"] = datetime.fromisoformat(data["last_updated"])
        return Donation.model_validate(data)

    def list_all(self) -> List[Donation]:
        """All records, newest business date first, then newest insert."""
        rows = self._fetch("SELECT * FROM donations ORDER BY date DESC, id DESC")
        return [self._row_to_donation(row) for row in rows]

    def query_pending(self) -> List[Donation]:
        rows = self._fetch(
            "SELECT * FROM donations WHERE sync_status = ? ORDER BY id",
            (SyncStatus.PENDING.value,),
        )
        return [self._row_to_donation(row) for row in rows]

    def query_by_global_id(self, global_id: str) -> Optional[Donation]:
        rows = self._fetch("SELECT * FROM donations WHERE uuid = ?", (global_id,))
        return self._row_to_donation(rows[0]) if rows else None

    def get(self, local_id: int) -> Optional[Donation]:
        rows = self._fetch("SELECT * FROM donations WHERE id = ?", (local_id,))
        return self._row_to_donation(rows[0]) if rows else None

    def count_by_status(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in SyncStatus}
        rows = self._fetch(
            "SELECT COALESCE(sync_status, ?) AS status, COUNT(*) AS n "
            "FROM donations GROUP BY COALESCE(sync_status, ?)",
            (SyncStatus.PENDING.value, SyncStatus.PENDING.value),
        )
        for row in rows:
            counts[row["status"]] = row["n"]
        return counts

    # === Mutations ===

    @staticmethod
    def _insert_params(record: NewDonation) -> tuple:
        status = SyncStatus(record.sync_status).value
        return (
            record.uuid,
            record.date,
            record.donor_name,
            record.amount,
            record.type,
            record.denomination,
            record.sl_no,
            record.receipt_no,
            record.phone,
            status,
        )

    def create(self, record: NewDonation) -> Donation:
        """
        Record a new local donation. It starts `pending` whatever status the
        input carries; a fresh global id is assigned if the input has none.
        """
        record = record.model_copy(
            update={"uuid": record.uuid or new_global_id(), "sync_status": INITIAL_LOCAL_STATUS}
        )
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        cursor = self._execute(
            f"INSERT INTO donations ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders})",
            self._insert_params(record),
        )
        created = self.get(cursor.lastrowid)
        if created is None:  # pragma: no cover - row vanished between statements
            raise LocalStoreError(f"Donation {record.uuid} was not persisted")
        log.debug("Donation created", extra={"local_id": created.id, "uuid": created.uuid})
        return created

    def insert_if_absent(self, record: NewDonation) -> bool:
        """
        Insert the record unless its global id is already present.

        A single conditional statement, so two concurrent callers cannot both
        insert the same uuid. Returns True if a row was written.
        """
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        cursor = self._execute(
            f"INSERT INTO donations ({', '.join(_INSERT_COLUMNS)}) VALUES ({placeholders}) "
            "ON CONFLICT(uuid) DO NOTHING",
            self._insert_params(record),
        )
        return cursor.rowcount == 1

    def update_status(self, local_id: int, status: SyncStatus) -> bool:
        """
        Move a record to `status`. Only `pending -> synced` is allowed, and the
        statement only matches rows that are still pending, so a stale caller
        can never move a record backwards. Returns True if a row changed.
        """
        ensure_transition(SyncStatus.PENDING, status)
        cursor = self._execute(
            "UPDATE donations SET sync_status = ?, last_updated = CURRENT_TIMESTAMP "
            "WHERE id = ? AND sync_status = ?",
            (SyncStatus(status).value, local_id, SyncStatus.PENDING.value),
        )
        return cursor.rowcount == 1

    def delete(self, local_id: int) -> bool:
        """Delete a record locally. Deletions are never synchronised."""
        cursor = self._execute("DELETE FROM donations WHERE id = ?", (local_id,))
        return cursor.rowcount == 1


__all__ = ["COLUMN_MIGRATIONS", "LocalStore", "SCHEMA", "UNIQUE_GLOBAL_ID_INDEX"]
