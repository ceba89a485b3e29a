"""
Pytest configuration for offline-sync.

Provides fixtures for:
- A real SQLite local store in a temporary directory
- An in-memory fake remote store with idempotent upsert and call recording
- Connectivity probes and an isolated single-flight guard
- Settings and a PostgreSQL connection for integration tests
"""

from __future__ import annotations

import os
import uuid
from typing import Any, Dict, Generator, List, Mapping, Optional, Sequence

import psycopg
import pytest

from offline_sync.config import Settings, build_remote_dsn
from offline_sync.domain.models import NewDonation, RemoteDonation
from offline_sync.errors import RemoteStoreError
from offline_sync.infrastructure.connectivity import StaticConnectivityProbe
from offline_sync.infrastructure.local_store import LocalStore
from offline_sync.sync.guard import SyncGuard


class FakeRemoteStore:
    """
    In-memory remote store keyed by uuid.

    `upsert` overwrites existing uuids like the real ON CONFLICT upsert;
    `select_range` serves rows in insertion order with an inclusive end,
    like the BIGSERIAL ordering of the real table.
    """

    def __init__(self, rows: Optional[Sequence[Mapping[str, Any]]] = None) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.upsert_calls: List[List[RemoteDonation]] = []
        self.select_calls: List[tuple[int, int]] = []
        self.page_sizes: List[int] = []
        self.fail_upsert = False
        self.fail_select_on_call: Optional[int] = None
        self.seed(rows or [])

    def seed(self, rows: Sequence[Mapping[str, Any]]) -> None:
        for row in rows:
            self.rows[row["uuid"]] = dict(row)

    @property
    def call_count(self) -> int:
        return len(self.upsert_calls) + len(self.select_calls)

    def upsert(self, batch: Sequence[RemoteDonation]) -> None:
        self.upsert_calls.append(list(batch))
        if self.fail_upsert:
            raise RemoteStoreError("Remote store rejected request: simulated outage")
        for record in batch:
            self.rows[record.uuid] = record.model_dump()

    def select_range(self, offset: int, last: int) -> List[Mapping[str, Any]]:
        self.select_calls.append((offset, last))
        if self.fail_select_on_call == len(self.select_calls):
            raise RemoteStoreError("Remote store unreachable: simulated timeout")
        ordered = list(self.rows.values())
        page = ordered[offset : last + 1]
        self.page_sizes.append(len(page))
        return page


def make_donation(**overrides: Any) -> NewDonation:
    data: Dict[str, Any] = {
        "date": "2024-03-01",
        "donor_name": "Anand",
        "amount": 501.0,
        "type": "CREDIT",
        "denomination": 5,
        "sl_no": "SL-1",
        "receipt_no": "R-1",
        "phone": "",
    }
    data.update(overrides)
    return NewDonation(**data)


def make_remote_row(**overrides: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "uuid": str(uuid.uuid4()),
        "donation_date": "2024-02-10",
        "narration": "Bhavana",
        "amount": 1001.0,
        "type": "CASH",
        "book_type": "10",
        "sl_no": "SL-9",
        "receipt_no": "R-9",
        "phone": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def local_store(tmp_path) -> Generator[LocalStore, None, None]:
    """Open SQLite local store backed by a temporary file."""
    store = LocalStore(tmp_path / "local.db", timeout=1.0)
    store.open()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def online() -> StaticConnectivityProbe:
    return StaticConnectivityProbe(online=True)


@pytest.fixture
def offline() -> StaticConnectivityProbe:
    return StaticConnectivityProbe(online=False)


@pytest.fixture
def guard() -> SyncGuard:
    """Guard with a key of its own so tests never contend on the process-wide one."""
    return SyncGuard(key=f"test-{uuid.uuid4()}")


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        remote_db_host=os.getenv("REMOTE_DB_HOST", "localhost"),
        remote_db_port=int(os.getenv("REMOTE_DB_PORT", "5432")),
        remote_db_user=os.getenv("REMOTE_DB_USER", "postgres"),
        remote_db_password=os.getenv("REMOTE_DB_PASSWORD", "postgres"),
        remote_db_name=os.getenv("REMOTE_DB_NAME", "offline_sync"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for integration tests.
    """
    return build_remote_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if the remote database is reachable.

    Used to conditionally skip integration tests when it is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def donation_factory():
    return make_donation


@pytest.fixture
def remote_row_factory():
    return make_remote_row
