from __future__ import annotations

import sqlite3

import pytest

from offline_sync.domain.models import SyncStatus
from offline_sync.errors import InvalidTransitionError, LocalStoreError
from offline_sync.infrastructure.local_store import LocalStore

EXPECTED_COLUMNS = {
    "id",
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
    "last_updated",
}


def test_create_assigns_id_and_starts_pending(local_store, donation_factory) -> None:
    created = local_store.create(donation_factory(sync_status=SyncStatus.SYNCED))

    assert created.id >= 1
    assert created.uuid
    assert created.sync_status is SyncStatus.PENDING
    assert created.last_updated is not None
    assert local_store.query_by_global_id(created.uuid) == created


def test_create_rejects_duplicate_global_id(local_store, donation_factory) -> None:
    first = local_store.create(donation_factory())

    with pytest.raises(LocalStoreError):
        local_store.create(donation_factory(uuid=first.uuid))


def test_list_all_orders_by_date_then_newest_insert(local_store, donation_factory) -> None:
    older = local_store.create(donation_factory(date="2024-01-01"))
    newer_a = local_store.create(donation_factory(date="2024-06-01"))
    newer_b = local_store.create(donation_factory(date="2024-06-01"))

    ids = [record.id for record in local_store.list_all()]

    assert ids == [newer_b.id, newer_a.id, older.id]


def test_query_pending_returns_only_pending_in_insert_order(local_store, donation_factory) -> None:
    first = local_store.create(donation_factory())
    second = local_store.create(donation_factory())
    third = local_store.create(donation_factory())
    local_store.update_status(second.id, SyncStatus.SYNCED)

    assert [r.id for r in local_store.query_pending()] == [first.id, third.id]


def test_insert_if_absent_is_idempotent_by_global_id(local_store, donation_factory) -> None:
    record = donation_factory(sync_status=SyncStatus.SYNCED)

    assert local_store.insert_if_absent(record) is True
    assert local_store.insert_if_absent(record) is False
    assert local_store.insert_if_absent(record.model_copy(update={"donor_name": "X"})) is False

    stored = local_store.query_by_global_id(record.uuid)
    assert stored is not None
    assert stored.donor_name == record.donor_name
    assert stored.sync_status is SyncStatus.SYNCED
    assert len(local_store.list_all()) == 1


def test_update_status_is_monotonic(local_store, donation_factory) -> None:
    created = local_store.create(donation_factory())

    assert local_store.update_status(created.id, SyncStatus.SYNCED) is True
    # already synced: nothing left to change
    assert local_store.update_status(created.id, SyncStatus.SYNCED) is False
    with pytest.raises(InvalidTransitionError):
        local_store.update_status(created.id, SyncStatus.PENDING)
    assert local_store.get(created.id).sync_status is SyncStatus.SYNCED


def test_delete_is_local_only(local_store, donation_factory) -> None:
    created = local_store.create(donation_factory())

    assert local_store.delete(created.id) is True
    assert local_store.delete(created.id) is False
    assert local_store.get(created.id) is None


def test_count_by_status(local_store, donation_factory) -> None:
    assert local_store.count_by_status() == {"pending": 0, "synced": 0}

    created = local_store.create(donation_factory())
    local_store.create(donation_factory())
    local_store.update_status(created.id, SyncStatus.SYNCED)

    assert local_store.count_by_status() == {"pending": 1, "synced": 1}


def test_operations_require_open_store(tmp_path) -> None:
    store = LocalStore(tmp_path / "closed.db")

    with pytest.raises(LocalStoreError, match="not open"):
        store.query_pending()


def test_context_manager_opens_and_closes(tmp_path) -> None:
    with LocalStore(tmp_path / "ctx.db") as store:
        assert store.is_open
    assert not store.is_open


def test_open_migrates_legacy_schema(tmp_path) -> None:
    db_path = tmp_path / "legacy.db"
    conn = sqlite3.connect(db_path)
    conn.executescript(
        """
        CREATE TABLE donations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            donor_name TEXT NOT NULL,
            amount REAL NOT NULL,
            type TEXT NOT NULL,
            denomination INTEGER,
            sl_no TEXT,
            receipt_no TEXT
        );
        INSERT INTO donations (date, donor_name, amount, type, denomination, sl_no, receipt_no)
        VALUES ('2023-05-01', 'Gopal', 100.0, 'CREDIT', 1, '', 'R-1');
        """
    )
    conn.commit()
    conn.close()

    with LocalStore(db_path) as store:
        columns = {row[1] for row in store._fetch("PRAGMA table_info(donations)")}
        pending = store.query_pending()

    assert EXPECTED_COLUMNS <= columns
    assert len(pending) == 1
    assert pending[0].donor_name == "Gopal"
    assert pending[0].uuid
    assert pending[0].phone == ""


def test_reopening_keeps_data_and_schema(tmp_path, donation_factory) -> None:
    db_path = tmp_path / "reopen.db"
    with LocalStore(db_path) as store:
        created = store.create(donation_factory())

    with LocalStore(db_path) as store:
        assert store.query_by_global_id(created.uuid) is not None


def test_open_rekeys_legacy_rows_sharing_a_global_id(tmp_path) -> None:
    db_path = tmp_path / "legacy-dup.db"
    conn = sqlite3.connect(db_path)
    conn.executescript(
        """
        CREATE TABLE donations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uuid TEXT,
            date TEXT NOT NULL,
            donor_name TEXT NOT NULL,
            amount REAL NOT NULL,
            type TEXT NOT NULL,
            denomination INTEGER,
            sl_no TEXT,
            receipt_no TEXT,
            sync_status TEXT DEFAULT 'pending'
        );
        INSERT INTO donations (uuid, date, donor_name, amount, type, sync_status)
        VALUES ('dup', '2023-05-01', 'Gopal', 100.0, 'CREDIT', 'synced');
        INSERT INTO donations (uuid, date, donor_name, amount, type, sync_status)
        VALUES ('dup', '2023-05-02', 'Meera', 50.0, 'CREDIT', 'synced');
        """
    )
    conn.commit()
    conn.close()

    with LocalStore(db_path) as store:
        rows = sorted(store.list_all(), key=lambda r: r.id)
        with pytest.raises(LocalStoreError):
            store._execute("UPDATE donations SET uuid = 'dup' WHERE id = ?", (rows[1].id,))

    assert len(rows) == 2
    assert rows[0].uuid == "dup"
    assert rows[0].sync_status is SyncStatus.SYNCED
    assert rows[1].uuid != "dup"
    assert rows[1].donor_name == "Meera"
    assert rows[1].sync_status is SyncStatus.PENDING


def test_open_of_unreadable_file_raises_and_stays_closed(tmp_path) -> None:
    db_path = tmp_path / "garbage.db"
    db_path.write_bytes(b"this is not a sqlite database" * 100)
    store = LocalStore(db_path)

    with pytest.raises(LocalStoreError, match="Cannot migrate local store"):
        store.open()
    assert not store.is_open
