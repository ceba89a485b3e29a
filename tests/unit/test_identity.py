from __future__ import annotations

from datetime import date

from offline_sync.domain.models import Donation, SyncStatus
from offline_sync.sync.identity import same_identity, to_local, to_remote

TODAY = date(2026, 1, 15)


def _local_record(**overrides) -> Donation:
    data = {
        "id": 7,
        "uuid": "0b7f0a52-2a3c-4b0c-9d5e-1f2e3d4c5b6a",
        "date": "2024-03-01",
        "donor_name": "Anand",
        "amount": 501.0,
        "type": "CREDIT",
        "denomination": 5,
        "sl_no": "SL-1",
        "receipt_no": "",
        "phone": "",
        "sync_status": "pending",
    }
    data.update(overrides)
    return Donation(**data)


def test_to_local_prefers_remote_column_names() -> None:
    row = {
        "uuid": "u-1",
        "donation_date": "2024-02-10",
        "date": "1999-01-01",
        "narration": "Bhavana",
        "donor_name": "ignored",
        "amount": 1001.0,
        "type": "CASH",
        "book_type": "10",
        "denomination": 99,
        "sl_no": "SL-9",
        "receipt_no": "R-9",
        "phone": "9876543210",
    }

    record = to_local(row, today=TODAY)

    assert record.uuid == "u-1"
    assert record.date == "2024-02-10"
    assert record.donor_name == "Bhavana"
    assert record.amount == 1001.0
    assert record.type == "CASH"
    assert record.denomination == "10"
    assert (record.sl_no, record.receipt_no, record.phone) == ("SL-9", "R-9", "9876543210")
    assert record.sync_status is SyncStatus.SYNCED


def test_to_local_uses_generic_date_and_name_fields() -> None:
    record = to_local({"uuid": "u-2", "date": "2023-12-24", "name": "Chitra"}, today=TODAY)

    assert record.date == "2023-12-24"
    assert record.donor_name == "Chitra"


def test_to_local_falls_back_to_local_generic_names() -> None:
    record = to_local(
        {"uuid": "u-3", "date": "2023-11-01", "donor_name": "Devi", "denomination": 2},
        today=TODAY,
    )

    assert record.donor_name == "Devi"
    assert record.denomination == 2


def test_to_local_without_any_date_uses_today() -> None:
    record = to_local({"uuid": "u-4"}, today=TODAY)

    assert record.date == "2026-01-15"


def test_to_local_defaults_for_missing_fields() -> None:
    record = to_local({"uuid": "u-5", "donation_date": None, "narration": ""}, today=TODAY)

    assert record.date == TODAY.isoformat()
    assert record.donor_name == "Unknown"
    assert record.amount == 0.0
    assert record.type == "CREDIT"
    assert record.denomination == 0
    assert record.sl_no == ""
    assert record.receipt_no == ""
    assert record.phone == ""


def test_to_local_classification_falls_back_to_amount() -> None:
    record = to_local({"uuid": "u-6", "amount": 250}, today=TODAY)

    assert record.denomination == 250


def test_to_local_accepts_date_objects() -> None:
    record = to_local({"uuid": "u-7", "donation_date": date(2024, 5, 6)}, today=TODAY)

    assert record.date == "2024-05-06"


def test_to_remote_renames_fields_and_nulls_empty_optionals() -> None:
    remote = to_remote(_local_record(sl_no="", receipt_no="", phone=""))

    assert remote.uuid == "0b7f0a52-2a3c-4b0c-9d5e-1f2e3d4c5b6a"
    assert remote.donation_date == "2024-03-01"
    assert remote.narration == "Anand"
    assert remote.book_type == 5
    assert remote.amount == 501.0
    assert remote.sl_no is None
    assert remote.receipt_no is None
    assert remote.phone is None


def test_to_remote_keeps_provided_optionals() -> None:
    remote = to_remote(_local_record(receipt_no="R-77", phone="12345"))

    assert remote.receipt_no == "R-77"
    assert remote.phone == "12345"
    assert remote.sl_no == "SL-1"


def test_identity_is_global_id_only() -> None:
    first = _local_record(donor_name="Anand", amount=1.0)
    second = _local_record(id=99, donor_name="Someone else", amount=2.0)
    other = _local_record(uuid="another-uuid")

    assert same_identity(first, second)
    assert same_identity(first, to_remote(second))
    assert not same_identity(first, other)
