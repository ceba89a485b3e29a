"""
Record identity scheme: translation between local and remote donation shapes.

Remote -> local walks an ordered fallback chain per field; a value counts as
absent when it is missing, None, empty, or zero, matching how rows written by
older clients look. Local -> remote is the inverse rename, with None (never "")
for optional reference fields so the remote store can tell "not provided" from
"provided empty".

Identity is the `uuid` alone; no other field takes part in deduplication.
"""

from __future__ import annotations

from datetime import date as date_cls
from typing import Any, Mapping, Optional, Sequence

from offline_sync.domain.models import Donation, NewDonation, RemoteDonation, SyncStatus

DEFAULT_DONOR_NAME = "Unknown"
DEFAULT_TYPE = "CREDIT"

# Ordered fallback chains, remote column names first.
DATE_FIELDS = ("donation_date", "date")
DONOR_FIELDS = ("narration", "donor_name", "name")
DENOMINATION_FIELDS = ("book_type", "denomination", "amount")


def _first_present(row: Mapping[str, Any], fields: Sequence[str], default: Any) -> Any:
    for field in fields:
        value = row.get(field)
        if value:
            return value
    return default


def _text(value: Any) -> str:
    return str(value) if value else ""


def _or_none(value: Optional[str]) -> Optional[str]:
    return value or None


def to_local(row: Mapping[str, Any], today: Optional[date_cls] = None) -> NewDonation:
    """
    Translate a remote row into a local record that is already `synced`.

    Parameters
    ----------
    row : Mapping[str, Any]
        Raw remote columns. Only `uuid` is required.
    today : date, optional
        Business date used when the row carries none. Defaults to today.
    """
    fallback_date = (today or date_cls.today()).isoformat()
    occurred_on = _first_present(row, DATE_FIELDS, fallback_date)
    if isinstance(occurred_on, date_cls):
        occurred_on = occurred_on.isoformat()

    return NewDonation(
        uuid=str(row["uuid"]),
        date=str(occurred_on),
        donor_name=str(_first_present(row, DONOR_FIELDS, DEFAULT_DONOR_NAME)),
        amount=float(row.get("amount") or 0),
        type=str(row.get("type") or DEFAULT_TYPE),
        # Falls back to the numeric amount when no classification is present.
        denomination=_first_present(row, DENOMINATION_FIELDS, 0),
        sl_no=_text(row.get("sl_no")),
        receipt_no=_text(row.get("receipt_no")),
        phone=_text(row.get("phone")),
        sync_status=SyncStatus.SYNCED,
    )


def to_remote(record: Donation) -> RemoteDonation:
    """Translate a local record into the shape the remote store upserts."""
    return RemoteDonation(
        uuid=record.uuid,
        donation_date=record.date,
        narration=record.donor_name,
        amount=record.amount,
        type=record.type,
        book_type=record.denomination,
        sl_no=_or_none(record.sl_no),
        receipt_no=_or_none(record.receipt_no),
        phone=_or_none(record.phone),
    )


def to_remote_batch(records: Sequence[Donation]) -> list[RemoteDonation]:
    return [to_remote(record) for record in records]


def same_identity(left: NewDonation | RemoteDonation, right: NewDonation | RemoteDonation) -> bool:
    """Two records denote the same donation iff their global ids match."""
    return left.uuid == right.uuid


__all__ = [
    "DEFAULT_DONOR_NAME",
    "DEFAULT_TYPE",
    "same_identity",
    "to_local",
    "to_remote",
    "to_remote_batch",
]
