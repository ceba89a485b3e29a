"""
Domain models for offline-sync.

Defines the donation record in its two shapes: the local shape stored in the
SQLite `donations` table, and the remote shape stored in the PostgreSQL
`donations` table. Translation between them lives in `offline_sync.sync.identity`.
"""
from __future__ import annotations

import uuid as uuid_lib
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

# Classification values arrive as book codes or, through the amount fallback,
# as numbers; both are kept as received.
Denomination = Union[int, float, str, None]


class SyncStatus(str, Enum):
    """Remote-delivery status of a local record."""

    PENDING = "pending"
    SYNCED = "synced"


def new_global_id() -> str:
    """Generate a client-side global identifier."""
    return str(uuid_lib.uuid4())


class NewDonation(BaseModel):
    """
    A donation that has not been written to the local store yet.

    Used both for records typed in locally (status `pending`) and for records
    materialised from the remote store during restore (status `synced`).
    """

    uuid: str = Field(default_factory=new_global_id, description="Global identifier.")
    date: str = Field(..., description="Business date of the donation (ISO text).")
    donor_name: str = Field(..., description="Party name.")
    amount: float = Field(..., description="Donated amount.")
    type: str = Field("CREDIT", description="Category label.")
    denomination: Denomination = Field(None, description="Classification / book type.")
    sl_no: str = Field("", description="Serial number reference code.")
    receipt_no: str = Field("", description="Receipt number reference code.")
    phone: str = Field("", description="Contact string.")
    sync_status: SyncStatus = Field(SyncStatus.PENDING)

    model_config = {
        "frozen": True,
    }


class Donation(NewDonation):
    """
    Representation of a single row in the local `donations` table.
    """

    id: int = Field(..., description="Local surrogate key (AUTOINCREMENT).")
    last_updated: Optional[datetime] = Field(None, description="Last local mutation.")


class RemoteDonation(BaseModel):
    """
    Representation of a single row in the remote `donations` table.

    Optional reference fields are None when not provided, never "".
    """

    uuid: str
    donation_date: Optional[str] = None
    narration: Optional[str] = None
    amount: Optional[float] = None
    type: Optional[str] = None
    book_type: Denomination = None
    sl_no: Optional[str] = None
    receipt_no: Optional[str] = None
    phone: Optional[str] = None

    model_config = {
        "frozen": True,
    }


__all__ = [
    "Denomination",
    "Donation",
    "NewDonation",
    "RemoteDonation",
    "SyncStatus",
    "new_global_id",
]
