"""
Domain package for offline-sync.

Exports the donation models shared by the stores and the reconcilers.
Keep this package focused on data definitions and validation concerns.
"""

from offline_sync.domain.models import (
    Donation,
    NewDonation,
    RemoteDonation,
    SyncStatus,
    new_global_id,
)

__all__ = [
    "Donation",
    "NewDonation",
    "RemoteDonation",
    "SyncStatus",
    "new_global_id",
]
