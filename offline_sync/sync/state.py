"""
Sync state model: the per-record `pending -> synced` lifecycle.

The local store owns the status column. Only the push reconciler moves a
record forward, and nothing ever moves it back, so re-running a push after a
crash re-selects exactly the records that are still pending.
"""

from __future__ import annotations

from typing import FrozenSet, Tuple

from offline_sync.domain.models import SyncStatus
from offline_sync.errors import InvalidTransitionError

ALLOWED_TRANSITIONS: FrozenSet[Tuple[SyncStatus, SyncStatus]] = frozenset(
    {(SyncStatus.PENDING, SyncStatus.SYNCED)}
)

INITIAL_LOCAL_STATUS = SyncStatus.PENDING
INITIAL_RESTORED_STATUS = SyncStatus.SYNCED


def can_transition(current: SyncStatus, target: SyncStatus) -> bool:
    return (SyncStatus(current), SyncStatus(target)) in ALLOWED_TRANSITIONS


def ensure_transition(current: SyncStatus, target: SyncStatus) -> None:
    """Raise InvalidTransitionError unless `current -> target` is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move sync_status from '{SyncStatus(current).value}' "
            f"to '{SyncStatus(target).value}'"
        )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "INITIAL_LOCAL_STATUS",
    "INITIAL_RESTORED_STATUS",
    "can_transition",
    "ensure_transition",
]
