from __future__ import annotations

import pytest

from offline_sync.domain.models import SyncStatus
from offline_sync.errors import InvalidTransitionError
from offline_sync.sync.state import can_transition, ensure_transition


def test_only_pending_to_synced_is_allowed() -> None:
    assert can_transition(SyncStatus.PENDING, SyncStatus.SYNCED)
    assert not can_transition(SyncStatus.SYNCED, SyncStatus.PENDING)
    assert not can_transition(SyncStatus.PENDING, SyncStatus.PENDING)
    assert not can_transition(SyncStatus.SYNCED, SyncStatus.SYNCED)


def test_accepts_raw_status_strings() -> None:
    assert can_transition("pending", "synced")


def test_ensure_transition_rejects_backwards_move() -> None:
    with pytest.raises(InvalidTransitionError, match="'synced' to 'pending'"):
        ensure_transition(SyncStatus.SYNCED, SyncStatus.PENDING)
