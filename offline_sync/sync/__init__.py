"""
Reconciliation package for offline-sync.

Re-exports the adapter contracts, the identity scheme, the state model and
the two reconcilers so downstream code can import from `offline_sync.sync`
directly.
"""

from offline_sync.sync.abstract import (
    ConnectivityProbe,
    LocalStoreAdapter,
    PushResult,
    RemoteStoreAdapter,
    RestoreResult,
)
from offline_sync.sync.guard import SyncGuard, default_guard
from offline_sync.sync.identity import same_identity, to_local, to_remote
from offline_sync.sync.push import PushReconciler
from offline_sync.sync.restore import RestoreEngine
from offline_sync.sync.state import can_transition, ensure_transition

__all__ = [
    # Contracts
    "ConnectivityProbe",
    "LocalStoreAdapter",
    "PushResult",
    "RemoteStoreAdapter",
    "RestoreResult",
    # Identity & state
    "can_transition",
    "ensure_transition",
    "same_identity",
    "to_local",
    "to_remote",
    # Reconcilers
    "PushReconciler",
    "RestoreEngine",
    "SyncGuard",
    "default_guard",
]
