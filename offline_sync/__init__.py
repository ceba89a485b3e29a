"""
offline-sync - offline-first synchronization of donation records.

Reconciles a local, always-available SQLite store with a remote,
intermittently-reachable PostgreSQL store:

- Push: locally-created records that never reached the remote store are
  upserted by global id and marked synced only after the remote accepts them
- Restore: the full remote collection is paginated and every record missing
  locally is inserted, additive-only and safe to repeat
- Identity: a client-assigned UUID is the only deduplication key on both sides

Both passes are idempotent and share a single-flight guard, so crashes,
partial network failures and repeated invocation never lose or duplicate data.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from offline_sync.config import Settings, get_settings
from offline_sync.domain.models import Donation, NewDonation, RemoteDonation, SyncStatus
from offline_sync.errors import (
    InvalidTransitionError,
    LocalStoreError,
    OfflineSyncError,
    RemoteStoreError,
)
from offline_sync.infrastructure import (
    LocalStore,
    PostgresRemoteStore,
    StaticConnectivityProbe,
    TcpConnectivityProbe,
)
from offline_sync.orchestrator import PushScheduler, SyncService
from offline_sync.sync import (
    PushReconciler,
    PushResult,
    RestoreEngine,
    RestoreResult,
    SyncGuard,
)
from offline_sync.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Donation",
    "NewDonation",
    "RemoteDonation",
    "SyncStatus",
    # Errors
    "OfflineSyncError",
    "LocalStoreError",
    "RemoteStoreError",
    "InvalidTransitionError",
    # Stores & probes
    "LocalStore",
    "PostgresRemoteStore",
    "StaticConnectivityProbe",
    "TcpConnectivityProbe",
    # Reconciliation
    "PushReconciler",
    "PushResult",
    "RestoreEngine",
    "RestoreResult",
    "SyncGuard",
    # Orchestration
    "PushScheduler",
    "SyncService",
    # Logging
    "configure_logging",
    "get_logger",
]
