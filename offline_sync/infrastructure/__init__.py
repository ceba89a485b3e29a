"""
Infrastructure package for offline-sync.

Centralizes I/O concerns: the SQLite local store, the PostgreSQL remote store
and connectivity probing. Keep this layer focused on I/O and resource
management, decoupled from reconciliation logic.
"""

from offline_sync.infrastructure.connectivity import (
    StaticConnectivityProbe,
    TcpConnectivityProbe,
)
from offline_sync.infrastructure.local_store import LocalStore
from offline_sync.infrastructure.remote_store import PostgresRemoteStore

__all__ = [
    "LocalStore",
    "PostgresRemoteStore",
    "StaticConnectivityProbe",
    "TcpConnectivityProbe",
]
