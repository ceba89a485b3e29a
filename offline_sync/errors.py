"""
Exception hierarchy for offline-sync.

Adapters wrap driver-specific failures (sqlite3, psycopg) into these types so
the reconcilers can handle them without importing either driver.
"""

from __future__ import annotations


class OfflineSyncError(Exception):
    """Base class for all offline-sync errors."""


class LocalStoreError(OfflineSyncError):
    """The local store could not complete a query or mutation."""


class RemoteStoreError(OfflineSyncError):
    """The remote store rejected a request or could not be reached."""


class InvalidTransitionError(OfflineSyncError):
    """A sync status change that the lifecycle does not allow."""


__all__ = [
    "OfflineSyncError",
    "LocalStoreError",
    "RemoteStoreError",
    "InvalidTransitionError",
]
