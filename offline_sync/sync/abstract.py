"""
Adapter interfaces and result contracts for the reconcilers.

The push reconciler and the restore engine only talk to the outside world
through the Protocols below, so any local store, remote store or connectivity
probe with the same shape can be injected (the concrete adapters live in
`offline_sync.infrastructure`).
"""

from __future__ import annotations

from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    TypedDict,
    runtime_checkable,
)

from offline_sync.domain.models import Donation, NewDonation, RemoteDonation, SyncStatus


class PushResult(TypedDict, total=False):
    """
    Outcome of one push pass.

    `skipped_reason` is set when the pass did nothing on purpose (offline,
    another pass running); `error` is set when the remote store rejected the
    batch.
    """

    attempted: int
    synced: int
    skipped_reason: Optional[str]
    error: Optional[str]


class RestoreResult(TypedDict):
    """Outcome of one restore pass, as reported to the host application."""

    success: bool
    count: int
    message: str


@runtime_checkable
class ConnectivityProbe(Protocol):
    """Synchronous reachability check performed before any network call."""

    def is_online(self) -> bool:
        ...


@runtime_checkable
class LocalStoreAdapter(Protocol):
    """
    Local persistent store, keyed by local surrogate id and global id.
    """

    def query_pending(self) -> List[Donation]:
        """Return all `pending` records ordered by local id."""
        ...

    def query_by_global_id(self, global_id: str) -> Optional[Donation]:
        ...

    def insert_if_absent(self, record: NewDonation) -> bool:
        """Insert unless the global id already exists; True if a row was written."""
        ...

    def update_status(self, local_id: int, status: SyncStatus) -> bool:
        ...

    def delete(self, local_id: int) -> bool:
        ...


@runtime_checkable
class RemoteStoreAdapter(Protocol):
    """
    Remote store reached over the network.

    Both methods raise `offline_sync.errors.RemoteStoreError` on failure.
    """

    def upsert(self, batch: Sequence[RemoteDonation]) -> None:
        """Insert-or-update the batch with `uuid` as the conflict key."""
        ...

    def select_range(self, offset: int, last: int) -> List[Mapping[str, Any]]:
        """
        Return rows at positions `offset` through `last` (inclusive) of a
        stable ordering, as raw column mappings.
        """
        ...


def summarize_push(result: PushResult) -> Dict[str, Any]:
    """Flatten a push result for logging/reporting."""
    return {
        "attempted": result.get("attempted", 0),
        "synced": result.get("synced", 0),
        "skipped_reason": result.get("skipped_reason"),
        "error": result.get("error"),
    }


__all__ = [
    "ConnectivityProbe",
    "LocalStoreAdapter",
    "PushResult",
    "RemoteStoreAdapter",
    "RestoreResult",
    "summarize_push",
]
