"""
Push reconciler: drain locally-pending donations to the remote store.

Runs opportunistically (connectivity regained, periodic timer). A pass is
safe to repeat at any point: the remote upsert is keyed by `uuid`, and a
record is only marked `synced` after the remote store accepted the batch, so
a crash between the two steps just re-sends already-accepted rows next time.
"""

from __future__ import annotations

from typing import Optional

from offline_sync.domain.models import SyncStatus
from offline_sync.errors import OfflineSyncError, RemoteStoreError
from offline_sync.sync.abstract import (
    ConnectivityProbe,
    LocalStoreAdapter,
    PushResult,
    RemoteStoreAdapter,
)
from offline_sync.sync.guard import SyncGuard, default_guard
from offline_sync.sync.identity import to_remote_batch
from offline_sync.utils.logging import get_logger

log = get_logger(__name__)

SKIPPED_OFFLINE = "offline"
SKIPPED_BUSY = "sync already in progress"


class PushReconciler:
    """
    Push all `pending` records in one upsert batch, then mark them `synced`.
    """

    name: str = "push"
    description: str = "Upsert pending local records to the remote store by uuid."

    def __init__(
        self,
        local: LocalStoreAdapter,
        remote: RemoteStoreAdapter,
        connectivity: ConnectivityProbe,
        guard: Optional[SyncGuard] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.connectivity = connectivity
        self.guard = guard or default_guard()

    def push_pending(self) -> PushResult:
        """
        Run one push pass.

        Offline or busy passes are silent no-ops. Store failures never
        escape: a remote rejection leaves every selected record `pending`,
        a local failure keeps whatever was marked so far, and both are
        reported in `error`.
        """
        if not self.connectivity.is_online():
            log.debug("Offline - push skipped, records stay pending")
            return PushResult(attempted=0, synced=0, skipped_reason=SKIPPED_OFFLINE)

        with self.guard.hold() as acquired:
            if not acquired:
                return PushResult(attempted=0, synced=0, skipped_reason=SKIPPED_BUSY)
            return self._push()

    def _push(self) -> PushResult:
        try:
            pending = self.local.query_pending()
        except OfflineSyncError as exc:
            log.exception(f"Push aborted, local store failed: {exc}")
            return PushResult(attempted=0, synced=0, error=str(exc))
        if not pending:
            log.debug("Nothing pending to push")
            return PushResult(attempted=0, synced=0)

        log.info(
            f"Found {len(pending)} offline records. Syncing to remote store...",
            extra={"attempted": len(pending)},
        )

        try:
            self.remote.upsert(to_remote_batch(pending))
        except RemoteStoreError as exc:
            log.error(
                f"Remote store rejected push: {exc}",
                extra={"attempted": len(pending)},
            )
            return PushResult(attempted=len(pending), synced=0, error=str(exc))

        # The remote copy is durable from here; records left pending by a
        # failure below are re-sent under the same uuid on the next pass.
        synced = 0
        try:
            for record in pending:
                if self.local.update_status(record.id, SyncStatus.SYNCED):
                    synced += 1
        except OfflineSyncError as exc:
            log.exception(
                f"Marking records synced failed: {exc}",
                extra={"attempted": len(pending), "synced": synced},
            )
            return PushResult(attempted=len(pending), synced=synced, error=str(exc))

        log.info(
            "Push complete, records are safe in the remote store",
            extra={"attempted": len(pending), "synced": synced},
        )
        return PushResult(attempted=len(pending), synced=synced)


__all__ = ["PushReconciler", "SKIPPED_BUSY", "SKIPPED_OFFLINE"]
