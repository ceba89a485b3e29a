"""
Orchestrator wiring the stores, the connectivity probe and the reconcilers.

Usage (example from CLI):
    from offline_sync.orchestrator import SyncService

    with SyncService.from_settings() as service:
        report = service.run_push()
        print(report)

`SyncService` owns the store handles it opens and closes them on exit.
Every pass runs inside `profile_block` so reports carry timing and memory
figures next to the reconciliation outcome. `PushScheduler` drives the push
reconciler in the background: on a fixed interval, and immediately when
connectivity comes back.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from offline_sync.config import Settings, get_settings
from offline_sync.infrastructure.connectivity import TcpConnectivityProbe
from offline_sync.infrastructure.local_store import LocalStore
from offline_sync.infrastructure.remote_store import PostgresRemoteStore
from offline_sync.sync.abstract import (
    ConnectivityProbe,
    PushResult,
    RemoteStoreAdapter,
    RestoreResult,
    summarize_push,
)
from offline_sync.sync.guard import SyncGuard, default_guard
from offline_sync.sync.push import PushReconciler
from offline_sync.sync.restore import RestoreEngine
from offline_sync.utils.logging import get_logger
from offline_sync.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)


def _merge_report(outcome: Dict[str, Any], stats: ProfileStats) -> Dict[str, Any]:
    """Merge a reconciliation outcome with profiler stats."""
    merged = dict(outcome)
    merged["duration_seconds"] = round(stats.duration_seconds, 3)
    merged["peak_rss_bytes"] = stats.peak_rss_bytes
    merged["cpu_percent"] = round(stats.cpu_percent, 1) if stats.cpu_percent else None
    merged["profile"] = stats.as_dict()
    return merged


class SyncService:
    """
    Owns one local store, one remote store and one probe for the process.

    Parameters
    ----------
    local : LocalStore
        Local store handle; opened by `open()` if not open yet.
    remote : RemoteStoreAdapter
        Remote store; opened/closed with the service when it has `open`/`close`.
    connectivity : ConnectivityProbe
        Reachability check shared by both reconcilers.
    guard : SyncGuard, optional
        Single-flight guard shared by both reconcilers.
    """

    def __init__(
        self,
        local: LocalStore,
        remote: RemoteStoreAdapter,
        connectivity: ConnectivityProbe,
        guard: Optional[SyncGuard] = None,
        page_size: Optional[int] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.connectivity = connectivity
        self.guard = guard or default_guard()
        self.pusher = PushReconciler(local, remote, connectivity, guard=self.guard)
        self.restorer = RestoreEngine(
            local, remote, connectivity, guard=self.guard, page_size=page_size
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SyncService":
        """Build a service from configuration: SQLite local, PostgreSQL remote, TCP probe."""
        settings = settings or get_settings()
        return cls(
            local=LocalStore(settings.local_db_path, timeout=settings.local_db_timeout_seconds),
            remote=PostgresRemoteStore(settings=settings),
            connectivity=TcpConnectivityProbe(settings=settings),
            page_size=settings.restore_page_size,
        )

    # === Lifecycle ===

    def open(self) -> "SyncService":
        self.local.open()
        if hasattr(self.remote, "open"):
            self.remote.open()
        return self

    def close(self) -> None:
        try:
            if hasattr(self.remote, "close"):
                self.remote.close()
        finally:
            self.local.close()

    def __enter__(self) -> "SyncService":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # === Passes ===

    def run_push(self) -> Dict[str, Any]:
        """Run one profiled push pass and return its report."""
        log.info("[PUSH START]", extra={"pass": "push"})
        with profile_block("push") as stats:
            result: PushResult = self.pusher.push_pending()
        report = _merge_report(summarize_push(result), stats)
        log.info("[PUSH DONE]", extra={"pass": "push", **summarize_push(result)})
        return report

    def run_restore(self) -> Dict[str, Any]:
        """Run one profiled restore pass and return its report."""
        log.info("[RESTORE START]", extra={"pass": "restore"})
        with profile_block("restore") as stats:
            result: RestoreResult = self.restorer.restore_from_remote()
        report = _merge_report(dict(result), stats)
        log.info(
            "[RESTORE DONE]",
            extra={"pass": "restore", "success": result["success"], "count": result["count"]},
        )
        return report

    def status(self) -> Dict[str, Any]:
        """Local counts by sync status plus current reachability."""
        counts = self.local.count_by_status()
        return {
            "pending": counts.get("pending", 0),
            "synced": counts.get("synced", 0),
            "total": sum(counts.values()),
            "online": self.connectivity.is_online(),
            "sync_in_progress": self.guard.busy,
        }


class PushScheduler:
    """
    Background driver for the push reconciler.

    Pushes every `interval` seconds, and checks connectivity every
    `poll_interval` seconds in between so a pass starts as soon as the
    probe flips from offline to online.
    """

    def __init__(
        self,
        service: SyncService,
        interval: Optional[float] = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.service = service
        self.interval = get_settings().push_interval_seconds if interval is None else interval
        if self.interval <= 0 or poll_interval <= 0:
            raise ValueError(
                f"interval and poll_interval must be positive, got {self.interval} and {poll_interval}"
            )
        self.poll_interval = min(poll_interval, self.interval)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.passes = 0

    def tick(self, was_online: bool, since_last_push: float) -> tuple[bool, bool]:
        """
        Decide whether to push now.

        Returns `(online, pushed)`.
        """
        online = self.service.connectivity.is_online()
        regained = online and not was_online
        due = since_last_push >= self.interval
        if not (regained or due):
            return online, False
        if regained:
            log.info("Connectivity regained, pushing pending records")
        try:
            self.service.run_push()
        except Exception:  # noqa: BLE001 - keep the scheduler alive across failures
            log.exception("Scheduled push failed")
        self.passes += 1
        return online, True

    def _run(self) -> None:
        was_online = False
        # First tick pushes immediately.
        since_last_push = self.interval
        while not self._stop.is_set():
            was_online, pushed = self.tick(was_online, since_last_push)
            since_last_push = 0.0 if pushed else since_last_push + self.poll_interval
            self._stop.wait(timeout=self.poll_interval)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="push-scheduler", daemon=True)
        self._thread.start()
        log.info("Push scheduler started", extra={"interval": self.interval})

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        log.info("Push scheduler stopped", extra={"passes": self.passes})

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until `stop()` is called or `timeout` elapses."""
        return self._stop.wait(timeout=timeout)


__all__ = ["PushScheduler", "SyncService"]
