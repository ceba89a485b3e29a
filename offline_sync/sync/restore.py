"""
Restore engine: rebuild the local store from the remote store.

Runs on explicit request (disaster recovery). The whole remote collection is
fetched page by page first; only when every page arrived are the rows
inserted, each with an atomic insert-if-absent on `uuid`. Restore never
updates or deletes local rows, so locally-pending data survives it and
running it again inserts nothing new.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Iterator, List, Mapping, Optional

from offline_sync.config import get_settings
from offline_sync.errors import OfflineSyncError, RemoteStoreError
from offline_sync.sync.abstract import (
    ConnectivityProbe,
    LocalStoreAdapter,
    RemoteStoreAdapter,
    RestoreResult,
)
from offline_sync.sync.guard import SyncGuard, default_guard
from offline_sync.sync.identity import to_local
from offline_sync.utils.logging import get_logger

log = get_logger(__name__)

MSG_OFFLINE = "No internet connection. Connect to restore from the cloud."
MSG_BUSY = "Sync already in progress. Try again shortly."
MSG_EMPTY = "Cloud store is empty. Nothing to restore."


class RestoreEngine:
    """
    Paginate the remote collection and add the rows missing locally.

    Parameters
    ----------
    page_size : int, optional
        Rows requested per page. Defaults to `settings.restore_page_size`.
    today : callable, optional
        Supplies the business date for rows that carry none.
    """

    name: str = "restore"
    description: str = "Fetch all remote pages, then insert rows absent locally by uuid."

    def __init__(
        self,
        local: LocalStoreAdapter,
        remote: RemoteStoreAdapter,
        connectivity: ConnectivityProbe,
        guard: Optional[SyncGuard] = None,
        page_size: Optional[int] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.local = local
        self.remote = remote
        self.connectivity = connectivity
        self.guard = guard or default_guard()
        self.page_size = get_settings().restore_page_size if page_size is None else page_size
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        self._today = today

    def restore_from_remote(self) -> RestoreResult:
        """
        Run one restore pass and report `{success, count, message}`.

        `count` is the number of rows newly inserted locally.
        """
        if not self.connectivity.is_online():
            log.info("Offline - restore not attempted")
            return RestoreResult(success=False, count=0, message=MSG_OFFLINE)

        with self.guard.hold() as acquired:
            if not acquired:
                return RestoreResult(success=False, count=0, message=MSG_BUSY)
            return self._restore()

    def _restore(self) -> RestoreResult:
        try:
            rows = self.fetch_all()
        except RemoteStoreError as exc:
            log.error(f"Restore aborted, remote fetch failed: {exc}")
            return RestoreResult(success=False, count=0, message=str(exc))

        if not rows:
            log.info("Remote store is empty, nothing to restore")
            return RestoreResult(success=True, count=0, message=MSG_EMPTY)

        inserted = 0
        try:
            for _ in self._insert_rows(rows):
                inserted += 1
        except OfflineSyncError as exc:
            # Rows inserted so far are committed; a rerun skips them by uuid.
            log.exception(
                f"Restore interrupted, local store failed: {exc}",
                extra={"fetched": len(rows), "inserted": inserted},
            )
            return RestoreResult(
                success=False,
                count=inserted,
                message=f"Restore interrupted after {inserted} records: {exc}",
            )

        log.info(
            f"Restore complete: {inserted} new records",
            extra={"fetched": len(rows), "inserted": inserted},
        )
        return RestoreResult(
            success=True,
            count=inserted,
            message=f"Restored {inserted} records from the cloud.",
        )

    def fetch_all(self) -> List[Mapping[str, Any]]:
        """
        Fetch every remote row, one page of `page_size` rows at a time.

        An empty page ends pagination. Raises RemoteStoreError on the first
        page that fails; nothing has been inserted at that point.
        """
        accumulated: List[Mapping[str, Any]] = []
        offset = 0
        page = 0
        while True:
            last = offset + self.page_size - 1
            rows = self.remote.select_range(offset, last)
            if not rows:
                break
            page += 1
            accumulated.extend(rows)
            log.debug(
                "Fetched remote page",
                extra={"page": page, "offset": offset, "rows": len(rows)},
            )
            offset += self.page_size
        return accumulated

    def _insert_rows(self, rows: List[Mapping[str, Any]]) -> Iterator[str]:
        """Insert each row absent locally, yielding the uuid of every new row."""
        today = self._today()
        for row in rows:
            if not row.get("uuid"):
                log.warning("Skipping remote row without uuid", extra={"row": dict(row)})
                continue
            record = to_local(row, today=today)
            if self.local.insert_if_absent(record):
                yield record.uuid

    def insert_missing(self, rows: List[Mapping[str, Any]]) -> int:
        """Insert each row whose uuid is not present locally; return the count."""
        return sum(1 for _ in self._insert_rows(rows))


__all__ = ["MSG_BUSY", "MSG_EMPTY", "MSG_OFFLINE", "RestoreEngine"]
