"""
Single-flight guard shared by the push reconciler and the restore engine.

Both entry points mutate the same local table, so at most one reconciliation
pass runs per process at a time. A pass that finds the guard taken does not
wait; it reports itself as skipped and the caller retries on its own schedule.
"""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Generator

from offline_sync.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_KEY = "sync"


class _Slot:
    """The lock behind one key; lives as long as some guard holds it."""

    __slots__ = ("lock", "__weakref__")

    def __init__(self) -> None:
        self.lock = threading.Lock()


class SyncGuard:
    """
    Non-blocking mutual exclusion token keyed by name.

    Guards created with the same key share one lock while any of them is
    alive; a key nobody references any more is dropped from the registry.
    """

    _slots: "weakref.WeakValueDictionary[str, _Slot]" = weakref.WeakValueDictionary()
    _registry_lock = threading.Lock()

    def __init__(self, key: str = DEFAULT_KEY) -> None:
        self.key = key
        with self._registry_lock:
            slot = self._slots.get(key)
            if slot is None:
                slot = _Slot()
                self._slots[key] = slot
            self._slot = slot

    @property
    def busy(self) -> bool:
        return self._slot.lock.locked()

    @contextmanager
    def hold(self) -> Generator[bool, None, None]:
        """
        Try to take the guard for the duration of the block.

        Yields True when acquired, False when another pass holds it.
        """
        acquired = self._slot.lock.acquire(blocking=False)
        if not acquired:
            log.info("Sync already in progress", extra={"guard": self.key})
        try:
            yield acquired
        finally:
            if acquired:
                self._slot.lock.release()


def default_guard() -> SyncGuard:
    """Process-wide guard used when a reconciler is not given one."""
    return SyncGuard(DEFAULT_KEY)


__all__ = ["DEFAULT_KEY", "SyncGuard", "default_guard"]
