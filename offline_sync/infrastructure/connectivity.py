"""
Connectivity probes consulted before any network-dependent operation.

`TcpConnectivityProbe` opens a TCP connection to the remote store's host and
caches the verdict for a short TTL, so a scheduler ticking every few seconds
does not hammer the network. `StaticConnectivityProbe` answers with a fixed
(mutable) value, for hosts that learn reachability from elsewhere.
"""

from __future__ import annotations

import socket
import threading
import time
from typing import Optional

from offline_sync.config import Settings, get_settings
from offline_sync.utils.logging import get_logger

log = get_logger(__name__)


class TcpConnectivityProbe:
    """
    Reachability check by TCP connect.

    Parameters
    ----------
    host, port : str, int
        Endpoint to probe; defaults to the remote store's host/port.
    timeout : float
        Seconds to wait for the connection.
    cache_ttl : float
        Seconds a verdict stays valid. 0 disables caching.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        cache_ttl: Optional[float] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.host = host or settings.remote_db_host
        self.port = port or settings.remote_db_port
        self.timeout = timeout if timeout is not None else settings.connectivity_timeout_seconds
        self.cache_ttl = (
            cache_ttl if cache_ttl is not None else settings.connectivity_cache_ttl_seconds
        )
        self._lock = threading.Lock()
        self._checked_at: Optional[float] = None
        self._online = False

    def _probe(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as exc:
            log.debug(
                f"Connectivity check failed: {exc}",
                extra={"host": self.host, "port": self.port},
            )
            return False

    def is_online(self) -> bool:
        with self._lock:
            now = time.monotonic()
            if self._checked_at is not None and now - self._checked_at < self.cache_ttl:
                return self._online
            self._online = self._probe()
            self._checked_at = now
            return self._online

    def invalidate(self) -> None:
        """Forget the cached verdict so the next call probes again."""
        with self._lock:
            self._checked_at = None


class StaticConnectivityProbe:
    """Probe whose answer is set by the host application."""

    def __init__(self, online: bool = True) -> None:
        self.online = online

    def is_online(self) -> bool:
        return self.online


__all__ = ["StaticConnectivityProbe", "TcpConnectivityProbe"]
