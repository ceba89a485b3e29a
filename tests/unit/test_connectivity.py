from __future__ import annotations

import socket

from offline_sync.infrastructure import connectivity
from offline_sync.infrastructure.connectivity import StaticConnectivityProbe, TcpConnectivityProbe


def _listening_socket() -> socket.socket:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    return server


def test_tcp_probe_online_when_port_accepts(test_settings) -> None:
    server = _listening_socket()
    try:
        probe = TcpConnectivityProbe(
            host="127.0.0.1", port=server.getsockname()[1], timeout=1, cache_ttl=0, settings=test_settings
        )
        assert probe.is_online()
    finally:
        server.close()


def test_tcp_probe_offline_when_port_refuses(test_settings) -> None:
    server = _listening_socket()
    port = server.getsockname()[1]
    server.close()

    probe = TcpConnectivityProbe(host="127.0.0.1", port=port, timeout=1, cache_ttl=0, settings=test_settings)

    assert not probe.is_online()


def test_tcp_probe_caches_verdict_until_invalidated(test_settings, monkeypatch) -> None:
    calls = []

    def fake_create_connection(address, timeout=None):
        calls.append(address)
        raise OSError("network unreachable")

    monkeypatch.setattr(connectivity.socket, "create_connection", fake_create_connection)
    probe = TcpConnectivityProbe(host="db.example", port=5432, timeout=1, cache_ttl=60, settings=test_settings)

    assert not probe.is_online()
    assert not probe.is_online()
    assert len(calls) == 1

    probe.invalidate()
    probe.is_online()
    assert len(calls) == 2


def test_static_probe_is_settable() -> None:
    probe = StaticConnectivityProbe(online=False)
    assert not probe.is_online()
    probe.online = True
    assert probe.is_online()
