import socket
import threading
import time

import pytest

from gazellemq.base import BaseClient, ClientStep, HubError
from gazellemq.protocol import Intent, handshake_bytes

pytestmark = pytest.mark.timeout(20)


class RecordingClient(BaseClient):
    intent = Intent.PUBLISHER
    RECONNECT_DELAY = 0.05

    def __init__(self):
        super().__init__()
        self.received = []

    def _session(self, sock):
        while self.running:
            data = sock.recv(1024)
            if not data:
                return
            self.received.append(data)


@pytest.fixture
def hub():
    server = socket.create_server(("127.0.0.1", 0))
    server.settimeout(5)
    yield server
    server.close()


def _port(server):
    return server.getsockname()[1]


def _read_handshake(conn):
    conn.settimeout(5)
    data = b""
    while data.count(b"\r") < 2:
        chunk = conn.recv(1024)
        if not chunk:
            break
        data += chunk
    return data


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_base_client_is_abstract():
    with pytest.raises(TypeError):
        BaseClient()


def test_handshake_then_ready(hub):
    client = RecordingClient()
    ready = threading.Event()
    assert client.set_on_ready(ready.set) is client
    client.connect_to_hub("p#one", "127.0.0.1", _port(hub))
    try:
        conn, _ = hub.accept()
        with conn:
            assert _read_handshake(conn) == handshake_bytes(Intent.PUBLISHER, "p#one")
            conn.sendall(b"\x01")
            assert ready.wait(5)
            assert client.step is ClientStep.READY
            assert client.is_connected
            conn.sendall(b"payload")
            assert _wait_for(lambda: b"".join(client.received) == b"payload")
    finally:
        client.close()


def test_retries_until_acknowledged(hub):
    client = RecordingClient()
    calls = []
    client.set_on_ready(lambda: calls.append(1))
    client.connect_to_hub("p#two", "127.0.0.1", _port(hub))
    try:
        first, _ = hub.accept()
        with first:
            assert _read_handshake(first) == handshake_bytes(Intent.PUBLISHER, "p#two")
        second, _ = hub.accept()
        with second:
            assert _read_handshake(second) == handshake_bytes(Intent.PUBLISHER, "p#two")
            second.sendall(b"\x01")
            assert _wait_for(lambda: calls == [1])
            assert isinstance(client.last_error, HubError)
    finally:
        client.close()


def test_later_calls_extend_name_and_port(hub):
    client = RecordingClient()
    assert BaseClient.connect_to_hub(client, "a", "127.0.0.1", _port(hub)) is client
    BaseClient.connect_to_hub(client, "b", "127.0.0.1", _port(hub) + 1)
    try:
        assert client.name == "ab"
        assert client.port == _port(hub) + 1
        assert client.host == "127.0.0.1"
    finally:
        BaseClient.close(client)


def test_close_closes_connection(hub):
    client = RecordingClient()
    ready = threading.Event()
    client.set_on_ready(ready.set)
    client.connect_to_hub("p#three", "127.0.0.1", _port(hub))
    conn, _ = hub.accept()
    with conn:
        assert _read_handshake(conn) == handshake_bytes(Intent.PUBLISHER, "p#three")
        conn.sendall(b"\x01")
        assert ready.wait(5)
        BaseClient.close(client)
        assert conn.recv(1) == b""
    assert not client.is_running
    assert not client.is_connected
    assert client.step is ClientStep.DISCONNECT


def test_refused_connection_is_retried():
    probe = socket.create_server(("127.0.0.1", 0))
    port = _port(probe)
    probe.close()
    client = RecordingClient()
    BaseClient.connect_to_hub(client, "p#four", "127.0.0.1", port)
    try:
        assert _wait_for(lambda: isinstance(client.last_error, ConnectionRefusedError))
        assert not client.is_connected
        assert client.is_running
    finally:
        BaseClient.close(client)
    assert not client.is_running


def test_context_manager_stops_client():
    with BaseClient.set_on_ready(RecordingClient(), None) as client:
        assert client.running
        assert client.step is ClientStep.NOT_SET
    assert not client.running