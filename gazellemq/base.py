"""Connection life cycle shared by the hub clients."""

from __future__ import annotations

import enum
import logging
import socket
import threading
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, List, Optional, Tuple

from .protocol import Intent, handshake_bytes

log = logging.getLogger(__name__)

_KEEPALIVE_OPTIONS: Tuple[Tuple[str, int], ...] = (
    ("TCP_KEEPIDLE", 5),
    ("TCP_KEEPINTVL", 1),
    ("TCP_KEEPCNT", 2),
)


class ClientStep(enum.Enum):
    """Where a client is in its conversation with the hub."""

    NOT_SET = enum.auto()
    READY = enum.auto()
    CONNECT_TO_HUB = enum.auto()
    SENDING_MESSAGE = enum.auto()
    SENDING_INTENT = enum.auto()
    SENDING_NAME = enum.auto()
    ACK = enum.auto()
    COMMAND_ACK = enum.auto()
    RECEIVE_DATA = enum.auto()
    DISCONNECT = enum.auto()
    RECONNECT = enum.auto()


class HubError(ConnectionError):
    """The hub could not be reached or broke off the conversation."""


class BaseClient(ABC):
    """A connection to the hub, kept open by a background thread.

    The thread connects, sends the intent and name, waits for the one-byte
    acknowledgement and then hands the socket to ``_session``. When the
    connection drops it reconnects after ``RECONNECT_DELAY`` seconds.
    """

    intent: ClassVar[Intent]
    RECONNECT_DELAY: ClassVar[float] = 2.0
    CONNECT_TIMEOUT: ClassVar[float] = 10.0
    CLOSE_TIMEOUT: ClassVar[float] = 5.0

    def __init__(self) -> None:
        self._name = ""
        self._host = ""
        self._port = 0
        self._step = ClientStep.NOT_SET
        self._connect_called = False
        self._stop = threading.Event()
        self._connected = threading.Event()
        self._on_ready: Optional[Callable[[], None]] = None
        self._sock: Optional[socket.socket] = None
        self._sock_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self.last_error: Optional[BaseException] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def step(self) -> ClientStep:
        return self._step

    @property
    def running(self) -> bool:
        """False once ``close`` has been called."""
        return not self._stop.is_set()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    @property
    def is_running(self) -> bool:
        """True while the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def set_on_ready(self, fn: Optional[Callable[[], None]]) -> "BaseClient":
        """Set the callback run when the hub has acknowledged the connection."""
        self._on_ready = fn
        return self

    def connect_to_hub(self, name: str, host: str, port: int) -> "BaseClient":
        """Start connecting to the hub at ``host:port`` in the background.

        Only the first call starts a connection; later calls extend the name
        and change the port.
        """
        self._name += name
        self._port = port
        if not self._connect_called:
            self._connect_called = True
            self._host = host
            self._init()
            self._thread = threading.Thread(
                target=self._run, name=f"{type(self).__name__}-io", daemon=True
            )
            self._thread.start()
        return self

    def close(self) -> None:
        """Stop the background thread and close the connection."""
        self._stop.set()
        self._wake()
        with self._sock_lock:
            sock = self._sock
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(self.CLOSE_TIMEOUT)

    def __enter__(self) -> "BaseClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _init(self) -> None:
        """Prepare anything the client needs before the first connection."""

    def _wake(self) -> None:
        """Wake threads of the subclass that wait on their own conditions."""

    def _handle_ready(self) -> None:
        """Run the ready callback; called after every acknowledged handshake."""
        if self._on_ready is not None:
            self._on_ready()

    @abstractmethod
    def _session(self, sock: socket.socket) -> None:
        """Talk to the hub over an acknowledged connection until it ends."""

    def _resolve(self) -> List[tuple]:
        return socket.getaddrinfo(
            self._host, self._port, socket.AF_INET, socket.SOCK_STREAM
        )

    def _open(self, addresses: List[tuple]) -> socket.socket:
        error: OSError = HubError(f"Could not connect to {self._host}:{self._port}")
        for family, socktype, proto, _, address in addresses:
            sock = socket.socket(family, socktype, proto)
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
                for option, value in _KEEPALIVE_OPTIONS:
                    code = getattr(socket, option, None)
                    if code is not None:
                        sock.setsockopt(socket.IPPROTO_TCP, code, value)
                sock.settimeout(self.CONNECT_TIMEOUT)
                sock.connect(address)
                sock.settimeout(None)
            except OSError as exc:
                sock.close()
                error = exc
                continue
            return sock
        raise error

    def _handshake(self, sock: socket.socket) -> None:
        self._step = ClientStep.SENDING_INTENT
        sock.sendall(handshake_bytes(self.intent, self._name))
        self._step = ClientStep.ACK
        if not sock.recv(1):
            raise HubError("hub closed the connection before acknowledging")

    def _serve(self, sock: socket.socket) -> None:
        with self._sock_lock:
            if self._stop.is_set():
                sock.close()
                return
            self._sock = sock
        try:
            self._connected.set()
            self._handshake(sock)
            self._step = ClientStep.READY
            self._handle_ready()
            self._session(sock)
        except OSError as exc:
            if not self._stop.is_set():
                self.last_error = exc
                log.warning("Connection to hub lost: %s", exc)
        finally:
            self._connected.clear()
            self._step = ClientStep.DISCONNECT
            with self._sock_lock:
                self._sock = None
            sock.close()

    def _run(self) -> None:
        while not self._stop.is_set():
            self._step = ClientStep.CONNECT_TO_HUB
            try:
                addresses = self._resolve()
            except OSError as exc:
                self.last_error = exc
                log.error("Could not resolve %s:%d: %s", self._host, self._port, exc)
                return
            if not addresses:
                self.last_error = HubError(
                    f"Could not connect to {self._host}:{self._port}"
                )
                log.error("%s", self.last_error)
                return
            try:
                sock = self._open(addresses)
            except OSError as exc:
                self.last_error = exc
                log.warning("Could not connect to server, retrying...")
            else:
                self._serve(sock)
            if self._stop.wait(self.RECONNECT_DELAY):
                break
            self._step = ClientStep.RECONNECT
            log.info("Trying to connect to hub...")