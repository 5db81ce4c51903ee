"""Client that sends subscription commands to the hub."""

from __future__ import annotations

import logging
import socket
import threading
from collections import deque
from typing import Callable, ClassVar, Deque, Dict, List, Optional

from .base import BaseClient, ClientStep, HubError
from .mpmc import MPMCQueue
from .protocol import Intent, encode_command_batch, subscribe_command

log = logging.getLogger(__name__)

OnAdded = Optional[Callable[[], None]]


class CommandClient(BaseClient):
    """Tells the hub which message types a subscriber wants to receive.

    Subscriptions made before the hub has acknowledged the connection are
    kept aside and sent once it has. Each batch of commands is acknowledged
    by the hub with one byte, after which every subscription still waiting
    for confirmation has its ``on_added`` callback run.
    """

    intent: ClassVar[Intent] = Intent.COMMAND
    IDLE_TIMEOUT: ClassVar[float] = 2.0

    def __init__(self, queue_depth: int = 8, msg_batch_size: int = 1) -> None:
        super().__init__()
        self._queue: MPMCQueue[str] = MPMCQueue(queue_depth)
        self._batch_size = max(msg_batch_size, 1)
        self._has_pending = threading.Condition()
        self._lock = threading.Lock()
        self._setup_complete = False
        self._subscriptions: Dict[str, OnAdded] = {}
        self._pending: Dict[str, OnAdded] = {}
        self._backlog: Deque[str] = deque()
        self.subscriber_name = ""

    @property
    def batch_size(self) -> int:
        """Most commands sent to the hub in one write."""
        return self._batch_size

    @property
    def is_setup_complete(self) -> bool:
        """True once the hub has acknowledged the connection."""
        with self._lock:
            return self._setup_complete

    def subscribe(self, message_type_id: str, on_added: OnAdded = None) -> None:
        """Ask the hub to route ``message_type_id`` to the subscriber.

        ``on_added`` runs once the hub has acknowledged the command. A second
        subscription to a type still awaiting acknowledgement keeps the first
        callback.
        """
        with self._lock:
            if not self._setup_complete:
                self._pending.setdefault(message_type_id, on_added)
                return
            self._subscriptions.setdefault(message_type_id, on_added)
        self._queue.push(subscribe_command(self.subscriber_name, message_type_id))
        with self._has_pending:
            self._has_pending.notify_all()

    def _wake(self) -> None:
        with self._has_pending:
            self._has_pending.notify_all()

    def _handle_ready(self) -> None:
        with self._lock:
            self._setup_complete = True
            pending, self._pending = self._pending, {}
            for message_type_id, on_added in pending.items():
                self._subscriptions.setdefault(message_type_id, on_added)
                self._backlog.append(
                    subscribe_command(self.subscriber_name, message_type_id)
                )
        super()._handle_ready()

    def _next_batch(self) -> bytes:
        commands: List[str] = []
        while len(commands) < self._batch_size and self._backlog:
            commands.append(self._backlog.popleft())
        while len(commands) < self._batch_size:
            command = self._queue.try_pop()
            if command is None:
                break
            commands.append(command)
        return encode_command_batch(commands)

    def _fire_added(self) -> None:
        with self._lock:
            confirmed, self._subscriptions = self._subscriptions, {}
        for message_type_id, on_added in confirmed.items():
            if on_added is None:
                continue
            try:
                on_added()
            except Exception:
                log.exception("Subscription callback for %r failed", message_type_id)

    def _session(self, sock: socket.socket) -> None:
        while True:
            with self._has_pending:
                self._has_pending.wait_for(
                    lambda: self._stop.is_set()
                    or bool(self._backlog)
                    or not self._queue.empty(),
                    self.IDLE_TIMEOUT,
                )
            if self._stop.is_set():
                return
            batch = self._next_batch()
            if not batch:
                continue
            self._step = ClientStep.SENDING_MESSAGE
            try:
                sock.sendall(batch)
            except OSError:
                log.error("Could not write data")
                raise
            self._step = ClientStep.COMMAND_ACK
            if not sock.recv(1):
                raise HubError("hub closed the connection before acknowledging a command")
            self._step = ClientStep.READY
            self._fire_added()