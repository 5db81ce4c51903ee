"""Client that publishes messages to the hub."""

from __future__ import annotations

import logging
import socket
import threading
from typing import ClassVar, List, Union

from .base import BaseClient, ClientStep
from .mpmc import MPMCQueue
from .protocol import Intent, encode_message

log = logging.getLogger(__name__)


class PubClient(BaseClient):
    """Queues published messages and sends them to the hub in batches.

    Messages published before the connection is acknowledged stay queued
    and are sent once the hub is ready.
    """

    intent: ClassVar[Intent] = Intent.PUBLISHER
    IDLE_TIMEOUT: ClassVar[float] = 2.0

    def __init__(self, queue_depth: int = 500000, msg_batch_size: int = 1) -> None:
        super().__init__()
        self._queue: MPMCQueue[bytes] = MPMCQueue(queue_depth)
        self._batch_size = max(msg_batch_size, 1)
        self._has_pending = threading.Condition()

    @property
    def batch_size(self) -> int:
        """Most messages sent to the hub in one write."""
        return self._batch_size

    @property
    def pending(self) -> int:
        """Number of messages waiting to be sent."""
        return len(self._queue)

    def publish(self, message_type: str, content: Union[str, bytes]) -> None:
        """Queue ``content`` for every subscriber of ``message_type``.

        Waits while the queue is full.
        """
        self._queue.push(encode_message(message_type, content))
        with self._has_pending:
            self._has_pending.notify_all()

    def _wake(self) -> None:
        with self._has_pending:
            self._has_pending.notify_all()

    def _next_batch(self) -> bytes:
        parts: List[bytes] = []
        while len(parts) < self._batch_size:
            item = self._queue.try_pop()
            if item is None:
                break
            parts.append(item)
        return b"".join(parts)

    def _session(self, sock: socket.socket) -> None:
        while True:
            with self._has_pending:
                self._has_pending.wait_for(
                    lambda: self._stop.is_set() or not self._queue.empty(),
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
            self._step = ClientStep.READY