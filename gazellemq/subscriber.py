"""Client that receives messages from the hub and dispatches them."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable, ClassVar, List, Tuple

from .base import BaseClient, ClientStep, HubError
from .mpmc import MPMCQueue
from .protocol import Intent, Message, MessageParser, ProtocolError

log = logging.getLogger(__name__)

Callback = Callable[[str], None]


class SubClient(BaseClient):
    """Reads messages from the hub and hands them to subscribed callbacks.

    Callbacks run on a pool of handler threads, so callbacks for different
    messages may run concurrently.
    """

    intent: ClassVar[Intent] = Intent.SUBSCRIBER
    READ_SIZE: ClassVar[int] = 8192

    def __init__(
        self, messages_queue_size: int = 500000, nb_handler_threads: int = 8
    ) -> None:
        super().__init__()
        self._messages: MPMCQueue[Message] = MPMCQueue(max(messages_queue_size, 1))
        self._nb_handler_threads = nb_handler_threads
        self._handlers: List[Tuple[str, Callback]] = []
        self._handlers_lock = threading.Lock()
        self._has_messages = threading.Condition()
        self._handler_threads: List[threading.Thread] = []
        self._ready_fired = False

    def subscribe(self, message_type_id: str, callback: Callback) -> None:
        """Call ``callback`` with the content of every ``message_type_id`` message."""
        with self._handlers_lock:
            self._handlers.append((message_type_id, callback))

    def _init(self) -> None:
        for number in range(self._nb_handler_threads):
            thread = threading.Thread(
                target=self._dispatch_loop,
                name=f"{type(self).__name__}-handler-{number}",
                daemon=True,
            )
            self._handler_threads.append(thread)
            thread.start()

    def _wake(self) -> None:
        with self._has_messages:
            self._has_messages.notify_all()

    def _handle_ready(self) -> None:
        if not self._ready_fired:
            self._ready_fired = True
            super()._handle_ready()

    def _dispatch_loop(self) -> None:
        while not self._stop.is_set():
            with self._has_messages:
                self._has_messages.wait_for(
                    lambda: self._stop.is_set() or not self._messages.empty()
                )
            if self._stop.is_set():
                return
            message = self._messages.try_pop()
            if message is not None:
                self._dispatch(message)

    def _dispatch(self, message: Message) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers)
        for message_type_id, callback in handlers:
            if message_type_id != message.message_type:
                continue
            try:
                callback(message.content)
            except Exception:
                log.exception("Handler for %r failed", message_type_id)

    def _session(self, sock: socket.socket) -> None:
        parser = MessageParser()
        self._step = ClientStep.RECEIVE_DATA
        while not self._stop.is_set():
            data = sock.recv(self.READ_SIZE)
            if not data:
                return
            try:
                messages = parser.feed(data)
            except ProtocolError as exc:
                raise HubError(str(exc)) from exc
            for message in messages:
                self._messages.push(message)
                with self._has_messages:
                    self._has_messages.notify()