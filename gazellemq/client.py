"""Combined client: one subscriber, one publisher and one command connection."""

from __future__ import annotations

import threading
from typing import Callable, Optional, Union

from .commander import CommandClient
from .publisher import PubClient
from .random_id import random_string
from .subscriber import SubClient

NAME_SUFFIX_LENGTH = 8


class Client:
    """Publishes and subscribes through three connections to one hub."""

    def __init__(self, queue_depth: int = 32, nb_threads: int = 2) -> None:
        self._sub = SubClient(queue_depth, nb_threads)
        self._pub = PubClient(queue_depth)
        self._command = CommandClient()
        self._ready_lock = threading.Lock()
        self._ready_count = 0
        self._on_ready: Optional[Callable[[], None]] = None
        self._connect_called = False

    @property
    def sub_client(self) -> SubClient:
        return self._sub

    @property
    def pub_client(self) -> PubClient:
        return self._pub

    @property
    def command_client(self) -> CommandClient:
        return self._command

    def set_on_ready(self, fn: Optional[Callable[[], None]]) -> "Client":
        """Set the callback run once all three connections are ready."""
        with self._ready_lock:
            self._on_ready = fn
        return self

    def _component_ready(self, label: str) -> None:
        with self._ready_lock:
            self._ready_count += 1
            fn = None
            if self._ready_count == 3 and self._on_ready is not None:
                fn, self._on_ready = self._on_ready, None
        print(f"{label} connected to GazelleMQ", flush=True)
        if fn is not None:
            fn()

    def connect_to_hub(
        self,
        host: str = "localhost",
        sub_port: int = 5875,
        pub_port: int = 5876,
        comm_port: int = 5877,
    ) -> "Client":
        """Start connecting all three clients; later calls do nothing."""
        if self._connect_called:
            return self
        self._connect_called = True

        pub_name = "p#" + random_string(NAME_SUFFIX_LENGTH)
        sub_name = "s#" + random_string(NAME_SUFFIX_LENGTH)
        comm_name = "c#" + random_string(NAME_SUFFIX_LENGTH)

        self._sub.set_on_ready(lambda: self._component_ready("Subscriber"))
        self._pub.set_on_ready(lambda: self._component_ready("Publisher"))
        self._command.subscriber_name = sub_name
        self._command.set_on_ready(lambda: self._component_ready("Commander"))

        self._sub.connect_to_hub(sub_name, host, sub_port)
        self._pub.connect_to_hub(pub_name, host, pub_port)
        self._command.connect_to_hub(comm_name, host, comm_port)
        return self

    def publish(self, message_type: str, content: Union[str, bytes]) -> None:
        """Send ``content`` to every subscriber of ``message_type``."""
        self._pub.publish(message_type, content)

    def subscribe(
        self,
        message_type_id: str,
        callback: Callable[[str], None],
        on_added: Optional[Callable[[], None]] = None,
    ) -> "Client":
        """Receive ``message_type_id`` messages through ``callback``.

        ``on_added`` runs once the hub has registered the subscription.
        """
        self._command.subscribe(message_type_id, on_added)
        self._sub.subscribe(message_type_id, callback)
        return self

    def close(self) -> None:
        """Close all three connections."""
        for component in (self._sub, self._pub, self._command):
            component.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


_client: Optional[Client] = None
_client_lock = threading.Lock()


def get_client() -> Client:
    """Return the process-wide client, creating it on first use."""
    global _client
    with _client_lock:
        if _client is None:
            _client = Client()
        return _client