"""Bounded multi-producer, multi-consumer FIFO queue."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Optional, TypeVar

T = TypeVar("T")


class MPMCQueue(Generic[T]):
    """A bounded FIFO queue shared safely between many producers and consumers.

    ``push`` and ``pop`` block while the queue is full or empty; ``try_push``
    and ``try_pop`` never block. ``None`` cannot be queued because
    ``try_pop`` uses it to report an empty queue.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity < 1")
        self._capacity = capacity
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)
        self._waiting_pushers = 0
        self._waiting_poppers = 0

    @property
    def capacity(self) -> int:
        """Maximum number of items the queue holds at once."""
        return self._capacity

    @staticmethod
    def _check_item(item: object) -> None:
        if item is None:
            raise TypeError("None cannot be queued")

    def push(self, item: T) -> None:
        """Append ``item``, waiting until there is room for it."""
        self._check_item(item)
        with self._lock:
            if len(self._items) >= self._capacity:
                self._waiting_pushers += 1
                try:
                    while len(self._items) >= self._capacity:
                        self._not_full.wait()
                finally:
                    self._waiting_pushers -= 1
            self._items.append(item)
            self._not_empty.notify()

    def try_push(self, item: T) -> bool:
        """Append ``item`` if there is room; return whether it was added."""
        self._check_item(item)
        with self._lock:
            if len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._not_empty.notify()
            return True

    def pop(self) -> T:
        """Remove and return the oldest item, waiting until one is available."""
        with self._lock:
            if not self._items:
                self._waiting_poppers += 1
                try:
                    while not self._items:
                        self._not_empty.wait()
                finally:
                    self._waiting_poppers -= 1
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def try_pop(self) -> Optional[T]:
        """Remove and return the oldest item, or ``None`` if the queue is empty."""
        with self._lock:
            if not self._items:
                return None
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def size(self) -> int:
        """Best-effort size: stored items plus waiting writers minus waiting readers.

        The result is negative when the queue is empty and readers are waiting.
        """
        with self._lock:
            return len(self._items) + self._waiting_pushers - self._waiting_poppers

    def empty(self) -> bool:
        """True when ``size()`` is not positive."""
        return self.size() <= 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)