"""Bounded, thread-safe FIFO buffer shared by producers and consumers."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any


class BoundedBuffer:
    """FIFO of at most *n* items; insert blocks when full, remove when empty."""

    def __init__(self, n: int):
        if n <= 0:
            raise ValueError("buffer must hold at least one item")
        self.n = n
        self._items: deque[Any] = deque()
        self._mutex = threading.Lock()
        self._slots = threading.Semaphore(n)
        self._available = threading.Semaphore(0)

    def insert(self, item) -> None:
        """Append *item* at the rear, waiting for a free slot."""
        self._slots.acquire()
        with self._mutex:
            self._items.append(item)
        self._available.release()

    def remove(self):
        """Remove and return the front item, waiting until one exists."""
        self._available.acquire()
        with self._mutex:
            item = self._items.popleft()
        self._slots.release()
        return item

    def __len__(self) -> int:
        with self._mutex:
            return len(self._items)