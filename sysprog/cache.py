"""Fixed-slot web object cache that evicts the oldest written entry."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass

MAX_CACHE_SIZE = 1049000
MAX_OBJECT_SIZE = 102400
MAX_CACHE = 10


@dataclass
class _Block:
    url: str
    obj: bytes
    stamp: int


class WebCache:
    """Cache of up to *capacity* objects keyed by URL.

    Lookups do not refresh an entry; when every slot is taken, the entry
    written longest ago is replaced.
    """

    def __init__(self, capacity: int = MAX_CACHE):
        if capacity <= 0:
            raise ValueError("cache must have at least one slot")
        self.capacity = capacity
        self._slots: list[_Block | None] = [None] * capacity
        self._clock = itertools.count()
        self._lock = threading.Lock()

    def get(self, url: str) -> bytes | None:
        """Return the object cached for *url*, or None when absent."""
        with self._lock:
            for block in self._slots:
                if block is not None and block.url == url:
                    return block.obj
        return None

    def _victim(self) -> int:
        oldest_index = 0
        oldest_stamp = None
        for index, block in enumerate(self._slots):
            if block is None:
                return index
            if oldest_stamp is None or block.stamp < oldest_stamp:
                oldest_index, oldest_stamp = index, block.stamp
        return oldest_index

    def put(self, url: str, obj) -> None:
        """Store *obj* under *url*, replacing a free or the oldest slot."""
        data = bytes(obj)
        if len(data) >= MAX_OBJECT_SIZE:
            raise ValueError(f"object of {len(data)} bytes is too large to cache")
        with self._lock:
            index = self._victim()
            self._slots[index] = _Block(url, data, next(self._clock))

    def __len__(self) -> int:
        with self._lock:
            return sum(block is not None for block in self._slots)

    def __contains__(self, url) -> bool:
        return self.get(url) is not None