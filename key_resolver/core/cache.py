"""Bounded LRU cache for store lookups."""

import threading
from collections import OrderedDict
from collections.abc import Hashable
from typing import Generic, TypeVar

T = TypeVar("T")


class LRUCache(Generic[T]):
    """
    Least-recently-used cache with a fixed capacity.

    Every operation holds an internal lock, so one cache can back lookups
    from many threads.
    """

    def __init__(self, max_size: int = 1000) -> None:
        """
        Args:
            max_size: Number of entries kept before the oldest one is evicted.
        """
        if max_size <= 0:
            msg = "max_size must be positive"
            raise ValueError(msg)
        self._max_size = max_size
        self._entries: OrderedDict[Hashable, T] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> T | None:
        """
        Look up an entry and mark it as recently used.

        Returns:
            The cached value, or None on a miss.
        """
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return self._entries[key]

    def put(self, key: Hashable, value: T) -> None:
        """Store a value, evicting the least recently used entry when full."""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
