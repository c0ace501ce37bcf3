"""Bounded LRU cache of optimization results."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import TYPE_CHECKING

from promptsmith.debug_log import log
from promptsmith.limits import DEFAULT_CACHE_CAPACITY, MIN_CACHE_CAPACITY

if TYPE_CHECKING:
    from promptsmith.core.models.entities import OptimizationResult

_log = log.for_stage("cache")


class ResultCache:
    """Least-recently-used map from cache key to `OptimizationResult`.

    Lookup refreshes recency and insert evicts the oldest entry; both happen
    under one lock.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        self._capacity = max(MIN_CACHE_CAPACITY, capacity)
        self._entries: OrderedDict[str, OptimizationResult] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> OptimizationResult | None:
        with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    def put(self, key: str, result: OptimizationResult) -> None:
        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                _log.debug("Cache entry evicted", key=evicted[:60], size=len(self._entries))

    def clear(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        _log.debug("Cache cleared", dropped=dropped)
