"""TaggedCache — in-memory LRU cache with tag-based invalidation.

Entries carry a set of :class:`~userlayout.domain.cache.CacheEntryTag`.
Evicting a tag removes every entry carrying it, so all derivations of
one layout can be dropped together when that layout changes.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from userlayout.domain.cache import CacheEntryTag

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    tags: frozenset[CacheEntryTag] = field(default_factory=frozenset)


class TaggedCache:
    """Thread-safe LRU cache keyed by string.

    Parameters:
        max_entries: Capacity; the least recently used entry is evicted first.
    """

    def __init__(self, max_entries: int = 256) -> None:
        self._max_entries = max(1, max_entries)
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value for *key*, or None on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def put(self, key: str, value: Any, tags: Iterable[CacheEntryTag] = ()) -> None:
        """Store *value* under *key*, labelled with *tags*."""
        with self._lock:
            self._entries[key] = _Entry(value=value, tags=frozenset(tags))
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Cache capacity eviction: %s", evicted)

    def invalidate_tag(self, tag: CacheEntryTag) -> int:
        """Drop every entry carrying *tag*. Returns the number removed."""
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if tag in entry.tags]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, int]:
        """Hit/miss counters and current size."""
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "entries": len(self._entries)}
