"""In-process caches for tool results and language-server property lookups."""

import threading
import time
from collections import OrderedDict
from hashlib import md5
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class LRUCache(Generic[K, V]):
    """
    Bounded, thread-safe mapping that evicts the least recently used entry.

    Entries older than ``ttl`` seconds are treated as missing and dropped on
    the next read. A ``ttl`` of None keeps entries until they are evicted.
    """

    def __init__(self, max_size: int = 128, ttl: Optional[float] = None):
        self.max_size = max_size
        self.ttl = ttl
        self._entries: "OrderedDict[K, Tuple[float, V]]" = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default

            stored_at, value = entry
            if self.ttl is not None and now - stored_at > self.ttl:
                del self._entries[key]
                return default

            self._entries.move_to_end(key)
            return value

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)


def cache_key(*parts: Any) -> str:
    """Stable digest of the ``repr`` of each part."""
    digest = md5()
    for part in parts:
        digest.update(repr(part).encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


class CacheManager:
    """Registry of the named caches shared by the server and its tools."""

    def __init__(self) -> None:
        self._caches: Dict[str, LRUCache] = {}

    def create_cache(self, name: str, max_size: int = 128, ttl: Optional[float] = None) -> LRUCache:
        """Create the cache for ``name``, replacing one left by an earlier server."""
        cache: LRUCache[Any, Any] = LRUCache(max_size=max_size, ttl=ttl)
        self._caches[name] = cache
        return cache


cache_manager = CacheManager()
