"""
Response Cache
==============
TTL-based cache for upstream lookups (Data Dragon, summoner profiles,
Blizzard realm lists, meta JSON).

Keys are namespaced (``"summoner"``, ``"ddragon"``...) and hashed so the
same cache can hold unrelated lookups. One ``ResponseCache`` per TTL.
"""

import hashlib
import logging
import threading
from typing import Any, Callable, Dict, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_MISSING = object()


class ResponseCache:
    """
    Thread-safe TTL cache with hit/miss metrics.

    ``None`` results are never stored, so a transient upstream failure is
    retried on the next request instead of being cached.
    """

    DEFAULT_TTL = 300
    MAX_SIZE = 1000

    def __init__(self, ttl_seconds: int = DEFAULT_TTL, max_size: int = MAX_SIZE, name: str = "default"):
        self.ttl = ttl_seconds
        self.max_size = max_size
        self.name = name
        self._cache = TTLCache(maxsize=max_size, ttl=ttl_seconds)
        self._lock = threading.Lock()

        # Metrics
        self._metrics = {
            'hits': 0,
            'misses': 0,
        }

    @staticmethod
    def make_key(namespace: str, *parts: Any, **kwargs: Any) -> str:
        """Create cache key from parameters"""
        params = namespace + "".join(f":{p}" for p in parts)
        for k, v in sorted(kwargs.items()):
            params += f":{k}={v}"
        # Hash for consistent key length
        return f"{namespace}:{hashlib.md5(params.encode()).hexdigest()}"

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._cache.get(key, _MISSING)
            if value is _MISSING:
                self._metrics['misses'] += 1
                return None
            self._metrics['hits'] += 1
        logger.debug("[cache:%s] hit %s", self.name, key)
        return value

    def set(self, key: str, value: Any):
        if value is None:
            return
        with self._lock:
            self._cache[key] = value
        logger.debug("[cache:%s] stored %s", self.name, key)

    def get_or_set(self, key: str, factory: Callable[[], Any]) -> Any:
        """
        Return the cached value or compute, store and return it.

        The factory runs outside the lock; two concurrent misses may both
        compute, the last write wins.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = factory()
        self.set(key, value)
        return value

    def invalidate(self, namespace: str) -> int:
        """Drop every entry in ``namespace``."""
        prefix = f"{namespace}:"
        with self._lock:
            keys_to_remove = [k for k in list(self._cache.keys()) if k.startswith(prefix)]
            for key in keys_to_remove:
                self._cache.pop(key, None)
        logger.info("[cache:%s] Invalidated %d entries for %s", self.name, len(keys_to_remove), namespace)
        return len(keys_to_remove)

    def clear(self):
        with self._lock:
            self._cache.clear()
        logger.info("[cache:%s] Cleared all entries", self.name)

    def get_metrics(self) -> Dict:
        """Get cache performance metrics"""
        with self._lock:
            total = self._metrics['hits'] + self._metrics['misses']
            hit_rate = self._metrics['hits'] / total if total > 0 else 0
            return {
                **self._metrics,
                'size': len(self._cache),
                'max_size': self.max_size,
                'hit_rate': round(hit_rate, 3),
                'ttl_seconds': self.ttl,
            }


# ---------------------------------------------------------------------------
# Shared instances
# ---------------------------------------------------------------------------

_caches: Dict[str, ResponseCache] = {}
_caches_lock = threading.Lock()


def get_cache(name: str, ttl_seconds: int = ResponseCache.DEFAULT_TTL) -> ResponseCache:
    """Process-wide cache registry, one cache per name."""
    with _caches_lock:
        cache = _caches.get(name)
        if cache is None:
            cache = ResponseCache(ttl_seconds=ttl_seconds, name=name)
            _caches[name] = cache
        return cache


def all_cache_metrics() -> Dict[str, Dict]:
    with _caches_lock:
        caches = dict(_caches)
    return {name: cache.get_metrics() for name, cache in caches.items()}


def clear_all_caches():
    with _caches_lock:
        caches = list(_caches.values())
    for cache in caches:
        cache.clear()
