"""Process-local response cache with per-entry TTL.

Entries expire lazily: an expired entry is dropped the next time its key is
looked up, or when the cache is full and needs room. A miss is always safe;
callers recompute from the database and ``set`` the result again.

Example:
    cache = ResponseCache("dashboard", default_ttl=300)
    body = await cache.get_or_set(filters.cache_key(), build_body)
"""

import threading
import time
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import Any

from salesboard.core.config import get_settings
from salesboard.core.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()


class ResponseCache:
    """Namespaced TTL map with a size cap.

    Concurrent requests may race on ``set`` for the same key; the last
    writer wins, which is fine because every writer computed the same value.
    """

    def __init__(
        self,
        namespace: str,
        default_ttl: float = 300,
        maxsize: int = 512,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.maxsize = maxsize
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        full_key = self._key(key)
        with self._lock:
            entry = self._entries.get(full_key)
            if entry is not None:
                value, expires_at = entry
                if self._clock() < expires_at:
                    self._hits += 1
                    return value
                del self._entries[full_key]
            self._misses += 1
        return default

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value`` for ``ttl`` seconds (namespace default if omitted)."""
        full_key = self._key(key)
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        with self._lock:
            if full_key not in self._entries and len(self._entries) >= self.maxsize:
                self._evict()
            self._entries[full_key] = (value, expires_at)

    def _evict(self) -> None:
        """Drop expired entries, then the soonest-to-expire one if still full."""
        now = self._clock()
        expired = [k for k, (_, exp) in self._entries.items() if exp <= now]
        for k in expired:
            del self._entries[k]
        if len(self._entries) >= self.maxsize:
            oldest = min(self._entries, key=lambda k: self._entries[k][1])
            del self._entries[oldest]

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: float | None = None,
    ) -> Any:
        """Return the cached value or compute it with ``factory`` and cache it.

        Failures in ``factory`` propagate and nothing is cached.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug("cache.hit", namespace=self.namespace)
            return value

        logger.debug("cache.miss", namespace=self.namespace)
        value = await factory()
        self.set(key, value, ttl)
        return value

    def clear(self) -> None:
        """Remove every entry in this namespace."""
        with self._lock:
            self._entries.clear()
        logger.info("cache.cleared", namespace=self.namespace)

    def stats(self) -> dict[str, Any]:
        """Size and hit/miss counters for monitoring."""
        return {
            "namespace": self.namespace,
            "size": len(self._entries),
            "maxsize": self.maxsize,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
        }


# =============================================================================
# Process-wide instances (injected as FastAPI dependencies)
# =============================================================================


@lru_cache
def get_dashboard_cache() -> ResponseCache:
    """Cache for /dashboard bodies."""
    settings = get_settings()
    return ResponseCache(
        "dashboard",
        default_ttl=settings.cache_default_ttl_seconds,
        maxsize=settings.cache_max_entries,
    )


@lru_cache
def get_detail_cache() -> ResponseCache:
    """Cache for paginated /detail bodies (exports bypass it)."""
    settings = get_settings()
    return ResponseCache(
        "detail",
        default_ttl=settings.cache_default_ttl_seconds,
        maxsize=settings.cache_max_entries,
    )


@lru_cache
def get_filter_options_cache() -> ResponseCache:
    """Cache for /filter-options bodies; option lists change slowly."""
    settings = get_settings()
    return ResponseCache(
        "filter-options",
        default_ttl=settings.cache_filter_options_ttl_seconds,
        maxsize=settings.cache_max_entries,
    )


@lru_cache
def get_promo_cache() -> ResponseCache:
    """Cache for /promo bodies."""
    settings = get_settings()
    return ResponseCache(
        "promo",
        default_ttl=settings.cache_default_ttl_seconds,
        maxsize=settings.cache_max_entries,
    )


def cache_control(ttl: float) -> str:
    """Cache-Control value letting shared caches serve stale bodies while revalidating."""
    seconds = int(ttl)
    return f"public, s-maxage={seconds}, stale-while-revalidate={seconds * 2}"


NO_STORE = "no-store"
