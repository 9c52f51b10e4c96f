"""
Cache Manager Service

Process-local key/value cache with per-entry expiry, used to avoid
redundant catalog reads from the database.

The cache is best-effort: no operation raises into its caller. Internal
failures are logged and read as "absent" (or a no-op for writes).

Values are copied on the way in and on the way out, so callers never share
state with a stored entry.
"""

import copy
import re
import threading
import time
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Union

import structlog
from opentelemetry import trace
from prometheus_client import Counter

from ...core.config import Settings, get_settings
from ...domain.cache.entities import CacheEntry
from ...domain.cache.value_objects import (
    CacheKey,
    CacheLookup,
    CacheLookupStatus,
    TTL,
)

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

CACHE_LOOKUPS = Counter(
    "marketplace_cache_lookups_total",
    "Cache lookups by outcome",
    ["status"],
)
CACHE_INVALIDATIONS = Counter(
    "marketplace_cache_invalidated_entries_total",
    "Cache entries removed by delete, pattern delete or clear",
)

KeyLike = Union[str, CacheKey]

_USE_DEFAULT_TTL = object()


def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """
    Translate a ``*`` wildcard pattern into an anchored regular expression.

    Every other character matches literally, so ``courses:*`` matches exactly
    the keys starting with ``courses:``.
    """
    return re.compile(".*".join(re.escape(part) for part in pattern.split("*")))


class CacheManager:
    """
    In-memory cache with TTL expiry.

    No size bound and no eviction beyond expiry. Expired entries are removed
    lazily on access or in bulk by ``cleanup_expired``. A re-entrant lock
    guards the store so the manager stays consistent when called from worker
    threads as well as from the event loop.
    """

    def __init__(
        self,
        enabled: bool = True,
        default_ttl_seconds: Optional[int] = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.enabled = enabled
        self.default_ttl = TTL.coerce(default_ttl_seconds)
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CacheManager":
        settings = settings or get_settings()
        return cls(
            enabled=settings.CACHE_ENABLED,
            default_ttl_seconds=settings.CACHE_DEFAULT_TTL_SECONDS,
        )

    async def set(
        self,
        key: KeyLike,
        value: Any,
        ttl_seconds: Union[int, TTL, None, object] = _USE_DEFAULT_TTL,
    ) -> bool:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Seconds until expiry; ``None`` never expires.
                Omitted uses the configured default.

        Returns:
            True if the value was stored
        """
        if not self.enabled:
            return False

        with tracer.start_as_current_span("cache_manager.set") as span:
            cache_key = str(key)
            span.set_attribute("cache.key", cache_key)
            try:
                ttl = (
                    self.default_ttl
                    if ttl_seconds is _USE_DEFAULT_TTL
                    else TTL.coerce(ttl_seconds)
                )
                with self._lock:
                    self._store[cache_key] = CacheEntry.create(
                        copy.deepcopy(value), ttl, self._clock()
                    )
                logger.debug(
                    "Cache entry stored",
                    key=cache_key,
                    ttl=ttl.seconds if ttl else None,
                )
                return True

            except Exception as e:
                logger.error("Failed to store cache entry", key=cache_key, error=str(e))
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                return False

    async def lookup(self, key: KeyLike) -> CacheLookup:
        """Look a key up, reporting why a value is absent."""
        if not self.enabled:
            CACHE_LOOKUPS.labels(status=CacheLookupStatus.DISABLED.value).inc()
            return CacheLookup(CacheLookupStatus.DISABLED)

        with tracer.start_as_current_span("cache_manager.lookup") as span:
            cache_key = str(key)
            span.set_attribute("cache.key", cache_key)
            try:
                with self._lock:
                    entry = self._store.get(cache_key)
                    if entry is None:
                        result = CacheLookup(CacheLookupStatus.MISS)
                    elif entry.is_expired(self._clock()):
                        del self._store[cache_key]
                        result = CacheLookup(CacheLookupStatus.EXPIRED)
                    else:
                        result = CacheLookup(
                            CacheLookupStatus.HIT, copy.deepcopy(entry.value)
                        )

                    if result.hit:
                        self._hits += 1
                    else:
                        self._misses += 1

                CACHE_LOOKUPS.labels(status=result.status.value).inc()
                span.set_attribute("cache.status", result.status.value)
                return result

            except Exception as e:
                logger.error("Cache lookup failed", key=cache_key, error=str(e))
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                return CacheLookup(CacheLookupStatus.MISS)

    async def get(self, key: KeyLike) -> Optional[Any]:
        """Cached value, or None when missing, expired or disabled."""
        result = await self.lookup(key)
        return result.value if result.hit else None

    async def delete(self, key: KeyLike) -> bool:
        cache_key = str(key)
        try:
            with self._lock:
                removed = self._store.pop(cache_key, None) is not None
            if removed:
                CACHE_INVALIDATIONS.inc()
            return removed

        except Exception as e:
            logger.error("Failed to delete cache entry", key=cache_key, error=str(e))
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a ``*`` wildcard pattern.

        Returns:
            Number of entries removed
        """
        with tracer.start_as_current_span("cache_manager.delete_pattern") as span:
            span.set_attribute("cache.pattern", pattern)
            try:
                regex = compile_pattern(pattern)
                with self._lock:
                    doomed = [key for key in self._store if regex.fullmatch(key)]
                    for key in doomed:
                        del self._store[key]

                CACHE_INVALIDATIONS.inc(len(doomed))
                span.set_attribute("cache.deleted", len(doomed))
                logger.info(
                    "Cache entries invalidated", pattern=pattern, count=len(doomed)
                )
                return len(doomed)

            except Exception as e:
                logger.error(
                    "Failed to invalidate cache pattern", pattern=pattern, error=str(e)
                )
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                return 0

    async def clear(self) -> None:
        try:
            with self._lock:
                count = len(self._store)
                self._store.clear()
            CACHE_INVALIDATIONS.inc(count)
            logger.info("Cache cleared", count=count)

        except Exception as e:
            logger.error("Failed to clear cache", error=str(e))

    async def cleanup_expired(self) -> int:
        """Physically drop expired entries."""
        try:
            now = self._clock()
            with self._lock:
                expired = [k for k, e in self._store.items() if e.is_expired(now)]
                for key in expired:
                    del self._store[key]
            if expired:
                logger.debug("Expired cache entries removed", count=len(expired))
            return len(expired)

        except Exception as e:
            logger.error("Failed to clean up expired cache entries", error=str(e))
            return 0

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._store),
                "enabled": self.enabled,
                "hits": self._hits,
                "misses": self._misses,
            }


@lru_cache()
def get_cache_manager() -> CacheManager:
    """Process-wide cache manager, created on first use."""
    return CacheManager.from_settings()
