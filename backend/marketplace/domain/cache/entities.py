"""
Cache Domain Entities
"""

from dataclasses import dataclass
from typing import Any, Optional

from .value_objects import TTL


@dataclass
class CacheEntry:
    """
    A cached value with an optional expiry instant (clock seconds).

    An entry past its expiry is logically absent even while it is still
    physically stored.
    """

    value: Any
    expires_at: Optional[float] = None

    @classmethod
    def create(cls, value: Any, ttl: Optional[TTL], now: float) -> "CacheEntry":
        expires_at = None if ttl is None else now + ttl.seconds
        return cls(value=value, expires_at=expires_at)

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at
