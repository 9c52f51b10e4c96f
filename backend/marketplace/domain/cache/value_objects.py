"""
Cache Value Objects

Immutable value objects for the cache domain: keys following the catalog
naming scheme, TTLs, and the explicit lookup result.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from ...constants import (
    COURSE_DETAIL_PREFIX,
    COURSE_LIST_PREFIX,
    FEATURED_COURSES_KEY,
)


class CacheLookupStatus(str, Enum):
    """Outcome of a cache lookup."""

    HIT = "hit"
    MISS = "miss"
    EXPIRED = "expired"
    DISABLED = "disabled"


@dataclass(frozen=True)
class CacheLookup:
    """
    Three-way lookup result.

    ``get`` collapses every non-hit outcome into "absent"; ``lookup`` keeps
    them apart so callers can tell a cold key from an expired one or from a
    disabled cache.
    """

    status: CacheLookupStatus
    value: Any = None

    @property
    def hit(self) -> bool:
        return self.status == CacheLookupStatus.HIT


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    Enforces the catalog key naming conventions:
    ``courses:<query>`` listings, ``courses:featured`` and ``course:<slug>``.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate cache key format."""
        if not self.value:
            raise ValueError("Cache key cannot be empty")

    @classmethod
    def course_list(cls, params: Mapping[str, Any]) -> "CacheKey":
        """Listing key; parameters are serialized with sorted keys so equal
        queries share one entry regardless of argument order."""
        signature = json.dumps(
            {k: v for k, v in params.items() if v is not None},
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )
        return cls(f"{COURSE_LIST_PREFIX}{signature}")

    @classmethod
    def featured_courses(cls) -> "CacheKey":
        return cls(FEATURED_COURSES_KEY)

    @classmethod
    def course_detail(cls, slug: str) -> "CacheKey":
        if not slug:
            raise ValueError("Course slug cannot be empty")
        return cls(f"{COURSE_DETAIL_PREFIX}{slug}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """
    Time To Live value object for cache expiration.

    Zero is allowed and means "already stale"; ``None`` in place of a TTL
    means the entry never expires.
    """

    seconds: int

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if self.seconds < 0:
            raise ValueError("TTL cannot be negative")

    @classmethod
    def coerce(cls, ttl: "Optional[int | TTL]") -> "Optional[TTL]":
        if ttl is None or isinstance(ttl, TTL):
            return ttl
        return cls(int(ttl))
