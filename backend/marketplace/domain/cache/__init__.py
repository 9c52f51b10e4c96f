"""
Cache Domain Module

Cache entries, keys and lookup results for the in-process cache layer.
"""

from .entities import CacheEntry
from .value_objects import CacheKey, CacheLookup, CacheLookupStatus, TTL

__all__ = ["CacheEntry", "CacheKey", "CacheLookup", "CacheLookupStatus", "TTL"]
