"""
Cache manager tests: TTL expiry, pattern invalidation and the explicit
lookup result.
"""

import pytest
from unittest.mock import patch

from marketplace.domain.cache.value_objects import CacheKey, CacheLookupStatus
from marketplace.services.cache.cache_manager import CacheManager, compile_pattern


class TestCacheTTL:
    """Entries expire after their TTL."""

    @pytest.mark.asyncio
    async def test_value_available_before_ttl_and_absent_after(self, cache, clock):
        await cache.set("k", "v", 1)

        clock.advance(0.5)
        assert await cache.get("k") == "v"

        clock.advance(1.0)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_none_ttl_never_expires(self, cache, clock):
        await cache.set("forever", {"a": 1}, None)

        clock.advance(10 * 365 * 86400)
        assert await cache.get("forever") == {"a": 1}

    @pytest.mark.asyncio
    async def test_omitted_ttl_uses_default(self, cache, clock):
        await cache.set("default", "v")

        clock.advance(3599)
        assert await cache.get("default") == "v"
        clock.advance(2)
        assert await cache.get("default") is None

    @pytest.mark.asyncio
    async def test_ttl_longer_than_a_year_is_honoured(self, cache, clock):
        ttl = 400 * 86400
        assert await cache.set("courses:long", "v", ttl) is True

        clock.advance(ttl - 1)
        assert await cache.get("courses:long") == "v"
        clock.advance(1)
        assert await cache.get("courses:long") is None

    @pytest.mark.asyncio
    async def test_expired_entry_removed_on_access(self, cache, clock):
        await cache.set("k", "v", 1)
        clock.advance(2)

        assert cache.get_stats()["size"] == 1
        await cache.get("k")
        assert cache.get_stats()["size"] == 0

    @pytest.mark.asyncio
    async def test_set_overwrites_existing_entry(self, cache):
        await cache.set("k", "old", 60)
        await cache.set("k", "new", 60)

        assert await cache.get("k") == "new"

    @pytest.mark.asyncio
    async def test_cleanup_expired_counts_removed_entries(self, cache, clock):
        await cache.set("short", 1, 1)
        await cache.set("long", 2, 100)
        clock.advance(5)

        assert await cache.cleanup_expired() == 1
        assert await cache.get("long") == 2


class TestPatternInvalidation:
    """delete_pattern removes exactly the matching keys."""

    @pytest.mark.asyncio
    async def test_listing_pattern_leaves_detail_keys(self, cache):
        for key in ("courses:a", "courses:b", "course:x"):
            await cache.set(key, key, 60)

        removed = await cache.delete_pattern("courses:*")

        assert removed == 2
        assert await cache.get("courses:a") is None
        assert await cache.get("courses:b") is None
        assert await cache.get("course:x") == "course:x"

    @pytest.mark.asyncio
    async def test_detail_pattern_does_not_touch_listings(self, cache):
        await cache.set("courses:featured", [], 60)
        await cache.set("course:react-101", {}, 60)

        await cache.delete_pattern("course:*")

        assert await cache.get("courses:featured") == []
        assert await cache.get("course:react-101") is None

    def test_pattern_is_anchored_and_literal(self):
        regex = compile_pattern("course:*")

        assert regex.fullmatch("course:abc")
        assert not regex.fullmatch("my-course:abc")
        assert not regex.fullmatch("courseXabc")
        assert compile_pattern("a.b*").fullmatch("a.bzz")
        assert not compile_pattern("a.b*").fullmatch("axbzz")

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, cache):
        await cache.set("a", 1, 60)
        await cache.set("b", 2, 60)

        assert await cache.delete("a") is True
        assert await cache.delete("a") is False

        await cache.clear()
        assert cache.get_stats()["size"] == 0


class TestLookup:
    """lookup distinguishes miss, expired, hit and disabled."""

    @pytest.mark.asyncio
    async def test_three_way_result(self, cache, clock):
        assert (await cache.lookup("k")).status == CacheLookupStatus.MISS

        await cache.set("k", "v", 1)
        hit = await cache.lookup("k")
        assert hit.status == CacheLookupStatus.HIT
        assert hit.value == "v"

        clock.advance(2)
        assert (await cache.lookup("k")).status == CacheLookupStatus.EXPIRED
        assert (await cache.lookup("k")).status == CacheLookupStatus.MISS

    @pytest.mark.asyncio
    async def test_disabled_cache_reads_absent_and_ignores_writes(self):
        disabled = CacheManager(enabled=False)

        assert await disabled.set("k", "v", 60) is False
        assert await disabled.get("k") is None
        assert (await disabled.lookup("k")).status == CacheLookupStatus.DISABLED

    @pytest.mark.asyncio
    async def test_cache_key_objects_are_accepted(self, cache):
        key = CacheKey.course_detail("react-101")
        await cache.set(key, {"slug": "react-101"}, 60)

        assert await cache.get("course:react-101") == {"slug": "react-101"}

    @pytest.mark.asyncio
    async def test_stats_count_hits_and_misses(self, cache):
        await cache.set("k", 1, 60)
        await cache.get("k")
        await cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["enabled"] is True


class TestValueIsolation:
    """Stored values are never shared with callers."""

    @pytest.mark.asyncio
    async def test_mutating_a_read_value_leaves_entry_intact(self, cache):
        await cache.set("courses:{}", {"courses": [{"title": "React"}], "page": 1}, 60)

        first = await cache.get("courses:{}")
        first["courses"].append({"title": "Injected"})
        first["page"] = 99

        assert await cache.get("courses:{}") == {"courses": [{"title": "React"}], "page": 1}

    @pytest.mark.asyncio
    async def test_mutating_the_original_after_set_leaves_entry_intact(self, cache):
        listing = {"courses": [], "page": 1}
        await cache.set("courses:{}", listing, 60)

        listing["courses"].append({"title": "Late"})

        assert await cache.get("courses:{}") == {"courses": [], "page": 1}


class TestNeverRaises:
    """Internal failures are logged and read as absent."""

    @pytest.mark.asyncio
    async def test_negative_ttl_is_rejected_without_raising(self, cache):
        assert await cache.set("k", "v", -5) is False
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_clock_failure_reads_as_miss(self, cache):
        await cache.set("k", "v", 60)

        with patch.object(cache, "_clock", side_effect=RuntimeError("clock broke")):
            result = await cache.lookup("k")

        assert result.status == CacheLookupStatus.MISS
        assert result.value is None


class TestCacheKeys:
    def test_listing_key_is_order_independent(self):
        a = CacheKey.course_list({"sort": "popular", "page": 1, "level": None})
        b = CacheKey.course_list({"page": 1, "sort": "popular"})

        assert a == b
        assert a.value == 'courses:{"page":1,"sort":"popular"}'

    def test_featured_and_detail_keys(self):
        assert CacheKey.featured_courses().value == "courses:featured"
        assert CacheKey.course_detail("intro").value == "course:intro"

    def test_empty_slug_rejected(self):
        with pytest.raises(ValueError):
            CacheKey.course_detail("")
