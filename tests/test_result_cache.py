"""Tests for the in-process result cache."""

import pytest

from cotrix.discovery.cache import ResultCache
from cotrix.discovery.models import Confidence, RankedResult

RESULT = RankedResult(("SAVE10", "NEW20"), Confidence.DISCOVERED, "nike")


class TestResultCache:
    """Test TTL semantics."""

    @pytest.mark.asyncio
    async def test_miss(self, fake_clock):
        cache = ResultCache(ttl_seconds=3600, clock=fake_clock)
        assert await cache.get("https://www.nike.com") is None

    @pytest.mark.asyncio
    async def test_hit_within_ttl(self, fake_clock):
        cache = ResultCache(ttl_seconds=3600, clock=fake_clock)
        await cache.put("https://www.nike.com", RESULT)
        fake_clock.advance(3600)
        assert await cache.get("https://www.nike.com") == RESULT

    @pytest.mark.asyncio
    async def test_expired_entry_is_evicted(self, fake_clock):
        cache = ResultCache(ttl_seconds=3600, clock=fake_clock)
        await cache.put("https://www.nike.com", RESULT)
        fake_clock.advance(3601)
        assert await cache.get("https://www.nike.com") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_keys_are_raw_urls(self, fake_clock):
        cache = ResultCache(ttl_seconds=60, clock=fake_clock)
        await cache.put("https://www.nike.com", RESULT)
        assert await cache.get("https://www.nike.com/") is None
        assert await cache.get("https://WWW.NIKE.COM") is None

    @pytest.mark.asyncio
    async def test_put_overwrites_and_resets_age(self, fake_clock):
        cache = ResultCache(ttl_seconds=60, clock=fake_clock)
        await cache.put("https://gap.com", RESULT)
        fake_clock.advance(50)
        replacement = RankedResult(("GAP10",), Confidence.PLACEHOLDER, "gap")
        await cache.put("https://gap.com", replacement)
        fake_clock.advance(50)
        assert await cache.get("https://gap.com") == replacement

    @pytest.mark.asyncio
    async def test_clear(self, fake_clock):
        cache = ResultCache(ttl_seconds=60, clock=fake_clock)
        await cache.put("https://gap.com", RESULT)
        await cache.clear()
        assert len(cache) == 0
