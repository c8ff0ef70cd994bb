"""In-process TTL cache of ranked results, keyed by the original input URL."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from cotrix.config import settings
from cotrix.discovery.models import RankedResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """One cached result."""

    key: str
    value: RankedResult
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


class ResultCache:
    """
    TTL cache of ranked results.

    Keys are the raw URL strings exactly as requested; equivalent URLs are not
    merged. Expired entries are evicted lazily by the read that finds them.
    Not persisted across restarts.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = settings.result_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, url: str) -> Optional[RankedResult]:
        """Cached result for url, or None if absent or past its ttl."""
        async with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[url]
                logger.debug(f"Evicted expired result for {url}")
                return None
            return entry.value

    async def put(self, url: str, result: RankedResult) -> None:
        async with self._lock:
            self._entries[url] = CacheEntry(
                key=url,
                value=result,
                created_at=self._clock(),
                ttl=self.ttl,
            )

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
