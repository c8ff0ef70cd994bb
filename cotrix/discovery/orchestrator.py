"""Top-level coupon discovery for a store URL.

Flow per request: validate URL -> cache lookup -> acquire a browser session ->
run every adapter concurrently on its own page -> aggregate and rank ->
hyphen-less slug retry -> placeholder synthesis -> cache write. The browser
session is released on every exit path.
"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from cotrix import metrics
from cotrix.config import settings
from cotrix.discovery.aggregation import (
    collect_candidates,
    select_top_codes,
    synthesize_placeholder_codes,
)
from cotrix.discovery.browser import BrowserSession, BrowserSessionManager
from cotrix.discovery.cache import ResultCache
from cotrix.discovery.errors import BrowserLaunchError, InvalidURLError, NavigationTimeoutError
from cotrix.discovery.fetchers.base import SiteAdapter
from cotrix.discovery.models import AdapterOutcome, Confidence, RankedResult
from cotrix.discovery.registry import AdapterRegistry
from cotrix.discovery.store_name import hyphenless_variant, normalize_store_name, store_label

logger = logging.getLogger(__name__)

_STATUS_BY_CONFIDENCE = {
    Confidence.DISCOVERED: "discovered",
    Confidence.PLACEHOLDER: "placeholder",
    Confidence.NONE: "empty",
}


class DiscoveryOrchestrator:
    """Entry point for discover_codes(); one instance per process."""

    def __init__(
        self,
        session_manager: Optional[BrowserSessionManager] = None,
        adapters: Optional[Sequence[SiteAdapter]] = None,
        cache: Optional[ResultCache] = None,
        max_codes: Optional[int] = None,
        placeholders_enabled: Optional[bool] = None,
        adapter_timeout: Optional[float] = None,
        request_deadline: Optional[float] = None,
        source_priority: Optional[Sequence[str]] = None,
    ):
        self.session_manager = session_manager if session_manager is not None else BrowserSessionManager()
        self.adapters = list(AdapterRegistry.build_enabled() if adapters is None else adapters)
        self.cache = cache if cache is not None else ResultCache()
        self.max_codes = settings.max_result_codes if max_codes is None else max_codes
        self.placeholders_enabled = (
            settings.placeholder_codes_enabled if placeholders_enabled is None else placeholders_enabled
        )
        self.adapter_timeout = adapter_timeout or settings.adapter_timeout_seconds
        self.request_deadline = request_deadline or settings.request_deadline_seconds
        self.source_priority = list(
            settings.source_priority if source_priority is None else source_priority
        )

    async def discover_codes(self, url: str) -> RankedResult:
        """
        Find up to max_codes discount codes for the store at url.

        Raises:
            InvalidURLError: If url is not an absolute URL (no browser work is done)
            BrowserLaunchError: If no browser session could be acquired
        """
        started = time.monotonic()
        try:
            label = store_label(url)
            slug = normalize_store_name(url)
        except InvalidURLError:
            metrics.record_discovery("invalid_url")
            raise

        cached = await self.cache.get(url)
        metrics.record_cache_lookup(cached is not None)
        if cached is not None:
            logger.info(f"Cache hit for {url}: {list(cached.codes)}")
            return cached

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.request_deadline

        logger.info(f"Starting coupon discovery for {url} (slug: {slug})")
        try:
            session = await self.session_manager.acquire_session()
        except BrowserLaunchError:
            metrics.record_discovery("browser_error", time.monotonic() - started)
            raise

        try:
            codes = await self._discover_slug(session, slug, deadline)
            retry_slug = hyphenless_variant(slug)
            if not codes and retry_slug != slug and loop.time() < deadline:
                logger.info(f"No codes for {slug}, retrying as {retry_slug}")
                codes = await self._discover_slug(session, retry_slug, deadline)
        finally:
            await session.close()

        result = self._build_result(codes, slug, label)
        await self.cache.put(url, result)

        metrics.record_discovery(_STATUS_BY_CONFIDENCE[result.confidence], time.monotonic() - started)
        logger.info(f"Discovery finished for {url}: {list(result.codes)} ({result.confidence.value})")
        return result

    async def _discover_slug(self, session: BrowserSession, slug: str, deadline: float) -> List[str]:
        outcomes = await self._run_adapters(session, slug, deadline)
        return select_top_codes(
            collect_candidates(outcomes),
            limit=self.max_codes,
            source_priority=self.source_priority,
        )

    async def _run_adapters(
        self,
        session: BrowserSession,
        slug: str,
        deadline: float,
    ) -> List[AdapterOutcome]:
        """Run all adapters concurrently; abandon whatever is unfinished at the deadline."""
        if not self.adapters:
            return []

        loop = asyncio.get_running_loop()
        tasks = [
            asyncio.create_task(self._run_adapter(session, adapter, slug))
            for adapter in self.adapters
        ]
        try:
            await asyncio.wait(tasks, timeout=max(0.0, deadline - loop.time()))
        finally:
            unfinished = [task for task in tasks if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                logger.warning(f"Request deadline reached, abandoned {len(unfinished)} adapters for {slug}")
                await asyncio.gather(*unfinished, return_exceptions=True)

        outcomes: List[AdapterOutcome] = []
        for adapter, task in zip(self.adapters, tasks):
            if task.cancelled():
                metrics.record_adapter_run(adapter.source, "error")
                outcomes.append(
                    AdapterOutcome.failed(
                        adapter.source,
                        NavigationTimeoutError(adapter.build_url(slug), self.request_deadline),
                    )
                )
            else:
                outcomes.append(task.result())
        return outcomes

    async def _run_adapter(
        self,
        session: BrowserSession,
        adapter: SiteAdapter,
        slug: str,
    ) -> AdapterOutcome:
        """One adapter on its own page, bounded by adapter_timeout. Never raises."""
        page = None
        try:
            page = await session.open_page()
            outcome = await asyncio.wait_for(adapter.run(page, slug), timeout=self.adapter_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{adapter.source} timed out after {self.adapter_timeout:g}s for {slug}")
            outcome = AdapterOutcome.failed(
                adapter.source,
                NavigationTimeoutError(adapter.build_url(slug), self.adapter_timeout),
            )
        except Exception as e:
            logger.warning(f"{adapter.source} failed for {slug}: {type(e).__name__}: {e}")
            outcome = AdapterOutcome.failed(adapter.source, e)
        finally:
            if page is not None:
                await page.close()

        metrics.record_adapter_run(
            adapter.source,
            outcome.status,
            candidates=len(outcome.candidates),
            method="fallback" if outcome.used_fallback else "structured",
        )
        return outcome

    def _build_result(self, codes: List[str], slug: str, label: str) -> RankedResult:
        if codes:
            return RankedResult(tuple(codes), Confidence.DISCOVERED, slug)

        if self.placeholders_enabled:
            placeholders = synthesize_placeholder_codes(label, limit=self.max_codes)
            if placeholders:
                logger.warning(f"No codes discovered for {slug}, returning placeholder guesses")
                return RankedResult(tuple(placeholders), Confidence.PLACEHOLDER, slug)

        logger.info(f"No valid coupon codes found for {slug}")
        return RankedResult((), Confidence.NONE, slug)
