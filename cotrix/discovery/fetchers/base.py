"""Base adapter interface for coupon aggregator sources."""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from playwright.async_api import ElementHandle, Error as PlaywrightError

from cotrix.config import settings
from cotrix.discovery.browser import PageContext
from cotrix.discovery.errors import DiscoveryError, NavigationTimeoutError
from cotrix.discovery.fallback import extract_fallback_codes
from cotrix.discovery.models import AdapterOutcome, CouponCandidate
from cotrix.logging_config import get_logger


class SiteAdapter(ABC):
    """
    Extraction logic for one external aggregator site.

    Subclasses implement extract(), which may raise recoverable discovery
    errors. run() wraps it: it never raises those errors, and it delegates to
    the fallback text-pattern extractor when structured extraction fails or
    comes back empty.
    """

    source: str = "unknown"
    supports_fallback: bool = True

    def __init__(
        self,
        fallback_enabled: Optional[bool] = None,
        max_cards: Optional[int] = None,
        max_codes: Optional[int] = None,
        selector_timeout: Optional[float] = None,
        extraction_budget: Optional[float] = None,
    ):
        self.fallback_enabled = (
            settings.fallback_extraction_enabled if fallback_enabled is None else fallback_enabled
        )
        self.max_cards = max_cards or settings.max_cards_per_source
        self.max_codes = max_codes or settings.max_codes_per_source
        self.selector_timeout = selector_timeout or settings.selector_timeout_seconds
        self.extraction_budget = extraction_budget or settings.extraction_budget_seconds
        self.log = get_logger(__name__, adapter=self.source)

    @abstractmethod
    def build_url(self, slug: str) -> str:
        """Source page listing offers for a store slug."""

    @abstractmethod
    async def extract(self, page: PageContext, slug: str) -> List[CouponCandidate]:
        """
        Structured extraction of candidates from the source.

        Raises:
            NavigationError: If the source page did not load
            SelectorNotFoundError: If no offer cards appeared
        """

    async def run(self, page: PageContext, slug: str) -> AdapterOutcome:
        """
        Extract candidates for slug, falling back to text patterns when needed.

        Structured extraction is cut off after extraction_budget seconds so the
        fallback still runs inside the caller's adapter timeout.
        """
        error: Optional[Exception] = None
        candidates: List[CouponCandidate] = []
        try:
            candidates = await asyncio.wait_for(self.extract(page, slug), timeout=self.extraction_budget)
        except asyncio.TimeoutError:
            error = NavigationTimeoutError(self.build_url(slug), self.extraction_budget)
            self.log.info(f"Structured extraction for {slug} ran out of time after {self.extraction_budget:g}s")
        except (DiscoveryError, PlaywrightError) as e:
            error = e
            self.log.info(f"Structured extraction failed for {slug}: {type(e).__name__}: {e}")

        if candidates:
            return AdapterOutcome(self.source, candidates[: self.max_codes], error)

        if not (self.supports_fallback and self.fallback_enabled):
            return AdapterOutcome(self.source, [], error)

        fallback = await self._fallback(page)
        if fallback:
            self.log.info(f"Fallback found {len(fallback)} codes for {slug}")
        return AdapterOutcome(self.source, fallback, error, used_fallback=bool(fallback))

    async def _fallback(self, page: PageContext) -> List[CouponCandidate]:
        if page.closed:
            return []
        try:
            texts = await page.text_nodes()
        except PlaywrightError as e:
            self.log.debug(f"Could not read page text for fallback: {e}")
            return []
        return extract_fallback_codes(texts, self.source, limit=settings.fallback_max_codes)

    # ------------------------------------------------------------------
    # Element helpers shared by the extraction shapes
    # ------------------------------------------------------------------

    @staticmethod
    async def _text_in(element: ElementHandle, selector: Optional[str]) -> Optional[str]:
        """Stripped inner text of the first match under element, None if absent."""
        if not selector:
            return None
        try:
            child = await element.query_selector(selector)
            if child is None:
                return None
            text = await child.inner_text()
        except PlaywrightError:
            return None
        return text.strip() if text else None

    @staticmethod
    async def _has(element: ElementHandle, selector: Optional[str]) -> bool:
        if not selector:
            return False
        try:
            return await element.query_selector(selector) is not None
        except PlaywrightError:
            return False

    async def _label_matches(
        self,
        element: ElementHandle,
        selector: Optional[str],
        needle: str,
    ) -> bool:
        """True when the label under selector mentions needle (no selector: always)."""
        if not selector:
            return True
        label = await self._text_in(element, selector)
        return bool(label) and needle.lower() in label.lower()

    async def _read_expiry(self, element: ElementHandle, selector: Optional[str]) -> Optional[str]:
        text = await self._text_in(element, selector)
        if not text:
            return None
        text = text.replace("Expires:", "").replace("Expires", "").strip()
        return text or None
