"""Reveal-and-popup extraction for sources that hide codes behind a click."""

import asyncio
from typing import List, Optional

from playwright.async_api import ElementHandle, Error as PlaywrightError

from cotrix.config import settings
from cotrix.discovery.browser import PageContext
from cotrix.discovery.errors import PopupNotOpenedError, SelectorNotFoundError
from cotrix.discovery.fetchers.base import SiteAdapter
from cotrix.discovery.models import CouponCandidate, parse_discount_percent
from cotrix.discovery.patterns import is_code_shaped, normalize_code


class RevealPopupAdapter(SiteAdapter):
    """
    Clicks each card's reveal control and reads the code from the popup page.

    The popup is closed after every card whether or not a code was read,
    followed by a short settle delay before the next card is touched.
    """

    def __init__(
        self,
        source: str,
        url_template: str,
        card_selector: str,
        reveal_selector: str,
        code_holder_selector: str,
        label_selector: Optional[str] = None,
        label_text: str = "Code",
        description_selector: str = "h3",
        verified_selector: Optional[str] = None,
        verified_text: Optional[str] = None,
        expiry_selector: Optional[str] = None,
        popup_timeout: Optional[float] = None,
        code_holder_timeout: Optional[float] = None,
        settle_delay: Optional[float] = None,
        **kwargs,
    ):
        self.source = source
        self.url_template = url_template
        self.card_selector = card_selector
        self.reveal_selector = reveal_selector
        self.code_holder_selector = code_holder_selector
        self.label_selector = label_selector
        self.label_text = label_text
        self.description_selector = description_selector
        self.verified_selector = verified_selector
        self.verified_text = verified_text
        self.expiry_selector = expiry_selector
        self.popup_timeout = popup_timeout or settings.popup_timeout_seconds
        self.code_holder_timeout = code_holder_timeout or settings.code_holder_timeout_seconds
        self.settle_delay = (
            settings.popup_settle_delay_seconds if settle_delay is None else settle_delay
        )
        super().__init__(**kwargs)

    def build_url(self, slug: str) -> str:
        return self.url_template.format(slug=slug)

    async def extract(self, page: PageContext, slug: str) -> List[CouponCandidate]:
        loop = asyncio.get_running_loop()
        started = loop.time()
        url = self.build_url(slug)
        await page.goto(url)
        await page.wait_for(self.card_selector, timeout=self.selector_timeout)

        cards = await page.query_all(self.card_selector)
        self.log.info(f"Found {len(cards)} voucher cards on {url}")

        candidates: List[CouponCandidate] = []
        for card in cards[: self.max_cards]:
            if loop.time() - started + self._card_cost > self.extraction_budget:
                self.log.info(f"Extraction budget nearly spent, stopping with {len(candidates)} codes")
                break
            try:
                candidate = await self._handle_card(page, card)
            except PopupNotOpenedError as e:
                self.log.info(f"Skipping card: {e}")
                continue
            except (SelectorNotFoundError, PlaywrightError) as e:
                self.log.debug(f"Error processing card: {type(e).__name__}: {e}")
                continue
            if candidate:
                candidates.append(candidate)
            if len(candidates) >= self.max_codes:
                break

        self.log.info(f"Collected {len(candidates)} codes from {url}")
        return candidates

    @property
    def _card_cost(self) -> float:
        """Worst-case time one reveal interaction can take."""
        return self.popup_timeout + self.code_holder_timeout + self.settle_delay

    async def _handle_card(self, page: PageContext, card: ElementHandle) -> Optional[CouponCandidate]:
        description = await self._text_in(card, self.description_selector) or ""

        if not await self._label_matches(card, self.label_selector, self.label_text):
            self.log.debug(f"Card {description[:60]!r} is not a coupon code, skipping")
            return None

        button = await card.query_selector(self.reveal_selector)
        if button is None:
            self.log.debug(f"No reveal control for {description[:60]!r}, skipping")
            return None

        # Card metadata is read before the click: the reveal may re-render the list
        verified = await self._is_verified(card)
        expiry = await self._read_expiry(card, self.expiry_selector)

        popup = await page.open_popup(button.click, timeout=self.popup_timeout)
        try:
            await popup.bring_to_front()
            code = await self._read_popup_code(popup)
        finally:
            await popup.close()
            await asyncio.sleep(self.settle_delay)

        if not is_code_shaped(code):
            self.log.debug(f"Popup for {description[:60]!r} held no usable code ({code!r})")
            return None

        self.log.info(f"Extracted code {code!r} for {description[:60]!r}")
        return CouponCandidate(
            code=code,
            source=self.source,
            description=description,
            verified=verified,
            discount_percent=parse_discount_percent(description),
            expiry=expiry,
        )

    async def _read_popup_code(self, popup: PageContext) -> str:
        element = await popup.wait_for(
            self.code_holder_selector,
            timeout=self.code_holder_timeout,
            visible=True,
        )
        if element is None:
            return ""
        return normalize_code(await element.inner_text())

    async def _is_verified(self, card: ElementHandle) -> bool:
        if not self.verified_selector:
            return False
        if self.verified_text:
            return await self._label_matches(card, self.verified_selector, self.verified_text)
        return await self._has(card, self.verified_selector)
