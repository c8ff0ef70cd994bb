"""Direct-DOM extraction for sources that print codes inside offer cards."""

from typing import List, Optional

from playwright.async_api import ElementHandle, Error as PlaywrightError

from cotrix.discovery.browser import PageContext
from cotrix.discovery.fetchers.base import SiteAdapter
from cotrix.discovery.models import CouponCandidate, parse_discount_percent
from cotrix.discovery.patterns import is_code_shaped, normalize_code


class DirectDomAdapter(SiteAdapter):
    """Reads codes straight from offer cards on the source page."""

    def __init__(
        self,
        source: str,
        url_template: str,
        card_selector: str,
        code_selector: Optional[str] = None,
        code_attribute: Optional[str] = None,
        description_selector: str = "h3",
        code_indicator_selector: Optional[str] = None,
        code_indicator_text: str = "code",
        verified_selector: Optional[str] = None,
        expiry_selector: Optional[str] = None,
        **kwargs,
    ):
        """
        Initialize a direct-DOM adapter.

        Args:
            source: Source identifier
            url_template: Source URL with a {slug} placeholder
            card_selector: CSS selector for one offer card
            code_selector: Selector under the card holding the code
                (None reads the card itself)
            code_attribute: Read the code from this attribute instead of inner text
            description_selector: Selector under the card for offer text
            code_indicator_selector: Label marking the card as a code offer
                (None treats every card as one)
            code_indicator_text: Text the indicator label must contain
            verified_selector: Badge present on verified offers
            expiry_selector: Element holding expiry text
        """
        self.source = source
        self.url_template = url_template
        self.card_selector = card_selector
        self.code_selector = code_selector
        self.code_attribute = code_attribute
        self.description_selector = description_selector
        self.code_indicator_selector = code_indicator_selector
        self.code_indicator_text = code_indicator_text
        self.verified_selector = verified_selector
        self.expiry_selector = expiry_selector
        super().__init__(**kwargs)

    def build_url(self, slug: str) -> str:
        return self.url_template.format(slug=slug)

    async def extract(self, page: PageContext, slug: str) -> List[CouponCandidate]:
        url = self.build_url(slug)
        await page.goto(url)
        await page.wait_for(self.card_selector, timeout=self.selector_timeout)

        cards = await page.query_all(self.card_selector)
        self.log.debug(f"Found {len(cards)} offer cards on {url}")

        candidates: List[CouponCandidate] = []
        for card in cards[: self.max_cards]:
            try:
                candidate = await self._read_card(card)
            except PlaywrightError as e:
                self.log.debug(f"Skipping unreadable card: {e}")
                continue
            if candidate:
                candidates.append(candidate)
            if len(candidates) >= self.max_codes:
                break
        return candidates

    async def _read_card(self, card: ElementHandle) -> Optional[CouponCandidate]:
        description = await self._text_in(card, self.description_selector) or ""

        if not await self._label_matches(card, self.code_indicator_selector, self.code_indicator_text):
            self.log.debug(f"Card {description[:60]!r} is not a code offer, skipping")
            return None

        code = normalize_code(await self._read_code(card))
        if not is_code_shaped(code):
            self.log.debug(f"Card {description[:60]!r} has no usable code ({code!r})")
            return None

        return CouponCandidate(
            code=code,
            source=self.source,
            description=description,
            verified=await self._has(card, self.verified_selector),
            discount_percent=parse_discount_percent(description),
            expiry=await self._read_expiry(card, self.expiry_selector),
        )

    async def _read_code(self, card: ElementHandle) -> Optional[str]:
        holder = card
        if self.code_selector:
            holder = await card.query_selector(self.code_selector)
            if holder is None:
                return None
        if self.code_attribute:
            return await holder.get_attribute(self.code_attribute)
        return await holder.inner_text()
