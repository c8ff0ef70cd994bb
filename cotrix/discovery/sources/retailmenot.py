"""RetailMeNot source: codes are printed in the offer strip."""

from cotrix.discovery.fetchers.direct_dom import DirectDomAdapter


class RetailMeNotAdapter(DirectDomAdapter):
    """Read RetailMeNot offer cards for a store's .com page."""

    source = "retailmenot"

    def __init__(self, **kwargs):
        super().__init__(
            source=self.source,
            url_template="https://www.retailmenot.com/view/{slug}.com",
            card_selector='[data-testid="offer-card"]',
            code_selector='[data-testid="offer-code"]',
            description_selector='[data-testid="offer-title"]',
            code_indicator_selector='[data-testid="offer-type"]',
            code_indicator_text="code",
            verified_selector='[data-testid="verified-badge"]',
            expiry_selector='[data-testid="offer-expiration"]',
            **kwargs,
        )
