"""CouponFollow source: the code sits in a data attribute on the offer."""

from cotrix.discovery.fetchers.direct_dom import DirectDomAdapter


class CouponFollowAdapter(DirectDomAdapter):
    """Read CouponFollow offers, which carry the code in data-code."""

    source = "couponfollow"

    def __init__(self, **kwargs):
        super().__init__(
            source=self.source,
            url_template="https://couponfollow.com/site/{slug}.com",
            card_selector="article.offer-card",
            code_selector="[data-code]",
            code_attribute="data-code",
            description_selector=".offer-title",
            code_indicator_selector=".offer-type",
            code_indicator_text="code",
            verified_selector=".verified",
            expiry_selector=".offer-expires",
            **kwargs,
        )
