"""coupons.com source: codes are revealed in a popup page."""

from cotrix.discovery.fetchers.reveal_popup import RevealPopupAdapter


class CouponsComAdapter(RevealPopupAdapter):
    """Reveal coupons.com voucher codes through the "See coupon" popup."""

    source = "coupons_com"

    def __init__(self, **kwargs):
        super().__init__(
            source=self.source,
            url_template="https://www.coupons.com/coupon-codes/{slug}",
            card_selector='[data-testid="vouchers-ui-voucher-card"]',
            reveal_selector='div[title="See coupon"]',
            code_holder_selector='[data-testid="voucherPopup-codeHolder-voucherType-code"] h4',
            label_selector='[data-element="voucher-card-labels"] div',
            label_text="Code",
            description_selector="h3",
            verified_selector='[data-element="voucher-card-labels"]',
            verified_text="Verified",
            expiry_selector='span:has-text("Expires")',
            **kwargs,
        )
