"""Application configuration using Pydantic settings."""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 3001

    # ==========================================================================
    # Browser Settings
    # ==========================================================================
    browser_mode: str = "local"  # "local" launches chromium, "remote" connects over CDP
    browser_ws_endpoint: str = "wss://chrome.browserless.io"
    bless_token: str = ""  # Remote endpoint credential (BLESS_TOKEN)
    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1366
    viewport_height: int = 768
    blocked_resource_types: list[str] = ["image", "font", "stylesheet", "media"]

    # ==========================================================================
    # Timeouts (seconds)
    # ==========================================================================
    navigation_timeout_seconds: float = 20.0
    selector_timeout_seconds: float = 15.0  # Wait for offer cards
    popup_timeout_seconds: float = 8.0  # Wait for reveal popup page
    code_holder_timeout_seconds: float = 4.0  # Wait for code inside popup
    popup_settle_delay_seconds: float = 0.5
    # Structured extraction stops here; the fallback extractor gets the rest
    extraction_budget_seconds: float = 40.0
    adapter_timeout_seconds: float = 50.0  # Hard bound per adapter invocation
    request_deadline_seconds: float = 60.0  # Hard bound per discovery request

    # ==========================================================================
    # Extraction Settings
    # ==========================================================================
    max_cards_per_source: int = 5
    max_codes_per_source: int = 3
    fallback_extraction_enabled: bool = True
    fallback_max_codes: int = 3

    # ==========================================================================
    # Ranking & Results
    # ==========================================================================
    enabled_sources: list[str] = ["coupons_com", "retailmenot", "couponfollow"]
    # Final tie-break after verified/discount, most trusted first
    source_priority: list[str] = ["coupons_com", "retailmenot", "couponfollow"]
    max_result_codes: int = 3  # 1 for single-code deployments
    placeholder_codes_enabled: bool = True
    placeholder_generic_codes: list[str] = ["WELCOME10", "SAVE15"]

    # ==========================================================================
    # Result Cache
    # ==========================================================================
    result_cache_ttl_seconds: int = 3600  # 1 hour

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_timeout_budget(self) -> "Settings":
        """Navigation and card wait must fit in the extraction budget, which must fit in the adapter timeout."""
        if self.navigation_timeout_seconds + self.selector_timeout_seconds >= self.extraction_budget_seconds:
            raise ValueError(
                "navigation_timeout_seconds + selector_timeout_seconds must be below extraction_budget_seconds"
            )
        if self.extraction_budget_seconds >= self.adapter_timeout_seconds:
            raise ValueError("extraction_budget_seconds must be below adapter_timeout_seconds")
        if self.adapter_timeout_seconds > self.request_deadline_seconds:
            raise ValueError("adapter_timeout_seconds must not exceed request_deadline_seconds")
        return self


settings = Settings()
