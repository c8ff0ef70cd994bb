"""Adapter registry for the configured coupon sources."""

import logging
from typing import Iterable, List, Optional, Type

from cotrix.config import settings
from cotrix.discovery.fetchers.base import SiteAdapter
from cotrix.discovery.sources import CouponFollowAdapter, CouponsComAdapter, RetailMeNotAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Closed set of source adapters, keyed by source id."""

    _adapters: dict[str, Type[SiteAdapter]] = {
        "coupons_com": CouponsComAdapter,
        "retailmenot": RetailMeNotAdapter,
        "couponfollow": CouponFollowAdapter,
    }

    @classmethod
    def get_adapter(cls, source: str, **kwargs) -> SiteAdapter:
        """
        Create the adapter for a source.

        Raises:
            ValueError: If source is not registered
        """
        if source not in cls._adapters:
            raise ValueError(
                f"Unknown source: {source}. Available: {list(cls._adapters.keys())}"
            )
        return cls._adapters[source](**kwargs)

    @classmethod
    def list_sources(cls) -> list[str]:
        return list(cls._adapters.keys())

    @classmethod
    def build_enabled(cls, sources: Optional[Iterable[str]] = None, **kwargs) -> List[SiteAdapter]:
        """Instantiate the enabled sources in configured order, skipping unknown ids."""
        adapters: List[SiteAdapter] = []
        for source in settings.enabled_sources if sources is None else sources:
            try:
                adapters.append(cls.get_adapter(source, **kwargs))
            except ValueError as e:
                logger.warning(f"Ignoring configured source: {e}")
        logger.info(f"Enabled coupon sources: {[a.source for a in adapters]}")
        return adapters
