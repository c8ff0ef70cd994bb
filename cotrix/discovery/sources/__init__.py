"""Configured coupon aggregator sources."""

from cotrix.discovery.sources.coupons_com import CouponsComAdapter
from cotrix.discovery.sources.couponfollow import CouponFollowAdapter
from cotrix.discovery.sources.retailmenot import RetailMeNotAdapter

__all__ = [
    "CouponsComAdapter",
    "CouponFollowAdapter",
    "RetailMeNotAdapter",
]
