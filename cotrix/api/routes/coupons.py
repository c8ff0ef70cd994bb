"""Coupon discovery API endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from cotrix.api.deps import get_orchestrator
from cotrix.discovery.errors import BrowserLaunchError, InvalidURLError
from cotrix.discovery.orchestrator import DiscoveryOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/coupons", tags=["coupons"])


class CouponRequest(BaseModel):
    """Request body for coupon discovery."""

    url: Optional[str] = None


@router.post("", response_model=list[str])
async def find_coupons(
    body: CouponRequest,
    orchestrator: DiscoveryOrchestrator = Depends(get_orchestrator),
):
    """Return up to three discount codes for the store at body.url."""
    if not body.url:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "URL is required"})

    try:
        result = await orchestrator.discover_codes(body.url)
    except InvalidURLError as e:
        logger.info(f"Rejected coupon request: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid URL", "details": str(e)},
        )
    except BrowserLaunchError as e:
        logger.error(f"Coupon discovery failed for {body.url}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to scrape coupon codes", "details": str(e)},
        )

    return result.as_list()
