"""Heuristic text-pattern extraction used when structured extraction fails."""

import logging
from typing import Iterable, List

from selectolax.lexbor import LexborHTMLParser

from cotrix.discovery.models import CouponCandidate
from cotrix.discovery.patterns import is_code_shaped

logger = logging.getLogger(__name__)

FALLBACK_DESCRIPTION = "Fallback code"
TEXT_NODE_SELECTOR = "h3, span, div"


def collect_text_nodes(html: str, selector: str = TEXT_NODE_SELECTOR) -> List[str]:
    """Return the own text of every node matching selector in a page's HTML."""
    if not html:
        return []
    try:
        parser = LexborHTMLParser(html)
        return [node.text(deep=False) for node in parser.css(selector)]
    except Exception as e:
        logger.debug(f"Could not parse page HTML for fallback extraction: {e}")
        return []


def extract_fallback_codes(
    texts: Iterable[str],
    source: str,
    limit: int = 3,
) -> List[CouponCandidate]:
    """
    Apply the code-shape grammar to each trimmed text node.

    Args:
        texts: Visible text nodes of a loaded page
        source: Adapter id credited with the candidates
        limit: Maximum number of candidates returned

    Returns:
        Up to limit unverified candidates in page order, without duplicates
    """
    candidates: List[CouponCandidate] = []
    seen = set()
    try:
        for text in texts:
            if len(candidates) >= limit:
                break
            value = (text or "").strip()
            if value in seen or not is_code_shaped(value):
                continue
            seen.add(value)
            candidates.append(
                CouponCandidate(code=value, source=source, description=FALLBACK_DESCRIPTION)
            )
    except Exception as e:
        logger.debug(f"Fallback extraction stopped early for {source}: {e}")
    return candidates
