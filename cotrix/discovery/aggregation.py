"""Merge, rank and project candidates from every adapter run for a request.

Ordering rules:
1. Deduplicate by code; a verified candidate replaces an unverified one,
   otherwise the first one seen wins.
2. Sort by verified (desc), discount percent (desc), then configured source
   priority. Sources missing from the priority list rank last.
3. Keep the top N codes as bare strings.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence

from cotrix.config import settings
from cotrix.discovery.models import AdapterOutcome, CouponCandidate
from cotrix.discovery.patterns import MAX_CODE_LENGTH, is_code_shaped

logger = logging.getLogger(__name__)

PLACEHOLDER_SUFFIX = "10"


def collect_candidates(outcomes: Iterable[AdapterOutcome]) -> List[CouponCandidate]:
    """Union of candidates across outcomes; failed outcomes contribute nothing."""
    candidates: List[CouponCandidate] = []
    for outcome in outcomes:
        if outcome.error is not None and not outcome.candidates:
            logger.debug(f"{outcome.source} contributed no candidates: {outcome.error}")
            continue
        candidates.extend(outcome.candidates)
    return candidates


def merge_candidates(candidates: Iterable[CouponCandidate]) -> List[CouponCandidate]:
    """Deduplicate by upper-cased code, preferring verified candidates."""
    merged: Dict[str, CouponCandidate] = {}
    for candidate in candidates:
        key = candidate.code.upper()
        existing = merged.get(key)
        if existing is None:
            merged[key] = candidate
        elif candidate.verified and not existing.verified:
            merged[key] = candidate
    return list(merged.values())


def rank_candidates(
    candidates: Iterable[CouponCandidate],
    source_priority: Optional[Sequence[str]] = None,
) -> List[CouponCandidate]:
    """Sort merged candidates best-first."""
    priority = list(settings.source_priority if source_priority is None else source_priority)
    order = {source: index for index, source in enumerate(priority)}
    last = len(priority)

    return sorted(
        candidates,
        key=lambda c: (not c.verified, -c.discount_percent, order.get(c.source, last)),
    )


def select_top_codes(
    candidates: Iterable[CouponCandidate],
    limit: Optional[int] = None,
    source_priority: Optional[Sequence[str]] = None,
) -> List[str]:
    """Merge, rank and truncate candidates to bare code strings."""
    limit = settings.max_result_codes if limit is None else limit
    ranked = rank_candidates(merge_candidates(candidates), source_priority)
    return [candidate.code for candidate in ranked[:limit]]


def synthesize_placeholder_codes(
    store: str,
    generic_codes: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
) -> List[str]:
    """
    Deterministic last-resort guesses: <STORE>10 followed by generic codes.

    These are not discovered codes; callers flag results built from them.
    """
    generic = settings.placeholder_generic_codes if generic_codes is None else generic_codes
    limit = settings.max_result_codes if limit is None else limit

    stem = re.sub(r"[^A-Z0-9]", "", (store or "").upper())
    stem = stem[: MAX_CODE_LENGTH - len(PLACEHOLDER_SUFFIX)]

    codes: List[str] = []
    for code in [f"{stem}{PLACEHOLDER_SUFFIX}", *generic]:
        code = code.strip().upper()
        if is_code_shaped(code) and code not in codes:
            codes.append(code)
    return codes[:limit]
