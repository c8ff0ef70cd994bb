"""Data types shared by adapters, aggregation and the orchestrator."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from cotrix.discovery.patterns import normalize_code

_PERCENT_RE = re.compile(r"(\d{1,3})\s*%")


class Confidence(str, Enum):
    """How a ranked result was obtained."""

    DISCOVERED = "discovered"
    PLACEHOLDER = "placeholder"
    NONE = "none"


@dataclass(frozen=True)
class CouponCandidate:
    """An unranked discount code extracted from one source."""

    code: str
    source: str
    description: str = ""
    verified: bool = False
    discount_percent: int = 0
    expiry: Optional[str] = None

    def __post_init__(self):
        code = normalize_code(self.code)
        if not code:
            raise ValueError("CouponCandidate.code must not be empty")
        object.__setattr__(self, "code", code)
        object.__setattr__(self, "discount_percent", max(0, min(100, int(self.discount_percent))))


@dataclass(frozen=True)
class RankedResult:
    """Final result for one request: up to N bare codes plus their provenance."""

    codes: tuple[str, ...] = ()
    confidence: Confidence = Confidence.NONE
    slug: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.confidence is Confidence.PLACEHOLDER

    def as_list(self) -> list[str]:
        return list(self.codes)


@dataclass
class AdapterOutcome:
    """Result of one adapter invocation: candidates or a typed failure."""

    source: str
    candidates: list[CouponCandidate] = field(default_factory=list)
    error: Optional[Exception] = None
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.error is not None and not self.candidates:
            return "error"
        return "success" if self.candidates else "empty"

    @classmethod
    def failed(cls, source: str, error: Exception) -> "AdapterOutcome":
        return cls(source=source, error=error)


def parse_discount_percent(text: Optional[str]) -> int:
    """Pull the first 'NN%' figure out of offer text, 0 if there is none."""
    if not text:
        return 0
    match = _PERCENT_RE.search(text)
    if not match:
        return 0
    return max(0, min(100, int(match.group(1))))
