"""Code-shape grammar for discount codes.

A string is code-shaped when it is 4-15 characters long, matches at least one
of the accepted shapes and is not a markup/keyword token picked up by naive
text scraping.
"""

import re
from typing import Optional

MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 15

CODE_PATTERNS = [
    re.compile(r"^[A-Z0-9]+(?:-[A-Z0-9]+)*$"),  # Alphanumeric, single inner hyphens allowed
    re.compile(r"^SAVE\d+$"),
    re.compile(r"^NEW\d+$"),
    re.compile(r"^\d+OFF$"),
    re.compile(r"^[A-Z]+\d+[A-Z]*$"),
    re.compile(r"^[A-Z]{2,}\d{2,}$"),
]

BLACKLISTED_TOKENS = frozenset({
    "DOCTYPE",
    "HTTP",
    "HTTPS",
    "HTML",
    "HEAD",
    "BODY",
    "SCRIPT",
    "STYLE",
    "META",
    "LINK",
    "DIV",
    "SPAN",
})


def normalize_code(raw: Optional[str]) -> str:
    """Trim and upper-case a code read from a structured element."""
    if not raw:
        return ""
    return raw.strip().upper()


def is_code_shaped(text: Optional[str]) -> bool:
    """
    Check a candidate string against the code-shape grammar.

    The check is case-sensitive: free text such as "Shop now" or "Menu" is
    rejected. Callers holding structured reads should pass them through
    normalize_code() first.
    """
    if not text:
        return False
    if not MIN_CODE_LENGTH <= len(text) <= MAX_CODE_LENGTH:
        return False
    if text in BLACKLISTED_TOKENS:
        return False
    return any(pattern.match(text) for pattern in CODE_PATTERNS)
