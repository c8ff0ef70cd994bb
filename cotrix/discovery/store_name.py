"""Derive store identifiers from a store's public URL."""

import re
from urllib.parse import urlparse

from cotrix.discovery.errors import InvalidURLError

# Substring filter, not a whole-word filter: "shopilicious" loses its "shop" too.
_NOISE_RE = re.compile(r"(clothing|shop|store|online)", re.IGNORECASE)


def store_label(url: str) -> str:
    """
    Return the first hostname label, lowercased, with a leading www. removed.

    Raises:
        InvalidURLError: If url is not an absolute URL
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError(str(url), "URL is empty")

    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e

    if not parsed.scheme or not hostname:
        raise InvalidURLError(url)

    hostname = hostname.lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname.split(".")[0]


def normalize_store_name(url: str) -> str:
    """
    Map a store URL to the slug used in aggregator-site URLs.

    The noise words clothing/shop/store/online are removed wherever they occur,
    so https://www.examplestore.com gives "example". A label made only of noise
    words (shop.com) is kept as-is rather than collapsing to an empty slug.

    Raises:
        InvalidURLError: If url is not an absolute URL
    """
    label = store_label(url)
    return _NOISE_RE.sub("", label) or label


def hyphenless_variant(slug: str) -> str:
    """Secondary slug used for the retry pass when the primary yields nothing."""
    return slug.replace("-", "")
