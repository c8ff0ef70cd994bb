"""Error taxonomy for coupon discovery.

Only InvalidURLError and BrowserLaunchError reach callers of the orchestrator.
The remaining errors are raised inside adapters and converted into empty
contributions at the adapter boundary.
"""

from typing import Optional


class DiscoveryError(Exception):
    """Base class for discovery failures."""


class InvalidURLError(DiscoveryError):
    """Input is not an absolute URL."""
    def __init__(self, url: str, reason: str = "not an absolute URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid store URL {url!r}: {reason}")


class BrowserLaunchError(DiscoveryError):
    """Browser process or remote connection could not be established."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to start browser session: {reason}")


class NavigationError(DiscoveryError):
    """Page failed to load."""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class NavigationTimeoutError(NavigationError):
    """Navigation or adapter invocation exceeded its time budget."""
    def __init__(self, url: str, timeout: float):
        self.timeout = timeout
        super().__init__(url, f"timed out after {timeout:g}s")


class SelectorNotFoundError(DiscoveryError):
    """Expected element never appeared on the page."""
    def __init__(self, selector: str, url: Optional[str] = None):
        self.selector = selector
        self.url = url
        super().__init__(
            f"Selector {selector!r} not found"
            f"{f' on {url}' if url else ''}"
        )


class PopupNotOpenedError(DiscoveryError):
    """Reveal interaction did not open a new page in time."""
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"No popup page opened within {timeout:g}s")
