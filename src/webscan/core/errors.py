"""
Error taxonomy shared by every WebScan component.

Errors local to one page or one link are absorbed and recorded by the
caller; only validation failures and unexpected internal failures end a
whole tool invocation.
"""

from typing import Any, Optional


class WebScanError(Exception):
    """Base exception for WebScan errors"""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(WebScanError):
    """Raised when a request carries malformed input (URL, pattern, bounds)"""
    pass


class FetchError(WebScanError):
    """Raised when a page cannot be retrieved (network, timeout, non-2xx)"""

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class LinkResolutionError(WebScanError):
    """Raised when an href cannot be resolved to an absolute http(s) URL"""

    def __init__(self, href: str, reason: str):
        super().__init__(f"Cannot resolve href {href!r}: {reason}")
        self.href = href
        self.reason = reason


class NotFoundError(WebScanError):
    """Raised when requested content (e.g. a CSS selector) yields nothing"""
    pass


class ServiceError(WebScanError):
    """Raised when a tool invocation fails as a whole"""
    pass
