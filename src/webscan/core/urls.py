"""
URL helpers shared by validation, link resolution and traversal.
"""

from typing import Tuple
from urllib.parse import urlparse, urlunparse


HTTP_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host"""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
        parsed.port  # Raises ValueError on a malformed port
    except ValueError:
        return False
    return parsed.scheme.lower() in HTTP_SCHEMES and bool(parsed.hostname)


def origin_of(url: str) -> Tuple[str, str, int]:
    """
    Origin tuple (scheme, host, port) of an absolute URL.

    Default ports are made explicit so ``https://a.com`` and
    ``https://a.com:443`` compare equal.
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    port = parsed.port or DEFAULT_PORTS.get(scheme, 0)
    return scheme, (parsed.hostname or "").lower(), port


def canonical_url(url: str) -> str:
    """
    Canonical form used as the deduplication key for a URL.

    - Lowercases scheme and host
    - Drops default ports (:80, :443) and the fragment
    - Maps an empty path to "/"
    - Keeps the query string (it matters for uniqueness)
    """
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal

    port = parsed.port
    netloc = host if port is None or port == DEFAULT_PORTS.get(scheme) else f"{host}:{port}"
    if parsed.username:
        userinfo = parsed.username
        if parsed.password:
            userinfo += f":{parsed.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunparse((scheme, netloc, parsed.path or "/", parsed.params, parsed.query, ""))
