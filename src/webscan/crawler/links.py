"""
Link Resolver - Anchor enumeration, href resolution and origin scoping.

Turns a parsed document into absolute, fragment-free link targets. Each href
yields a tagged outcome (resolved, skipped or invalid) so one malformed link
never aborts extraction for the rest of the page.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin

import structlog

from ..core.errors import LinkResolutionError
from ..core.urls import is_http_url


NO_TEXT_PLACEHOLDER = "[No text]"

# hrefs that never point at another document
NON_NAVIGATIONAL_PREFIXES = ("#", "mailto:", "tel:")


logger = structlog.get_logger(__name__)


class HrefKind(Enum):
    """Outcome of resolving a single href"""
    RESOLVED = "resolved"
    SKIPPED = "skipped"
    INVALID = "invalid"


@dataclass(frozen=True)
class HrefOutcome:
    """Per-link resolution result"""
    kind: HrefKind
    href: str
    url: Optional[str] = None  # Absolute URL, only when RESOLVED
    reason: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.kind is HrefKind.RESOLVED


@dataclass(frozen=True)
class LinkRecord:
    """A discovered hyperlink and its anchor text"""
    url: str
    text: str = NO_TEXT_PLACEHOLDER

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "text": self.text}


def resolve_url(href: str, base_url: str) -> str:
    """
    Resolve an href against its source page.

    Args:
        href: Raw href attribute value
        base_url: URL of the page the href was found on

    Returns:
        Absolute http(s) URL without fragment

    Raises:
        LinkResolutionError: If the result is not an absolute http(s) URL
    """
    try:
        absolute, _ = urldefrag(urljoin(base_url, href))
    except ValueError as e:
        raise LinkResolutionError(href, str(e)) from e

    if not is_http_url(absolute):
        raise LinkResolutionError(href, "not an absolute http(s) URL")

    return absolute


def resolve_href(href: Optional[str], base_url: str) -> HrefOutcome:
    """Classify and resolve one href without raising"""
    href = (href or "").strip()

    if not href or href.lower().startswith(NON_NAVIGATIONAL_PREFIXES):
        return HrefOutcome(HrefKind.SKIPPED, href, reason="non-navigational href")

    try:
        return HrefOutcome(HrefKind.RESOLVED, href, url=resolve_url(href, base_url))
    except LinkResolutionError as e:
        return HrefOutcome(HrefKind.INVALID, href, reason=e.reason)


def anchor_text(element) -> str:
    """Whitespace-collapsed anchor text, or the placeholder when empty"""
    text = " ".join(element.get_text(" ", strip=True).split())
    return text or NO_TEXT_PLACEHOLDER


def iter_anchors(document, base_url: Optional[str] = None) -> Iterator[Tuple[HrefOutcome, str]]:
    """
    Yield (outcome, anchor text) for every ``<a href>`` in document order.

    Args:
        document: Fetched Document (anything exposing ``soup`` and ``url``)
        base_url: URL to resolve against (defaults to the document URL)
    """
    base = base_url or document.url
    for element in document.soup.find_all("a", href=True):
        yield resolve_href(element.get("href"), base), anchor_text(element)


def extract_links(document, source_url: Optional[str] = None) -> List[LinkRecord]:
    """
    Extract the distinct outbound links of a page.

    Skipped and unresolvable hrefs are dropped. A URL appearing twice keeps
    the text of its first anchor.

    Args:
        document: Fetched Document
        source_url: URL to resolve relative hrefs against

    Returns:
        LinkRecords in document order
    """
    records: Dict[str, LinkRecord] = {}
    invalid = 0

    for outcome, text in iter_anchors(document, source_url):
        if outcome.kind is HrefKind.INVALID:
            invalid += 1
            logger.debug("href_unresolvable", href=outcome.href, reason=outcome.reason)
            continue
        if not outcome.resolved or outcome.url in records:
            continue
        records[outcome.url] = LinkRecord(url=outcome.url, text=text)

    logger.debug(
        "links_extracted",
        url=source_url or document.url,
        count=len(records),
        invalid=invalid,
    )
    return list(records.values())
