"""
Shared fixtures: in-memory fetchers and probers for deterministic link graphs.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Union

import pytest

from webscan.core.errors import FetchError
from webscan.crawler.fetcher import Document
from webscan.crawler.prober import ReachabilityProber


def page(*hrefs: str, body: str = "") -> str:
    """Minimal HTML page linking to the given hrefs"""
    anchors = "".join(f'<a href="{href}">link {i}</a>' for i, href in enumerate(hrefs))
    return f"<html><head><title>t</title></head><body>{body}{anchors}</body></html>"


class FakeFetcher:
    """
    Fetcher serving a fixed site from memory.

    ``pages`` maps URL to HTML, to an int status (raised as FetchError) or to
    an exception instance (raised as is). Unknown URLs are 404s.
    """

    def __init__(
        self,
        pages: Dict[str, Union[str, int, Exception]],
        delay: float = 0.0,
        redirects: Optional[Dict[str, str]] = None,
    ):
        self.pages = pages
        self.delay = delay
        self.redirects = redirects or {}
        self.calls: List[str] = []

    async def fetch(self, url: str) -> Document:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)

        final_url = self.redirects.get(url, url)
        content = self.pages.get(final_url, 404)

        if isinstance(content, Exception):
            raise content
        if isinstance(content, int):
            raise FetchError(url, f"Request failed with status code {content}", status=content)

        return Document(url=final_url, html=content)


class FakeProber(ReachabilityProber):
    """Prober answering from a fixed set of reachable URLs"""

    def __init__(self, reachable: Iterable[str] = ()):
        super().__init__(session=None)
        self.reachable = set(reachable)
        self.calls: List[str] = []

    async def probe(self, url: str) -> bool:
        self.calls.append(url)
        return url in self.reachable


@pytest.fixture
def example_site():
    """The example.com site: home -> about (-> home), plus an external link"""
    return FakeFetcher({
        "https://example.com": page("/about", "https://other.com/x"),
        "https://example.com/about": page("/"),
    })
