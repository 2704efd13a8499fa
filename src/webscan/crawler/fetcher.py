"""
Page Fetcher - Single-shot HTTP retrieval and HTML parsing.

One GET per call through a shared aiohttp session, bounded by a timeout and
an optional concurrency semaphore. Failures surface as FetchError; there is
no retry.
"""

import asyncio
import contextlib
from dataclasses import dataclass
from functools import cached_property
from typing import Optional

import aiohttp
import structlog
from bs4 import BeautifulSoup

from ..core.config import WebScanConfig
from ..core.errors import FetchError


HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


@dataclass
class Document:
    """A fetched page and its lazily parsed DOM"""
    url: str  # Final URL after redirects
    html: str
    status: int = 200
    content_type: str = "text/html"

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "lxml")

    @property
    def is_html(self) -> bool:
        content_type = self.content_type.lower()
        return any(t in content_type for t in HTML_CONTENT_TYPES)


def create_session(config: WebScanConfig) -> aiohttp.ClientSession:
    """
    Create the HTTP session shared by fetcher and prober.

    Must be called from inside a running event loop.
    """
    return aiohttp.ClientSession(headers={"User-Agent": config.user_agent})


def request_slot(semaphore: Optional[asyncio.Semaphore]):
    """Async context bounding concurrent outbound requests"""
    return semaphore if semaphore is not None else contextlib.nullcontext()


class PageFetcher:
    """
    Fetches pages over HTTP and parses them into Documents.

    Example:
        >>> fetcher = PageFetcher(session, timeout=10.0)
        >>> document = await fetcher.fetch("https://example.com")
        >>> document.soup.title
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = 10.0,
        semaphore: Optional[asyncio.Semaphore] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            session: Shared aiohttp session (carries the User-Agent header)
            timeout: Total request timeout in seconds
            semaphore: Optional bound on concurrent requests
        """
        self.session = session
        self.timeout = timeout
        self.semaphore = semaphore

        self.logger = structlog.get_logger(__name__)

    async def fetch(self, url: str) -> Document:
        """
        Retrieve a page.

        Args:
            url: Absolute http(s) URL

        Returns:
            Document with the response body

        Raises:
            FetchError: On network failure, timeout or non-2xx status
        """
        self.logger.debug("fetching_page", url=url)

        html = ""
        try:
            async with request_slot(self.semaphore):
                async with self.session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                    allow_redirects=True,
                ) as response:
                    status = response.status
                    content_type = response.headers.get("Content-Type", "")
                    final_url = str(response.url)
                    if 200 <= status < 300:
                        html = await response.text(errors="replace")

        except asyncio.TimeoutError as e:
            self.logger.warning("page_fetch_timeout", url=url, timeout=self.timeout)
            raise FetchError(url, f"Timed out after {self.timeout}s") from e

        except aiohttp.ClientError as e:
            reason = str(e) or e.__class__.__name__
            self.logger.warning("page_fetch_error", url=url, error=reason)
            raise FetchError(url, reason) from e

        if not 200 <= status < 300:
            self.logger.warning("page_fetch_bad_status", url=url, status=status)
            raise FetchError(url, f"Request failed with status code {status}", status=status)

        document = Document(url=final_url, html=html, status=status, content_type=content_type)

        # Some servers mislabel HTML, so this is not fatal
        if not document.is_html:
            self.logger.warning(
                "unexpected_content_type",
                url=url,
                content_type=content_type or None,
            )

        return document
