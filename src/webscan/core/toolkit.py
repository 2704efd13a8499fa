"""
WebScan Toolkit - Entry point tying configuration, HTTP and tool views together.

The toolkit owns the one aiohttp session used by every tool, validates raw
arguments through the request schemas and dispatches to the tool services.
Results are returned as plain JSON-ready values (or XML/Markdown strings).

Usage:
    async with WebScanToolkit(config) as toolkit:
        result = await toolkit.crawl("https://example.com", max_depth=2)
        sitemap = await toolkit.sitemap("https://example.com", limit=100)
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from ..crawler import PageFetcher, ReachabilityProber, TraversalEngine, create_session
from ..views import (
    CheckLinksService,
    CrawlSiteService,
    ExtractLinksService,
    FetchPageService,
    FindPatternsService,
    GenerateSitemapService,
)
from .config import WebScanConfig
from .errors import ServiceError
from .schemas import (
    CheckLinksArgs,
    CrawlSiteArgs,
    ExtractLinksArgs,
    FetchPageArgs,
    FindPatternsArgs,
    GenerateSitemapArgs,
    parse_args,
)


class WebScanToolkit:
    """
    Facade over all WebScan tools.

    Example:
        >>> toolkit = WebScanToolkit()
        >>> await toolkit.initialize()
        >>> links = await toolkit.check_links("https://example.com")
        >>> await toolkit.close()
    """

    def __init__(self, config: Optional[WebScanConfig] = None):
        """
        Initialize the toolkit.

        Args:
            config: Timeouts, user agent and concurrency settings
        """
        self.config = config or WebScanConfig()

        # Components (created in initialize, inside the event loop)
        self.session: Optional[aiohttp.ClientSession] = None
        self.fetcher: Optional[PageFetcher] = None
        self.prober: Optional[ReachabilityProber] = None
        self.engine: Optional[TraversalEngine] = None

        self.crawl_service: Optional[CrawlSiteService] = None
        self.sitemap_service: Optional[GenerateSitemapService] = None
        self.link_check_service: Optional[CheckLinksService] = None
        self.extract_links_service: Optional[ExtractLinksService] = None
        self.find_patterns_service: Optional[FindPatternsService] = None
        self.fetch_page_service: Optional[FetchPageService] = None

        self.logger = structlog.get_logger(__name__)

    async def initialize(self):
        """Create the HTTP session and wire the services"""
        if self.session is not None:
            return

        self.logger.info(
            "toolkit_initializing",
            fetch_timeout=self.config.fetch_timeout,
            probe_timeout=self.config.probe_timeout,
            max_concurrent_requests=self.config.max_concurrent_requests,
        )

        self.session = create_session(self.config)
        semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

        self.fetcher = PageFetcher(self.session, timeout=self.config.fetch_timeout, semaphore=semaphore)
        self.prober = ReachabilityProber(self.session, timeout=self.config.probe_timeout, semaphore=semaphore)
        self.engine = TraversalEngine(self.fetcher, crawl_timeout=self.config.crawl_timeout)

        self.crawl_service = CrawlSiteService(self.engine)
        self.sitemap_service = GenerateSitemapService(self.engine)
        self.link_check_service = CheckLinksService(self.fetcher, self.prober)
        self.extract_links_service = ExtractLinksService(self.fetcher)
        self.find_patterns_service = FindPatternsService(self.fetcher)
        self.fetch_page_service = FetchPageService(self.fetcher)

        self.logger.info("toolkit_initialized")

    async def close(self):
        """Close the HTTP session"""
        if self.session is not None:
            await self.session.close()
            self.session = None
            self.logger.info("toolkit_closed")

    async def __aenter__(self) -> "WebScanToolkit":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _require_initialized(self):
        if self.session is None:
            raise ServiceError("Toolkit is not initialized; call initialize() first.")

    async def crawl(self, url: str, max_depth: Optional[int] = None) -> Dict[str, Any]:
        """
        Crawl a site and list its same-origin URLs.

        Returns:
            Dict with ``crawled_urls``, ``total_urls`` and ``errors``
        """
        args = parse_args(CrawlSiteArgs, url=url, max_depth=max_depth)
        self._require_initialized()

        result = await self.crawl_service.crawl_website(args.url, args.max_depth)
        return result.to_dict()

    async def sitemap(
        self,
        url: str,
        max_depth: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> str:
        """
        Crawl a site and render an XML sitemap.

        Returns:
            Sitemap XML document
        """
        args = parse_args(GenerateSitemapArgs, url=url, max_depth=max_depth, limit=limit)
        self._require_initialized()

        result = await self.sitemap_service.generate_sitemap(args.url, args.max_depth, args.limit)
        return result.sitemap_xml

    async def check_links(self, url: str) -> List[Dict[str, str]]:
        """
        Check every link on a page.

        Returns:
            List of ``{"url", "status"}`` dicts
        """
        args = parse_args(CheckLinksArgs, url=url)
        self._require_initialized()

        results = await self.link_check_service.check_links_on_page(args.url)
        return [result.to_dict() for result in results]

    async def extract_links(
        self,
        url: str,
        base_url: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, str]]:
        """
        Extract the distinct links of a page.

        Returns:
            List of ``{"url", "text"}`` dicts
        """
        args = parse_args(ExtractLinksArgs, url=url, base_url=base_url, limit=limit)
        self._require_initialized()

        links = await self.extract_links_service.extract_links_from_page(
            args.url, base_url=args.base_url, limit=args.limit
        )
        return [link.to_dict() for link in links]

    async def find_patterns(self, url: str, pattern: str) -> List[Dict[str, str]]:
        """
        Find links on a page whose URL matches a regex.

        Returns:
            List of ``{"url", "text"}`` dicts
        """
        args = parse_args(FindPatternsArgs, url=url, pattern=pattern)
        self._require_initialized()

        links = await self.find_patterns_service.find_links_by_pattern(args.url, args.pattern)
        return [link.to_dict() for link in links]

    async def fetch_page(self, url: str, selector: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch a page and convert it to Markdown.

        Returns:
            Dict with ``markdown_content``, ``source_url`` and ``selector_used``
        """
        args = parse_args(FetchPageArgs, url=url, selector=selector)
        self._require_initialized()

        result = await self.fetch_page_service.fetch_and_convert_to_markdown(
            args.url, selector=args.selector
        )
        return result.to_dict()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get invocation statistics of every tool.

        Returns:
            Dictionary keyed by tool name
        """
        services = [
            self.crawl_service,
            self.sitemap_service,
            self.link_check_service,
            self.extract_links_service,
            self.find_patterns_service,
            self.fetch_page_service,
        ]
        stats: Dict[str, Any] = {
            service.tool_name: service.get_statistics()
            for service in services
            if service is not None
        }
        if self.engine is not None:
            stats["traversal"] = self.engine.get_stats()
        return stats
