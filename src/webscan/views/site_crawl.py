"""
Site Crawl - URL list view over a traversal.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..crawler.traversal import CrawlError, TraversalEngine
from .base import ToolService


@dataclass
class CrawlResult:
    """Unique URLs found by a crawl plus the pages that failed"""
    crawled_urls: List[str]
    total_urls: int
    errors: List[CrawlError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crawled_urls": list(self.crawled_urls),
            "total_urls": self.total_urls,
            "errors": [error.to_dict() for error in self.errors],
        }


class CrawlSiteService(ToolService):
    """
    Crawls a site and returns every same-origin URL found.

    Example:
        >>> service = CrawlSiteService(engine)
        >>> result = await service.crawl_website("https://example.com", max_depth=2)
        >>> result.total_urls
    """

    tool_name = "crawl-site"

    def __init__(self, engine: TraversalEngine):
        super().__init__()
        self.engine = engine

    async def crawl_website(self, start_url: str, max_depth: int) -> CrawlResult:
        """
        Crawl a website starting from a URL up to a depth.

        Args:
            start_url: URL to begin crawling from
            max_depth: Maximum link hops from the start URL

        Returns:
            CrawlResult with unique URLs in discovery order

        Raises:
            ValidationError: If the URL or depth is invalid
            ServiceError: If crawling fails unexpectedly
        """
        self.invocations += 1
        self.logger.info("crawl_started", url=start_url, max_depth=max_depth)

        try:
            traversal = await self.engine.traverse(start_url, max_depth)
        except Exception as e:
            raise self.service_failure(
                e, f"Crawling failed for {start_url}", url=start_url, max_depth=max_depth
            ) from e

        urls = list(traversal.urls)

        result = CrawlResult(
            crawled_urls=urls,
            total_urls=len(urls),
            errors=list(traversal.errors),
        )

        self.logger.info(
            "crawl_complete",
            url=start_url,
            total_urls=result.total_urls,
            errors=len(result.errors),
        )
        return result
