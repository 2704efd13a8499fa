"""
Tool views module.

Each service turns crawler output into the result of one tool:
- CrawlSiteService: unique same-origin URLs of a site
- GenerateSitemapService: XML sitemap of a site
- CheckLinksService: reachability of every link on a page
- FetchPageService / ExtractLinksService / FindPatternsService: single-page tools
"""

from .base import ToolService
from .site_crawl import CrawlResult, CrawlSiteService
from .sitemap import GenerateSitemapService, SitemapResult, build_sitemap_xml
from .link_check import CheckLinksService, LinkCheckResult, LinkStatus
from .page_tools import (
    ExtractLinksService,
    FetchPageResult,
    FetchPageService,
    FindPatternsService,
    html_to_markdown,
)


__all__ = [
    # Base
    "ToolService",
    # Multi-page views
    "CrawlResult",
    "CrawlSiteService",
    "GenerateSitemapService",
    "SitemapResult",
    "build_sitemap_xml",
    # Link checking
    "CheckLinksService",
    "LinkCheckResult",
    "LinkStatus",
    # Single-page tools
    "ExtractLinksService",
    "FetchPageResult",
    "FetchPageService",
    "FindPatternsService",
    "html_to_markdown",
]
