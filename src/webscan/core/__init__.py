"""
Core module - Configuration, errors, schemas and logging.

This package holds the pieces shared by every tool. The tool facade lives
in ``webscan.core.toolkit`` and is imported from there directly.
"""

from .errors import (
    WebScanError,
    ValidationError,
    FetchError,
    LinkResolutionError,
    NotFoundError,
    ServiceError,
)
from .config import WebScanConfig, MAX_CRAWL_DEPTH
from .log_config import configure_logging
from .schemas import (
    CrawlSiteArgs,
    GenerateSitemapArgs,
    CheckLinksArgs,
    ExtractLinksArgs,
    FindPatternsArgs,
    FetchPageArgs,
    parse_args,
)


__all__ = [
    # Errors
    "WebScanError",
    "ValidationError",
    "FetchError",
    "LinkResolutionError",
    "NotFoundError",
    "ServiceError",
    # Configuration
    "WebScanConfig",
    "MAX_CRAWL_DEPTH",
    "configure_logging",
    # Schemas
    "CrawlSiteArgs",
    "GenerateSitemapArgs",
    "CheckLinksArgs",
    "ExtractLinksArgs",
    "FindPatternsArgs",
    "FetchPageArgs",
    "parse_args",
]
