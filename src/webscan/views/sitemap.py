"""
Sitemap - XML sitemap view over a traversal.

Output follows the sitemaps.org 0.9 protocol:

    <?xml version="1.0" encoding="UTF-8"?>
    <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
      <url>
        <loc>https://example.com/</loc>
        <lastmod>2025-01-31</lastmod>
      </url>
    </urlset>

``lastmod`` is the date the crawl discovered the URL, not a server-reported
modification time.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from ..core.config import MAX_SITEMAP_LIMIT
from ..core.errors import ServiceError, ValidationError
from ..crawler.traversal import TraversalEngine
from .base import ToolService


SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass
class SitemapResult:
    """Generated sitemap document and the number of entries in it"""
    sitemap_xml: str
    url_count: int


def build_sitemap_xml(
    urls: Iterable[str],
    discovered_at: Optional[Mapping[str, datetime]] = None,
) -> str:
    """
    Serialize URLs into a sitemap document.

    Args:
        urls: URLs in output order
        discovered_at: Discovery time per URL (defaults to now)

    Returns:
        Sitemap XML string with declaration
    """
    discovered_at = discovered_at or {}
    now = datetime.now(timezone.utc)

    urlset = ET.Element("urlset", {"xmlns": SITEMAP_NAMESPACE})
    for url in urls:
        entry = ET.SubElement(urlset, "url")
        ET.SubElement(entry, "loc").text = url
        ET.SubElement(entry, "lastmod").text = discovered_at.get(url, now).date().isoformat()

    ET.indent(urlset, space="  ")
    return XML_DECLARATION + ET.tostring(urlset, encoding="unicode") + "\n"


class GenerateSitemapService(ToolService):
    """
    Crawls a site and renders the discovered URLs as an XML sitemap.

    Example:
        >>> service = GenerateSitemapService(engine)
        >>> result = await service.generate_sitemap("https://example.com", 2, 100)
        >>> print(result.sitemap_xml)
    """

    tool_name = "generate-site-map"

    def __init__(self, engine: TraversalEngine):
        super().__init__()
        self.engine = engine

    async def generate_sitemap(self, start_url: str, max_depth: int, limit: int) -> SitemapResult:
        """
        Generate an XML sitemap by crawling a website.

        Args:
            start_url: URL to begin crawling from
            max_depth: Maximum link hops used to discover pages
            limit: Maximum number of URLs in the sitemap

        Returns:
            SitemapResult with the XML document and entry count

        Raises:
            ValidationError: If arguments are invalid
            ServiceError: If crawling or XML generation fails
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_SITEMAP_LIMIT:
            raise ValidationError(
                f"Invalid input: limit must be an integer between 1 and {MAX_SITEMAP_LIMIT}."
            )

        self.invocations += 1
        self.logger.info("sitemap_started", url=start_url, max_depth=max_depth, limit=limit)

        try:
            traversal = await self.engine.traverse(start_url, max_depth)

            urls = list(traversal.urls[:limit])
            self.logger.debug(
                "sitemap_urls_selected",
                discovered=len(traversal.urls),
                included=len(urls),
            )

            try:
                sitemap_xml = build_sitemap_xml(urls, traversal.discovered_at)
            except (TypeError, ValueError) as e:
                raise ServiceError(f"XML serialization failed: {e}") from e

        except Exception as e:
            raise self.service_failure(
                e,
                f"Sitemap generation failed for {start_url}",
                url=start_url,
                max_depth=max_depth,
                limit=limit,
            ) from e

        result = SitemapResult(sitemap_xml=sitemap_xml, url_count=len(urls))

        self.logger.info("sitemap_complete", url=start_url, url_count=result.url_count)
        return result
