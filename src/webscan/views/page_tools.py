"""
Single-page tools - Markdown conversion, link extraction, pattern search.

Each tool fetches exactly one page and returns a derived view of it; none of
them traverse the site.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from markdownify import ATX, markdownify
from soupsieve import SelectorSyntaxError

from ..core.config import DEFAULT_LINK_LIMIT, MAX_LINK_LIMIT
from ..core.errors import NotFoundError, ServiceError, ValidationError
from ..core.urls import is_http_url
from ..crawler.fetcher import PageFetcher
from ..crawler.links import LinkRecord, extract_links
from .base import ToolService


# Elements whose text never belongs in the Markdown output
NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]


def _require_page_url(page_url: str):
    if not is_http_url(page_url):
        raise ValidationError(f"Invalid input: {page_url!r} is not an absolute http(s) URL.")


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment to Markdown with ATX headings"""
    markdown = markdownify(html, heading_style=ATX)
    # Collapse the blank-line runs left behind by block elements
    return re.sub(r"\n{3,}", "\n\n", markdown).strip()


@dataclass
class FetchPageResult:
    """Markdown rendition of a page (or part of it)"""
    markdown_content: str
    source_url: str
    selector_used: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "markdown_content": self.markdown_content,
            "source_url": self.source_url,
            "selector_used": self.selector_used,
        }


class FetchPageService(ToolService):
    """
    Fetches a page and converts it, or one element of it, to Markdown.

    Example:
        >>> service = FetchPageService(fetcher)
        >>> result = await service.fetch_and_convert_to_markdown(
        ...     "https://example.com", selector="#main-content"
        ... )
        >>> print(result.markdown_content)
    """

    tool_name = "fetch-page"

    def __init__(self, fetcher: PageFetcher):
        super().__init__()
        self.fetcher = fetcher

    async def fetch_and_convert_to_markdown(
        self,
        page_url: str,
        selector: Optional[str] = None,
    ) -> FetchPageResult:
        """
        Fetch a page, optionally select content, and convert it to Markdown.

        If the selector matches nothing the whole ``<body>`` is converted and
        ``selector_used`` is None.

        Args:
            page_url: URL of the page to fetch
            selector: Optional CSS selector of the element to convert

        Returns:
            FetchPageResult with the Markdown content

        Raises:
            ValidationError: If the URL or selector is invalid
            NotFoundError: If a selector was given and no content was found
            ServiceError: If fetching or conversion fails
        """
        _require_page_url(page_url)

        self.invocations += 1
        self.logger.info("fetch_page_started", url=page_url, selector=selector)

        try:
            document = await self.fetcher.fetch(page_url)
            soup = document.soup

            effective_selector = selector
            element = None
            if selector:
                try:
                    element = soup.select_one(selector)
                except SelectorSyntaxError as e:
                    raise ValidationError(f"Invalid CSS selector {selector!r}: {e}") from e

                if element is None:
                    self.logger.warning("selector_not_matched", url=page_url, selector=selector)
                    effective_selector = None

            if element is None:
                element = soup.body or soup

            for hidden in element.find_all(NON_CONTENT_TAGS):
                hidden.decompose()

            target_html = element.decode_contents()
            if not target_html.strip():
                if selector:
                    raise NotFoundError(
                        f"Content extraction failed: Selector {selector!r} yielded empty content."
                    )
                raise ServiceError(
                    "Content extraction failed: Body content is empty or could not be retrieved."
                )

            markdown = html_to_markdown(target_html)

        except Exception as e:
            raise self.service_failure(
                e, f"Failed to fetch or convert page {page_url}", url=page_url, selector=selector
            ) from e

        self.logger.info("fetch_page_complete", url=page_url, characters=len(markdown))
        return FetchPageResult(
            markdown_content=markdown,
            source_url=page_url,
            selector_used=effective_selector,
        )


class ExtractLinksService(ToolService):
    """
    Lists the distinct links of a page with their anchor text.

    Example:
        >>> service = ExtractLinksService(fetcher)
        >>> links = await service.extract_links_from_page(
        ...     "https://example.com/docs", base_url="https://example.com/docs/"
        ... )
    """

    tool_name = "extract-links"

    def __init__(self, fetcher: PageFetcher):
        super().__init__()
        self.fetcher = fetcher

    async def extract_links_from_page(
        self,
        page_url: str,
        base_url: Optional[str] = None,
        limit: int = DEFAULT_LINK_LIMIT,
    ) -> List[LinkRecord]:
        """
        Fetch a page and extract its links.

        Args:
            page_url: URL of the page to extract links from
            base_url: Only keep links whose URL starts with this prefix
            limit: Maximum number of links to return

        Returns:
            Distinct LinkRecords in document order, at most ``limit``

        Raises:
            ValidationError: If arguments are invalid
            ServiceError: If fetching or parsing fails
        """
        _require_page_url(page_url)
        if base_url is not None and not is_http_url(base_url):
            raise ValidationError(f"Invalid input: baseUrl {base_url!r} is not an absolute http(s) URL.")
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_LINK_LIMIT:
            raise ValidationError(
                f"Invalid input: limit must be an integer between 1 and {MAX_LINK_LIMIT}."
            )

        self.invocations += 1
        self.logger.info("extract_links_started", url=page_url, base_url=base_url, limit=limit)

        try:
            document = await self.fetcher.fetch(page_url)
            links = extract_links(document)
        except Exception as e:
            raise self.service_failure(e, f"Failed to fetch or process page {page_url}", url=page_url) from e

        if base_url:
            links = [link for link in links if link.url.startswith(base_url)]

        if len(links) > limit:
            self.logger.info("link_limit_reached", url=page_url, limit=limit, available=len(links))
            links = links[:limit]

        self.logger.info("extract_links_complete", url=page_url, links=len(links))
        return links


class FindPatternsService(ToolService):
    """
    Finds links whose absolute URL matches a regular expression.

    Example:
        >>> service = FindPatternsService(fetcher)
        >>> matches = await service.find_links_by_pattern(
        ...     "https://shop.example.com", r"product/\\d+"
        ... )
    """

    tool_name = "find-patterns"

    def __init__(self, fetcher: PageFetcher):
        super().__init__()
        self.fetcher = fetcher

    async def find_links_by_pattern(self, page_url: str, pattern: str) -> List[LinkRecord]:
        """
        Fetch a page and return links matching a pattern.

        Args:
            page_url: URL of the page to search
            pattern: Regular expression searched in each link URL

        Returns:
            Matching LinkRecords in document order

        Raises:
            ValidationError: If the URL or pattern is invalid
            ServiceError: If fetching or parsing fails
        """
        _require_page_url(page_url)
        if not pattern:
            raise ValidationError("Invalid input: pattern string is required.")

        try:
            regex = re.compile(pattern)
        except re.error as e:
            self.logger.error("invalid_pattern", pattern=pattern, error=str(e))
            raise ValidationError(f"Invalid regex pattern: {pattern}. Error: {e}") from e

        self.invocations += 1
        self.logger.info("pattern_search_started", url=page_url, pattern=pattern)

        try:
            document = await self.fetcher.fetch(page_url)
            matches = [link for link in extract_links(document) if regex.search(link.url)]
        except Exception as e:
            raise self.service_failure(e, f"Failed to fetch or process page {page_url}", url=page_url) from e

        self.logger.info("pattern_search_complete", url=page_url, matches=len(matches))
        return matches
