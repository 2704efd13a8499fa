"""
Unit tests for the single-page tools.

Run with: pytest tests/unit/test_page_tools.py -v
"""

import pytest

from conftest import FakeFetcher, page
from webscan.core.errors import NotFoundError, ServiceError, ValidationError
from webscan.views import (
    ExtractLinksService,
    FetchPageService,
    FindPatternsService,
    html_to_markdown,
)


URL = "https://example.com/article"

ARTICLE = """
<html>
  <head><title>Article</title><style>body { color: red; }</style></head>
  <body>
    <h1>Release notes</h1>
    <div id="main">
      <p>Hello <b>world</b></p>
      <script>console.log("tracking")</script>
    </div>
    <div id="empty">   </div>
  </body>
</html>
"""


class TestHtmlToMarkdown:
    """Test suite for Markdown conversion"""

    def test_headings_are_atx(self):
        """Test headings use # markers"""
        assert html_to_markdown("<h2>Install</h2><p>Run it.</p>").startswith("## Install")

    def test_blank_runs_collapsed(self):
        """Test consecutive blank lines are collapsed"""
        markdown = html_to_markdown("<div><div><p>a</p></div></div><div><p>b</p></div>")

        assert "\n\n\n" not in markdown
        assert markdown.startswith("a") and markdown.endswith("b")


class TestFetchPageService:
    """Test suite for FetchPageService"""

    @pytest.mark.asyncio
    async def test_whole_body(self):
        """Test the body is converted when no selector is given"""
        service = FetchPageService(FakeFetcher({URL: ARTICLE}))

        result = await service.fetch_and_convert_to_markdown(URL)

        assert "# Release notes" in result.markdown_content
        assert "Hello **world**" in result.markdown_content
        assert "tracking" not in result.markdown_content
        assert result.source_url == URL
        assert result.selector_used is None

    @pytest.mark.asyncio
    async def test_selector(self):
        """Test a matching selector converts only that element"""
        service = FetchPageService(FakeFetcher({URL: ARTICLE}))

        result = await service.fetch_and_convert_to_markdown(URL, selector="#main")

        assert "Hello **world**" in result.markdown_content
        assert "Release notes" not in result.markdown_content
        assert result.selector_used == "#main"

    @pytest.mark.asyncio
    async def test_unmatched_selector_falls_back_to_body(self):
        """Test a selector matching nothing converts the body instead"""
        service = FetchPageService(FakeFetcher({URL: ARTICLE}))

        result = await service.fetch_and_convert_to_markdown(URL, selector="#nope")

        assert "# Release notes" in result.markdown_content
        assert result.selector_used is None
        assert result.to_dict()["selector_used"] is None

    @pytest.mark.asyncio
    async def test_selector_with_empty_content(self):
        """Test a selector matching an empty element is NotFoundError"""
        service = FetchPageService(FakeFetcher({URL: ARTICLE}))

        with pytest.raises(NotFoundError):
            await service.fetch_and_convert_to_markdown(URL, selector="#empty")

    @pytest.mark.asyncio
    async def test_empty_body(self):
        """Test an empty body without selector is ServiceError"""
        service = FetchPageService(FakeFetcher({URL: "<html><body></body></html>"}))

        with pytest.raises(ServiceError):
            await service.fetch_and_convert_to_markdown(URL)

    @pytest.mark.asyncio
    async def test_invalid_selector(self):
        """Test a syntactically invalid selector is ValidationError"""
        service = FetchPageService(FakeFetcher({URL: ARTICLE}))

        with pytest.raises(ValidationError):
            await service.fetch_and_convert_to_markdown(URL, selector="div[")

    @pytest.mark.asyncio
    async def test_fetch_failure(self):
        """Test a failed fetch is ServiceError"""
        service = FetchPageService(FakeFetcher({URL: 500}))

        with pytest.raises(ServiceError) as exc_info:
            await service.fetch_and_convert_to_markdown(URL)

        assert "status code 500" in exc_info.value.message


class TestExtractLinksService:
    """Test suite for ExtractLinksService"""

    LINKS_PAGE = page(
        "/docs/a", "/docs/b", "/blog/c", "/docs/a", "https://other.com/docs/d", "mailto:x@example.com",
    )

    @pytest.mark.asyncio
    async def test_distinct_links(self):
        """Test links are returned once each in document order"""
        service = ExtractLinksService(FakeFetcher({URL: self.LINKS_PAGE}))

        links = await service.extract_links_from_page(URL)

        assert [link.url for link in links] == [
            "https://example.com/docs/a",
            "https://example.com/docs/b",
            "https://example.com/blog/c",
            "https://other.com/docs/d",
        ]
        assert links[0].text == "link 0"

    @pytest.mark.asyncio
    async def test_base_url_filter(self):
        """Test only links starting with the base URL are kept"""
        service = ExtractLinksService(FakeFetcher({URL: self.LINKS_PAGE}))

        links = await service.extract_links_from_page(URL, base_url="https://example.com/docs/")

        assert [link.url for link in links] == [
            "https://example.com/docs/a",
            "https://example.com/docs/b",
        ]

    @pytest.mark.asyncio
    async def test_limit(self):
        """Test the result is capped at the limit"""
        service = ExtractLinksService(FakeFetcher({URL: self.LINKS_PAGE}))

        links = await service.extract_links_from_page(URL, limit=1)

        assert len(links) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"base_url": "docs/"},
        {"limit": 0},
        {"limit": 5001},
    ])
    async def test_invalid_arguments(self, kwargs):
        """Test bad base URL or limit is rejected before fetching"""
        fetcher = FakeFetcher({URL: self.LINKS_PAGE})
        service = ExtractLinksService(fetcher)

        with pytest.raises(ValidationError):
            await service.extract_links_from_page(URL, **kwargs)

        assert fetcher.calls == []


class TestFindPatternsService:
    """Test suite for FindPatternsService"""

    SHOP_PAGE = page("/product/12", "/product/abc", "/cart", "/product/7?ref=home")

    @pytest.mark.asyncio
    async def test_matching_links(self):
        """Test links whose URL matches the regex are returned"""
        service = FindPatternsService(FakeFetcher({URL: self.SHOP_PAGE}))

        links = await service.find_links_by_pattern(URL, r"product/\d+")

        assert [link.url for link in links] == [
            "https://example.com/product/12",
            "https://example.com/product/7?ref=home",
        ]

    @pytest.mark.asyncio
    async def test_no_matches(self):
        """Test a pattern matching nothing returns an empty list"""
        service = FindPatternsService(FakeFetcher({URL: self.SHOP_PAGE}))

        assert await service.find_links_by_pattern(URL, r"checkout") == []

    @pytest.mark.asyncio
    async def test_invalid_pattern(self):
        """Test an invalid regex is rejected before fetching"""
        fetcher = FakeFetcher({URL: self.SHOP_PAGE})
        service = FindPatternsService(fetcher)

        with pytest.raises(ValidationError):
            await service.find_links_by_pattern(URL, "product/(")

        assert fetcher.calls == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
