"""
Integration test for the full tool pipeline.

Runs every tool through WebScanToolkit against a small local site served by
aiohttp:

    /            -> /about, /blog/, /broken, /missing (twice), external link
    /about       -> /            (cycle)
    /blog/       -> post-1, post-2 (relative), /about
    /blog/post-1 -> /blog/post-2
    /blog/post-2 -> (none)
    /broken      -> 500
"""

import xml.etree.ElementTree as ET

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from webscan.core.config import WebScanConfig
from webscan.core.errors import NotFoundError, ValidationError
from webscan.core.toolkit import WebScanToolkit


SITEMAP_NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}

PAGES = {
    "/": """
        <html><body>
          <h1>Home</h1>
          <a href="/about">About us</a>
          <a href="/blog/">Blog</a>
          <a href="/broken">Broken</a>
          <a href="/missing">Missing</a>
          <a href="/missing#again">Missing again</a>
          <a href="notaurl::badsyntax">Bad</a>
          <a href="mailto:team@example.com">Mail</a>
          <a href="https://external.invalid/page">External</a>
        </body></html>
    """,
    "/about": '<html><body><div id="bio"><p>We crawl.</p></div><a href="/">Home</a></body></html>',
    "/blog/": '<html><body><a href="post-1">One</a><a href="post-2">Two</a><a href="/about">About</a></body></html>',
    "/blog/post-1": '<html><body><a href="/blog/post-2">Next</a></body></html>',
    "/blog/post-2": "<html><body><p>The end</p></body></html>",
}


def make_app() -> web.Application:
    app = web.Application()

    async def serve(request):
        return web.Response(text=PAGES[request.path], content_type="text/html")

    async def broken(request):
        return web.Response(status=500, text="boom")

    for path in PAGES:
        app.router.add_get(path, serve)
    app.router.add_get("/broken", broken)
    return app


@pytest_asyncio.fixture
async def site():
    server = TestServer(make_app())
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def toolkit():
    config = WebScanConfig(fetch_timeout=5.0, probe_timeout=2.0, max_concurrent_requests=4)
    async with WebScanToolkit(config) as kit:
        yield kit


def url(site: TestServer, path: str) -> str:
    return str(site.make_url(path))


@pytest.mark.integration
class TestFullPipeline:
    """End-to-end tests over a local site"""

    @pytest.mark.asyncio
    async def test_crawl(self, site, toolkit):
        """Test crawling finds every same-origin page once and isolates the 500"""
        result = await toolkit.crawl(url(site, "/"), max_depth=3)

        assert set(result["crawled_urls"]) == {
            url(site, "/"),
            url(site, "/about"),
            url(site, "/blog/"),
            url(site, "/blog/post-1"),
            url(site, "/blog/post-2"),
            url(site, "/broken"),
            url(site, "/missing"),
        }
        assert result["total_urls"] == len(result["crawled_urls"]) == 7
        assert {error["url"] for error in result["errors"]} == {url(site, "/broken"), url(site, "/missing")}

    @pytest.mark.asyncio
    async def test_crawl_depth_one(self, site, toolkit):
        """Test depth 1 stops at the home page's direct links"""
        result = await toolkit.crawl(url(site, "/"), max_depth=1)

        assert url(site, "/blog/post-1") not in result["crawled_urls"]
        assert url(site, "/blog/") in result["crawled_urls"]

    @pytest.mark.asyncio
    async def test_sitemap(self, site, toolkit):
        """Test the sitemap lists crawled URLs up to the limit"""
        xml = await toolkit.sitemap(url(site, "/"), max_depth=3, limit=3)

        root = ET.fromstring(xml.encode("utf-8"))
        locs = [loc.text for loc in root.findall("sm:url/sm:loc", SITEMAP_NS)]
        assert len(locs) == 3
        assert locs[0] == url(site, "/")
        assert len(root.findall("sm:url/sm:lastmod", SITEMAP_NS)) == 3

    @pytest.mark.asyncio
    async def test_check_links(self, site, toolkit):
        """Test link statuses on the home page"""
        results = await toolkit.check_links(url(site, "/"))

        statuses = {entry["url"]: entry["status"] for entry in results}
        assert statuses[url(site, "/about")] == "valid"
        assert statuses[url(site, "/blog/")] == "valid"
        assert statuses[url(site, "/broken")] == "broken"
        assert statuses[url(site, "/missing")] == "broken"
        assert statuses["notaurl::badsyntax"] == "invalid_url"
        assert statuses["https://external.invalid/page"] == "broken"
        # /missing appears twice on the page
        assert len(results) == len(statuses) == 6

    @pytest.mark.asyncio
    async def test_extract_links(self, site, toolkit):
        """Test link extraction with a prefix filter"""
        links = await toolkit.extract_links(url(site, "/blog/"), base_url=url(site, "/blog/"))

        assert links == [
            {"url": url(site, "/blog/post-1"), "text": "One"},
            {"url": url(site, "/blog/post-2"), "text": "Two"},
        ]

    @pytest.mark.asyncio
    async def test_find_patterns(self, site, toolkit):
        """Test regex search over link URLs"""
        links = await toolkit.find_patterns(url(site, "/blog/"), r"post-\d$")

        assert [link["text"] for link in links] == ["One", "Two"]

    @pytest.mark.asyncio
    async def test_fetch_page(self, site, toolkit):
        """Test Markdown conversion with and without selector"""
        whole = await toolkit.fetch_page(url(site, "/"))
        assert "# Home" in whole["markdown_content"]

        bio = await toolkit.fetch_page(url(site, "/about"), selector="#bio")
        assert bio["markdown_content"] == "We crawl."
        assert bio["selector_used"] == "#bio"

    @pytest.mark.asyncio
    async def test_fetch_page_empty_selector(self, site, toolkit):
        """Test a selector that yields nothing on an empty page is NotFoundError"""
        PAGES["/empty"] = "<html><body></body></html>"
        try:
            server = TestServer(make_app())
            await server.start_server()
            try:
                with pytest.raises(NotFoundError):
                    await toolkit.fetch_page(url(server, "/empty"), selector="#nothing")
            finally:
                await server.close()
        finally:
            del PAGES["/empty"]

    @pytest.mark.asyncio
    async def test_validation_before_network(self, toolkit):
        """Test invalid arguments are rejected by the toolkit"""
        with pytest.raises(ValidationError):
            await toolkit.crawl("https://example.com", max_depth=6)

        with pytest.raises(ValidationError):
            await toolkit.find_patterns("https://example.com", "(")

    @pytest.mark.asyncio
    async def test_statistics(self, site, toolkit):
        """Test per-tool invocation counters"""
        await toolkit.crawl(url(site, "/"), max_depth=0)

        stats = toolkit.get_statistics()
        assert stats["crawl-site"]["invocations"] == 1
        assert stats["traversal"]["nodes"] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v", "-m", "integration"])
