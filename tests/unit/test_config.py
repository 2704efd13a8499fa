"""
Unit tests for configuration, request schemas and logging setup.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest
import structlog

from webscan.core import (
    CrawlSiteArgs,
    ExtractLinksArgs,
    FetchPageArgs,
    FindPatternsArgs,
    GenerateSitemapArgs,
    ValidationError,
    WebScanConfig,
    configure_logging,
    parse_args,
)


class TestWebScanConfig:
    """Test suite for WebScanConfig"""

    def test_defaults(self):
        """Test default timeouts and concurrency"""
        config = WebScanConfig()

        assert config.fetch_timeout == 10.0
        assert config.probe_timeout == 5.0
        assert config.max_concurrent_requests == 10
        assert config.crawl_timeout is None
        assert config.user_agent.startswith("WebScan-Bot/")

    @pytest.mark.parametrize("kwargs", [
        {"fetch_timeout": 0},
        {"probe_timeout": -1},
        {"max_concurrent_requests": 0},
        {"crawl_timeout": 0},
        {"log_level": "verbose"},
    ])
    def test_invalid_values(self, kwargs):
        """Test out-of-range values are rejected"""
        with pytest.raises(ValidationError):
            WebScanConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        """Test the log level is read from the environment"""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("WEBSCAN_LOG_LEVEL", "DEBUG")

        assert WebScanConfig.from_env().log_level == "debug"

    def test_from_yaml(self, tmp_path, monkeypatch):
        """Test YAML values override defaults"""
        monkeypatch.delenv("WEBSCAN_LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        path = tmp_path / "webscan.yaml"
        path.write_text("fetch_timeout: 15\nuser_agent: TestBot/2.0\ncrawl_timeout: 60\n")

        config = WebScanConfig.from_yaml(path)

        assert config.fetch_timeout == 15
        assert config.user_agent == "TestBot/2.0"
        assert config.crawl_timeout == 60
        assert config.probe_timeout == 5.0

    def test_from_yaml_empty_file(self, tmp_path):
        """Test an empty file yields defaults"""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert WebScanConfig.from_yaml(path).fetch_timeout == 10.0

    @pytest.mark.parametrize("content", ["retries: 3\n", "- a\n- b\n"])
    def test_from_yaml_rejects_bad_content(self, tmp_path, content):
        """Test unknown keys and non-mapping files are rejected"""
        path = tmp_path / "bad.yaml"
        path.write_text(content)

        with pytest.raises(ValidationError):
            WebScanConfig.from_yaml(path)

    def test_merge_ignores_none(self):
        """Test None overrides keep the current value"""
        config = WebScanConfig(crawl_timeout=30).merge({"crawl_timeout": None, "probe_timeout": 2})

        assert config.crawl_timeout == 30
        assert config.probe_timeout == 2


class TestSchemas:
    """Test suite for request schemas"""

    def test_crawl_defaults(self):
        """Test crawl depth defaults to 2"""
        args = parse_args(CrawlSiteArgs, url=" https://example.com ", max_depth=None)

        assert args.url == "https://example.com"
        assert args.max_depth == 2

    @pytest.mark.parametrize("max_depth", [-1, 6])
    def test_crawl_depth_bounds(self, max_depth):
        """Test depth must be within 0..5"""
        with pytest.raises(ValidationError) as exc_info:
            parse_args(CrawlSiteArgs, url="https://example.com", max_depth=max_depth)

        assert "max_depth" in exc_info.value.message
        assert exc_info.value.details

    def test_sitemap_limit(self):
        """Test sitemap limit defaults to 1000 and is capped at 5000"""
        assert parse_args(GenerateSitemapArgs, url="https://example.com").limit == 1000

        with pytest.raises(ValidationError):
            parse_args(GenerateSitemapArgs, url="https://example.com", limit=5001)

    def test_extract_links_args(self):
        """Test extract-links defaults and base URL validation"""
        args = parse_args(ExtractLinksArgs, url="https://example.com")
        assert args.limit == 100
        assert args.base_url is None

        with pytest.raises(ValidationError):
            parse_args(ExtractLinksArgs, url="https://example.com", base_url="/docs")

    @pytest.mark.parametrize("url", ["example.com", "ftp://example.com", ""])
    def test_bad_url(self, url):
        """Test every tool requires an absolute http(s) URL"""
        with pytest.raises(ValidationError):
            parse_args(FetchPageArgs, url=url)

    def test_pattern_must_compile(self):
        """Test invalid regex patterns are rejected"""
        assert parse_args(FindPatternsArgs, url="https://example.com", pattern=r"\d+").pattern == r"\d+"

        with pytest.raises(ValidationError):
            parse_args(FindPatternsArgs, url="https://example.com", pattern="(")

    def test_unknown_argument(self):
        """Test extra arguments are rejected"""
        with pytest.raises(ValidationError):
            parse_args(CrawlSiteArgs, url="https://example.com", depth=3)


class TestLogging:
    """Test suite for logging setup"""

    def test_json_logs_to_stderr(self, capsys):
        """Test JSON log lines go to stderr and respect the level"""
        configure_logging("info", json_output=True)
        logger = structlog.get_logger("webscan.test")

        logger.debug("hidden_event")
        logger.info("visible_event", url="https://example.com")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "visible_event" in captured.err
        assert "hidden_event" not in captured.err
        assert '"url": "https://example.com"' in captured.err

        structlog.reset_defaults()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
