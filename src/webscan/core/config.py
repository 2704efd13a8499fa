"""
Configuration for WebScan tools.

All timeouts and limits are passed into components explicitly; nothing
reads module-level globals at request time. Values can be overridden from
a YAML file:

    fetch_timeout: 15
    probe_timeout: 5
    user_agent: "MyBot/2.0"
    max_concurrent_requests: 4
    crawl_timeout: 120
    log_level: debug
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ValidationError


DEFAULT_USER_AGENT = "WebScan-Bot/1.0 (+https://github.com/webscan/webscan)"

# Hard ceiling on caller-supplied crawl depth
MAX_CRAWL_DEPTH = 5
DEFAULT_CRAWL_DEPTH = 2

DEFAULT_SITEMAP_LIMIT = 1000
MAX_SITEMAP_LIMIT = 5000

DEFAULT_LINK_LIMIT = 100
MAX_LINK_LIMIT = 5000

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True)
class WebScanConfig:
    """Configuration for the fetcher, prober and traversal engine"""
    fetch_timeout: float = 10.0   # Full page GET (seconds)
    probe_timeout: float = 5.0    # HEAD reachability check (seconds)
    user_agent: str = DEFAULT_USER_AGENT
    max_concurrent_requests: int = 10
    crawl_timeout: Optional[float] = None  # Overall traversal deadline
    log_level: str = "info"

    def __post_init__(self):
        if self.fetch_timeout <= 0 or self.probe_timeout <= 0:
            raise ValidationError("Timeouts must be positive numbers.")
        if self.max_concurrent_requests < 1:
            raise ValidationError("max_concurrent_requests must be at least 1.")
        if self.crawl_timeout is not None and self.crawl_timeout <= 0:
            raise ValidationError("crawl_timeout must be positive when set.")
        if self.log_level.lower() not in LOG_LEVELS:
            raise ValidationError(
                f"Invalid log level {self.log_level!r}; expected one of {', '.join(LOG_LEVELS)}."
            )

    @classmethod
    def from_env(cls) -> "WebScanConfig":
        """Defaults, with the log level taken from WEBSCAN_LOG_LEVEL or LOG_LEVEL"""
        level = os.environ.get("WEBSCAN_LOG_LEVEL") or os.environ.get("LOG_LEVEL") or "info"
        return cls(log_level=level.lower())

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "WebScanConfig":
        """
        Load configuration overrides from a YAML file.

        Args:
            path: Path to a YAML mapping of WebScanConfig fields

        Returns:
            Config with file values applied over environment defaults

        Raises:
            ValidationError: If the file is not a mapping or has unknown keys
        """
        with Path(path).open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValidationError(f"Config file {path} must contain a mapping.")

        return cls.from_env().merge(data)

    def merge(self, overrides: Dict[str, Any]) -> "WebScanConfig":
        """Return a copy with the given non-None overrides applied"""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValidationError(f"Unknown config keys: {', '.join(unknown)}")

        values = {k: v for k, v in overrides.items() if v is not None}
        try:
            return replace(self, **values)
        except TypeError as e:
            raise ValidationError(f"Invalid config value: {e}") from e
