"""
Request schemas for WebScan tools.

Every tool validates its arguments through one of these pydantic models
before any network activity. Bounds mirror the engine's hard limits so a
single request cannot trigger an oversized crawl.
"""

import re
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import (
    DEFAULT_CRAWL_DEPTH,
    DEFAULT_LINK_LIMIT,
    DEFAULT_SITEMAP_LIMIT,
    MAX_CRAWL_DEPTH,
    MAX_LINK_LIMIT,
    MAX_SITEMAP_LIMIT,
)
from .errors import ValidationError
from .urls import is_http_url


ArgsT = TypeVar("ArgsT", bound="ToolArgs")


class ToolArgs(BaseModel):
    """Base for tool arguments: every tool targets one page URL"""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    url: str = Field(description="Absolute HTTP or HTTPS URL of the target page")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not is_http_url(value):
            raise ValueError("must be an absolute http(s) URL")
        return value


class CrawlSiteArgs(ToolArgs):
    """Arguments for crawl-site"""
    max_depth: int = Field(
        default=DEFAULT_CRAWL_DEPTH,
        ge=0,
        le=MAX_CRAWL_DEPTH,
        description="Link hops to follow from the start URL (0 = start URL only)",
    )


class GenerateSitemapArgs(CrawlSiteArgs):
    """Arguments for generate-site-map"""
    limit: int = Field(
        default=DEFAULT_SITEMAP_LIMIT,
        ge=1,
        le=MAX_SITEMAP_LIMIT,
        description="Maximum number of URLs in the sitemap",
    )


class CheckLinksArgs(ToolArgs):
    """Arguments for check-links"""
    pass


class ExtractLinksArgs(ToolArgs):
    """Arguments for extract-links"""
    base_url: Optional[str] = Field(
        default=None,
        description="Only return links whose URL starts with this prefix",
    )
    limit: int = Field(
        default=DEFAULT_LINK_LIMIT,
        ge=1,
        le=MAX_LINK_LIMIT,
        description="Maximum number of links to return",
    )

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_http_url(value):
            raise ValueError("must be an absolute http(s) URL")
        return value


class FindPatternsArgs(ToolArgs):
    """Arguments for find-patterns"""
    pattern: str = Field(min_length=1, description="Regular expression tested against link URLs")

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regex pattern: {e}") from e
        return value


class FetchPageArgs(ToolArgs):
    """Arguments for fetch-page"""
    selector: Optional[str] = Field(
        default=None,
        description="CSS selector of the element to convert (defaults to <body>)",
    )


def parse_args(model: Type[ArgsT], **kwargs: Any) -> ArgsT:
    """
    Validate raw tool arguments.

    None values are dropped so model defaults apply.

    Raises:
        ValidationError: With pydantic's error list as details
    """
    values: Dict[str, Any] = {k: v for k, v in kwargs.items() if v is not None}
    try:
        return model(**values)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(
            f"Validation failed: {problems}",
            details=e.errors(include_url=False, include_context=False),
        ) from e
