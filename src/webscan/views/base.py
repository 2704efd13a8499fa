"""
Base Service - Shared plumbing for tool services.

Every tool service (crawl, sitemap, link check, single-page tools) logs with
its tool name bound and turns unexpected failures into ServiceError, while
letting validation and not-found errors through untouched.
"""

from typing import Any, Dict

import structlog

from ..core.errors import NotFoundError, ServiceError, ValidationError, WebScanError


# Raised as is; everything else is wrapped in ServiceError
PASSTHROUGH_ERRORS = (ValidationError, NotFoundError, ServiceError)


class ToolService:
    """
    Base class for tool services.

    Example:
        >>> class CrawlSiteService(ToolService):
        ...     tool_name = "crawl-site"
        ...
        ...     async def crawl_website(self, url, max_depth):
        ...         try:
        ...             ...
        ...         except Exception as e:
        ...             raise self.service_failure(e, f"Crawling failed for {url}", url=url)
    """

    tool_name = "tool"

    def __init__(self):
        self.invocations = 0
        self.failures = 0

        self.logger = structlog.get_logger(__name__, tool=self.tool_name)
        self.logger.debug("service_initialized")

    def service_failure(self, error: Exception, message: str, **context: Any) -> WebScanError:
        """
        Log a failed invocation and map it to the error to raise.

        Args:
            error: The exception that ended the invocation
            message: Human-readable prefix for wrapped errors
            **context: Extra key/values for the log line

        Returns:
            The original error for validation, not-found and service errors,
            otherwise a ServiceError wrapping it
        """
        self.failures += 1

        if isinstance(error, PASSTHROUGH_ERRORS):
            self.logger.error(
                "invocation_failed",
                error=error.message,
                error_type=type(error).__name__,
                **context,
            )
            return error

        self.logger.error(
            "invocation_failed_unexpectedly",
            error=str(error),
            error_type=type(error).__name__,
            exc_info=error,
            **context,
        )
        return ServiceError(f"{message}: {error}", details=context)

    def get_statistics(self) -> Dict[str, int]:
        """Invocation counters for this service instance"""
        return {
            "invocations": self.invocations,
            "failures": self.failures,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"invocations={self.invocations}, "
            f"failures={self.failures})"
        )
