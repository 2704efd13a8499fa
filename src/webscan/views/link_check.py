"""
Link Check - Reachability report for the links of one page.

Fetches a single page (no traversal), resolves its anchors and probes every
distinct target concurrently. Each URL is probed once no matter how often
it appears on the page; hrefs that cannot be resolved are reported as
``invalid_url`` instead of being dropped.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from ..core.errors import ValidationError
from ..core.urls import is_http_url
from ..crawler.fetcher import PageFetcher
from ..crawler.links import HrefKind, iter_anchors
from ..crawler.prober import Reachability, ReachabilityProber, ReachabilityRecord
from .base import ToolService


class LinkStatus(Enum):
    """Reported status of a checked link"""
    VALID = "valid"
    BROKEN = "broken"
    INVALID_URL = "invalid_url"


_STATUS_BY_REACHABILITY = {
    Reachability.REACHABLE: LinkStatus.VALID,
    Reachability.UNREACHABLE: LinkStatus.BROKEN,
    Reachability.UNRESOLVABLE: LinkStatus.INVALID_URL,
}


@dataclass(frozen=True)
class LinkCheckResult:
    """One checked link"""
    url: str
    status: LinkStatus

    @classmethod
    def from_record(cls, record: ReachabilityRecord) -> "LinkCheckResult":
        return cls(url=record.url, status=_STATUS_BY_REACHABILITY[record.status])

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "status": self.status.value}


class CheckLinksService(ToolService):
    """
    Checks every link on a page for reachability.

    Example:
        >>> service = CheckLinksService(fetcher, prober)
        >>> results = await service.check_links_on_page("https://example.com")
        >>> broken = [r for r in results if r.status is LinkStatus.BROKEN]
    """

    tool_name = "check-links"

    def __init__(self, fetcher: PageFetcher, prober: ReachabilityProber):
        super().__init__()
        self.fetcher = fetcher
        self.prober = prober

    async def check_links_on_page(self, page_url: str) -> List[LinkCheckResult]:
        """
        Fetch a page, extract its links and check their validity.

        Args:
            page_url: URL of the page to check

        Returns:
            One result per distinct link, in order of first appearance

        Raises:
            ValidationError: If the page URL is invalid
            ServiceError: If the page itself cannot be fetched
        """
        if not is_http_url(page_url):
            raise ValidationError(f"Invalid input: {page_url!r} is not an absolute http(s) URL.")

        self.invocations += 1
        self.logger.info("link_check_started", url=page_url)

        try:
            document = await self.fetcher.fetch(page_url)

            # Ordered plan: resolved URLs get probed, invalid hrefs are reported as is
            plan: Dict[str, bool] = {}
            for outcome, _text in iter_anchors(document):
                if outcome.kind is HrefKind.RESOLVED:
                    plan.setdefault(outcome.url, True)
                elif outcome.kind is HrefKind.INVALID:
                    self.logger.warning("href_unresolvable", href=outcome.href, reason=outcome.reason)
                    plan.setdefault(outcome.href, False)

            records = await asyncio.gather(*(
                self.prober.check(target) if probe else self._unresolvable(target)
                for target, probe in plan.items()
            ))

        except Exception as e:
            raise self.service_failure(e, f"Failed to check links on {page_url}", url=page_url) from e

        results = [LinkCheckResult.from_record(record) for record in records]

        self.logger.info(
            "link_check_complete",
            url=page_url,
            links=len(results),
            broken=sum(1 for r in results if r.status is LinkStatus.BROKEN),
            invalid=sum(1 for r in results if r.status is LinkStatus.INVALID_URL),
        )
        return results

    @staticmethod
    async def _unresolvable(href: str) -> ReachabilityRecord:
        return ReachabilityRecord(url=href, status=Reachability.UNRESOLVABLE)
