"""
Reachability Prober - Lightweight existence checks.

Issues a HEAD request per URL. Reachability failures are data, not
exceptions: any network error, timeout or non-2xx status is reported as
unreachable.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import aiohttp
import structlog

from .fetcher import request_slot


class Reachability(Enum):
    """Outcome of probing a link"""
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"
    UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True)
class ReachabilityRecord:
    """Probe result for one URL (or raw href when unresolvable)"""
    url: str
    status: Reachability


class ReachabilityProber:
    """
    HEAD-based reachability checker.

    Example:
        >>> prober = ReachabilityProber(session, timeout=5.0)
        >>> await prober.probe("https://example.com/missing")
        False
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = 5.0,
        semaphore: Optional[asyncio.Semaphore] = None,
    ):
        self.session = session
        self.timeout = timeout
        self.semaphore = semaphore

        self.logger = structlog.get_logger(__name__)

    async def probe(self, url: str) -> bool:
        """
        Check whether a URL answers a HEAD request with a 2xx status.

        Args:
            url: Absolute URL to check

        Returns:
            True only for 2xx responses
        """
        try:
            async with request_slot(self.semaphore):
                async with self.session.head(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                    allow_redirects=True,
                ) as response:
                    status = response.status

        except asyncio.TimeoutError:
            self.logger.debug("probe_timeout", url=url, timeout=self.timeout)
            return False

        except Exception as e:
            self.logger.debug("probe_failed", url=url, error=str(e) or e.__class__.__name__)
            return False

        self.logger.debug("probe_complete", url=url, status=status)
        return 200 <= status < 300

    async def check(self, url: str) -> ReachabilityRecord:
        """Probe a URL and wrap the outcome in a ReachabilityRecord"""
        reachable = await self.probe(url)
        return ReachabilityRecord(
            url=url,
            status=Reachability.REACHABLE if reachable else Reachability.UNREACHABLE,
        )
