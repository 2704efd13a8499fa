"""
Traversal Engine - Bounded-depth, same-origin, deduplicating site traversal.

Expands a frontier of URLs from a seed, fetching every page and following
its same-origin links until the depth bound is reached. All children of a
page are expanded concurrently; a lock-guarded visited set guarantees that
each URL is expanded exactly once per traversal, even when sibling branches
converge on it or the link graph has cycles.

A failing page is recorded as an error on its own node and contributes no
children. It never aborts the traversal.

Design Pattern: Fan-out/fan-in recursion over asyncio.TaskGroup
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import structlog

from ..core.config import MAX_CRAWL_DEPTH
from ..core.errors import FetchError, ValidationError
from ..core.urls import canonical_url, is_http_url, origin_of
from .links import extract_links


DEADLINE_REASON = "crawl deadline exceeded"


class NodeState(Enum):
    """Lifecycle of a frontier node"""
    PENDING = "pending"
    FETCHING = "fetching"
    EXPANDING = "expanding"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({NodeState.DONE, NodeState.FAILED})


@dataclass(frozen=True)
class FrontierNode:
    """A discovered URL waiting to be expanded"""
    url: str
    depth: int


@dataclass(frozen=True)
class CrawlError:
    """A page that was visited but could not be fetched"""
    url: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "reason": self.reason}


@dataclass(frozen=True)
class TraversalResult:
    """
    Outcome of one traversal.

    ``urls`` is in discovery order and contains each URL once. Failed pages
    appear in both ``urls`` and ``errors``.
    """
    urls: Tuple[str, ...] = ()
    errors: Tuple[CrawlError, ...] = ()
    discovered_at: Mapping[str, datetime] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def error_urls(self) -> Set[str]:
        return {error.url for error in self.errors}

    def __len__(self) -> int:
        return len(self.urls)


class VisitedSet:
    """
    URLs claimed by one traversal.

    ``claim`` is the only way in: it checks and inserts under one lock, so
    two branches racing for the same URL get exactly one winner. URLs are
    compared in canonical form.
    """

    def __init__(self):
        self._keys: Set[str] = set()
        self._lock = threading.Lock()

    def claim(self, url: str) -> bool:
        """
        Try to claim a URL for expansion.

        Returns:
            True if the caller now owns the URL, False if already claimed
        """
        key = canonical_url(url)
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def __contains__(self, url: str) -> bool:
        key = canonical_url(url)
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


class _TraversalRun:
    """Private mutable state of a single traverse() call"""

    def __init__(self, seed_url: str, max_depth: int, deadline: Optional[float]):
        self.seed_url = seed_url
        # Replaced by the seed's post-redirect origin once it is fetched
        self.scope_origin = origin_of(seed_url)
        self.max_depth = max_depth
        self.deadline = deadline

        self.visited = VisitedSet()
        self.urls: List[str] = []
        self.errors: List[CrawlError] = []
        self.discovered_at: Dict[str, datetime] = {}
        self.states: Dict[str, NodeState] = {}

    def record(self, url: str):
        self.urls.append(url)
        self.discovered_at[url] = datetime.now(timezone.utc)
        self.states[url] = NodeState.PENDING

    def fail(self, url: str, reason: str):
        self.errors.append(CrawlError(url=url, reason=reason))
        self.states[url] = NodeState.FAILED

    def to_result(self) -> TraversalResult:
        return TraversalResult(
            urls=tuple(self.urls),
            errors=tuple(self.errors),
            discovered_at=MappingProxyType(dict(self.discovered_at)),
        )


def leaf_exceptions(group: BaseExceptionGroup) -> List[BaseException]:
    """Flatten nested exception groups into their leaf exceptions"""
    leaves = []
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            leaves.extend(leaf_exceptions(exc))
        else:
            leaves.append(exc)
    return leaves


def validate_traversal_args(seed_url: str, max_depth: int):
    """
    Reject malformed traversal input before any request is made.

    Raises:
        ValidationError: If the seed is not an absolute http(s) URL or the
            depth is outside [0, MAX_CRAWL_DEPTH]
    """
    if not is_http_url(seed_url):
        raise ValidationError(f"Invalid input: {seed_url!r} is not an absolute http(s) URL.")
    if isinstance(max_depth, bool) or not isinstance(max_depth, int):
        raise ValidationError("Invalid input: maxDepth must be an integer.")
    if not 0 <= max_depth <= MAX_CRAWL_DEPTH:
        raise ValidationError(
            f"Invalid input: maxDepth must be between 0 and {MAX_CRAWL_DEPTH}."
        )


class TraversalEngine:
    """
    Depth-bounded same-origin crawler core.

    The engine itself is reusable; every traverse() call gets its own
    visited set and result, discarded or frozen when the call returns.

    Example:
        >>> engine = TraversalEngine(fetcher)
        >>> result = await engine.traverse("https://example.com", max_depth=2)
        >>> print(f"Found {len(result.urls)} pages, {len(result.errors)} errors")
    """

    def __init__(self, fetcher, crawl_timeout: Optional[float] = None):
        """
        Initialize the engine.

        Args:
            fetcher: Object with ``async fetch(url) -> Document``
            crawl_timeout: Optional overall deadline per traversal (seconds)
        """
        self.fetcher = fetcher
        self.crawl_timeout = crawl_timeout

        # Node states of the most recent traversal
        self.node_states: Dict[str, NodeState] = {}

        self.logger = structlog.get_logger(__name__)

    async def traverse(self, seed_url: str, max_depth: int) -> TraversalResult:
        """
        Crawl from a seed URL.

        Args:
            seed_url: Absolute http(s) URL to start from (depth 0)
            max_depth: Maximum number of link hops from the seed

        Returns:
            TraversalResult with discovered URLs and per-page errors

        Raises:
            ValidationError: If the arguments are malformed
        """
        validate_traversal_args(seed_url, max_depth)
        seed_url = seed_url.strip()

        deadline = None
        if self.crawl_timeout is not None:
            deadline = asyncio.get_running_loop().time() + self.crawl_timeout

        run = _TraversalRun(seed_url, max_depth, deadline)

        self.logger.info(
            "traversal_started",
            seed=seed_url,
            max_depth=max_depth,
            crawl_timeout=self.crawl_timeout,
        )

        try:
            await self._visit(run, FrontierNode(url=seed_url, depth=0))
        except ExceptionGroup as eg:
            # A single failing branch surfaces as itself, not as a TaskGroup wrapper
            leaves = leaf_exceptions(eg)
            if len(leaves) == 1:
                raise leaves[0] from eg
            raise
        finally:
            self.node_states = dict(run.states)

        result = run.to_result()

        self.logger.info(
            "traversal_completed",
            seed=seed_url,
            urls=len(result.urls),
            errors=len(result.errors),
        )

        return result

    async def _visit(self, run: _TraversalRun, node: FrontierNode):
        """
        Expand one node and, transitively, everything below it.

        Returns once every branch spawned from this node has resolved.
        """
        # Pruning is a normal outcome, not a failure
        if node.depth > run.max_depth:
            return
        if not run.visited.claim(node.url):
            self.logger.debug("node_already_visited", url=node.url, depth=node.depth)
            return

        run.record(node.url)
        run.states[node.url] = NodeState.FETCHING

        try:
            document = await self._fetch(run, node.url)
        except FetchError as e:
            run.fail(node.url, e.reason)
            self.logger.warning(
                "page_fetch_failed",
                url=node.url,
                depth=node.depth,
                reason=e.reason,
            )
            return

        if node.depth == 0:
            run.scope_origin = origin_of(document.url)

        if node.depth >= run.max_depth:
            run.states[node.url] = NodeState.DONE
            return

        run.states[node.url] = NodeState.EXPANDING
        children = self._children(run, document, node)

        if children:
            async with asyncio.TaskGroup() as tg:
                for child in children:
                    tg.create_task(self._visit(run, child))

        run.states[node.url] = NodeState.DONE

    async def _fetch(self, run: _TraversalRun, url: str):
        """Fetch a page, bounded by the remaining crawl deadline if any"""
        if run.deadline is None:
            return await self.fetcher.fetch(url)

        remaining = run.deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise FetchError(url, DEADLINE_REASON)

        try:
            return await asyncio.wait_for(self.fetcher.fetch(url), timeout=remaining)
        except asyncio.TimeoutError as e:
            raise FetchError(url, DEADLINE_REASON) from e

    def _children(self, run: _TraversalRun, document, node: FrontierNode) -> List[FrontierNode]:
        """Same-origin, not-yet-visited links of a fetched page"""
        page_origin = origin_of(document.url)
        if page_origin != run.scope_origin:
            # Redirected off-origin: the page is recorded but not expanded
            self.logger.debug(
                "page_left_origin",
                url=node.url,
                final_url=document.url,
                depth=node.depth,
            )
            return []

        links = extract_links(document, document.url)

        children = []
        cross_origin = 0
        for link in links:
            if origin_of(link.url) != run.scope_origin:
                cross_origin += 1
                continue
            if link.url in run.visited:
                continue
            children.append(FrontierNode(url=link.url, depth=node.depth + 1))

        self.logger.debug(
            "page_expanded",
            url=node.url,
            depth=node.depth,
            page_origin="{}://{}:{}".format(*page_origin),
            links=len(links),
            cross_origin=cross_origin,
            children=len(children),
        )

        return children

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics of the most recent traversal.

        Returns:
            Dictionary with node counts per state
        """
        counts: Dict[str, int] = {state.value: 0 for state in NodeState}
        for state in self.node_states.values():
            counts[state.value] += 1

        return {
            "nodes": len(self.node_states),
            "states": counts,
            "crawl_timeout": self.crawl_timeout,
        }
