"""
Crawler module - Page fetching, link resolution and site traversal.

This package contains the building blocks of every tool:
- PageFetcher: HTTP GET + HTML parsing
- Link extraction: anchors resolved to distinct absolute URLs
- ReachabilityProber: HEAD-based existence checks
- TraversalEngine: depth-bounded same-origin crawling
"""

from .fetcher import Document, PageFetcher, create_session
from .links import (
    HrefKind,
    HrefOutcome,
    LinkRecord,
    extract_links,
    iter_anchors,
    resolve_href,
)
from .prober import Reachability, ReachabilityProber, ReachabilityRecord
from .traversal import (
    CrawlError,
    FrontierNode,
    NodeState,
    TraversalEngine,
    TraversalResult,
    VisitedSet,
)


__all__ = [
    # Fetching
    "Document",
    "PageFetcher",
    "create_session",
    # Link resolution
    "HrefKind",
    "HrefOutcome",
    "LinkRecord",
    "extract_links",
    "iter_anchors",
    "resolve_href",
    # Probing
    "Reachability",
    "ReachabilityProber",
    "ReachabilityRecord",
    # Traversal
    "CrawlError",
    "FrontierNode",
    "NodeState",
    "TraversalEngine",
    "TraversalResult",
    "VisitedSet",
]
