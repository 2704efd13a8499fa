"""
WebScan - On-demand web content tools.

Fetches pages as Markdown, extracts and pattern-matches links, checks links
for reachability, and crawls same-origin sites to build URL lists and XML
sitemaps.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "WebScan Team"
__status__ = "Development"
