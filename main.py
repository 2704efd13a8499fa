#!/usr/bin/env python3
"""
WebScan - Website crawling and link analysis tools

Main entry point for running the CLI from a source checkout.

Usage:
    python main.py crawl https://example.com
    python main.py sitemap https://example.com --max-depth 3 --limit 500
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from webscan.cli import cli


if __name__ == '__main__':
    cli()
