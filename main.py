#!/usr/bin/env python3
"""
PodScraper - Podcast Feed Scraper
=================================

Entry point for running from a source checkout.

Usage:
    python main.py --help                    # Show all commands
    python main.py scrape feeds.opml         # Scrape the feeds listed in feeds.opml
    python main.py check-config              # Show the effective configuration
"""

import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from podscraper.cli import main


if __name__ == "__main__":
    main()
