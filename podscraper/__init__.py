"""
PodScraper - Podcast Feed Scraper
=================================

Fetches the feeds listed in an OPML file, extracts media episode URLs and
writes ranked/filtered episode lists.

Main Components:
- Ingestion: OPML feed list reading
- Processing: concurrent fetching, episode extraction, cutoff filtering,
  newest-per-source selection and chronological ordering
- Delivery: plain text, Markdown and HTML output
- Configuration: environment variables with Pydantic validation
"""

__version__ = "0.3.0"
__author__ = "PodScraper Development Team"
__description__ = "Podcast feed scraper extracting media episode URLs"

from .config.settings import get_settings
from .models import Episode, Source
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import PodScraperError

__all__ = [
    "get_settings",
    "Episode",
    "Source",
    "configure_application_logging",
    "get_logger_for_component",
    "PodScraperError",
]
