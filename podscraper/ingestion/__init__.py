"""
PodScraper Ingestion Module
==========================

Reading the list of feeds to scrape.
"""

from .source_list import parse_opml, read_source_list

__all__ = [
    'parse_opml',
    'read_source_list',
]
