"""
PodScraper Processing Module
===========================

Fetch-and-aggregate engine: concurrent feed retrieval, episode extraction,
cutoff filtering, newest-per-source selection and chronological ordering.
"""

from .feed_fetcher import FeedFetcher, FetchResult
from .episode_extractor import EpisodeExtractor
from .selector import EpisodeSelector, EpisodeViews, FilterPolicy
from .ordering import order_chronologically
from .pipeline import ScrapePipeline, PipelineResult

__all__ = [
    'FeedFetcher',
    'FetchResult',
    'EpisodeExtractor',
    'EpisodeSelector',
    'EpisodeViews',
    'FilterPolicy',
    'order_chronologically',
    'ScrapePipeline',
    'PipelineResult',
]
