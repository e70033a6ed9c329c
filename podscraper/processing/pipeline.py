"""
Scrape Pipeline Orchestrator
============================

Runs one scrape: fetch every source concurrently, extract episodes from the
documents that arrived, then build and order the output views.

Only fetching is concurrent. Everything after it runs sequentially over the
fully materialized fetch results.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models import Episode, Source
from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component, PerformanceLogger

from .feed_fetcher import FeedFetcher, FetchResult
from .episode_extractor import EpisodeExtractor
from .selector import EpisodeSelector, EpisodeViews, FilterPolicy
from .ordering import order_chronologically


@dataclass
class PipelineResult:
    """Outcome of one scrape with basic metrics."""
    total_sources: int
    successful_fetches: int
    views: EpisodeViews
    chronological: bool
    fetch_time_seconds: float = 0.0
    processing_time_seconds: float = 0.0

    @property
    def all_episodes(self) -> Tuple[Episode, ...]:
        return self.views.all_episodes

    @property
    def newest_episodes(self) -> Tuple[Episode, ...]:
        return self.views.newest_episodes

    @property
    def fetch_success_rate(self) -> float:
        """Percentage of sources whose document was retrieved."""
        if self.total_sources == 0:
            return 0.0
        return (self.successful_fetches / self.total_sources) * 100


class ScrapePipeline:
    """Fetch, extract, select and order episodes for a list of sources."""

    def __init__(
        self,
        policy: Optional[FilterPolicy] = None,
        chronological: Optional[bool] = None,
        fetcher: Optional[FeedFetcher] = None,
        extractor: Optional[EpisodeExtractor] = None,
    ):
        """Initialize the pipeline.

        Args:
            policy: Cutoff policy (default from config)
            chronological: Order the all-episodes view oldest first and build
                it from structured entries only (default from config)
            fetcher: Feed fetcher (default built from config)
            extractor: Episode extractor
        """
        self.settings = get_settings()
        self.logger = get_logger_for_component("pipeline")

        self.policy = policy or FilterPolicy.from_settings(self.settings.filtering)
        self.chronological = (
            chronological if chronological is not None else self.settings.filtering.chronological
        )
        self.fetcher = fetcher or FeedFetcher()
        self.extractor = extractor or EpisodeExtractor()
        self.selector = EpisodeSelector(self.policy)

    async def run(
        self, sources: Sequence[Source], now: Optional[datetime] = None
    ) -> PipelineResult:
        """Run a complete scrape.

        Args:
            sources: Feeds to scrape
            now: Reference time for the cutoff (defaults to the current time)

        Returns:
            PipelineResult with both views
        """
        sources = list(sources)
        self.logger.info(f"Starting scrape of {len(sources)} feeds")

        with PerformanceLogger(self.logger, "feed fetch", feed_count=len(sources)) as fetch_timer:
            fetch_results = await self.fetcher.fetch_feeds_batch(sources)

        with PerformanceLogger(self.logger, "episode processing") as processing_timer:
            views = self.process(self._in_source_order(fetch_results, sources), now)

        return PipelineResult(
            total_sources=len(sources),
            successful_fetches=len(fetch_results),
            views=views,
            chronological=self.chronological,
            fetch_time_seconds=fetch_timer.duration,
            processing_time_seconds=processing_timer.duration,
        )

    def process(
        self, fetch_results: Iterable[FetchResult], now: Optional[datetime] = None
    ) -> EpisodeViews:
        """Extract episodes from fetched documents and build the views.

        Args:
            fetch_results: Successful fetch results
            now: Reference time for the cutoff

        Returns:
            EpisodeViews; the all-episodes view is ordered oldest first when
            the pipeline is chronological
        """
        structured: List[Episode] = []
        enclosures_and_scan: List[Episode] = []

        for result in fetch_results:
            if not result.success or not result.content:
                continue

            structured.extend(
                self.extractor.extract_items(result.source_name, result.content, fallback=True)
            )

            if not self.chronological:
                enclosures_and_scan.extend(
                    self.extractor.extract_items(result.source_name, result.content, fallback=False)
                )
                enclosures_and_scan.extend(
                    self.extractor.scan_document(result.source_name, result.content)
                )

        all_candidates = structured if self.chronological else enclosures_and_scan

        views = self.selector.build_views(
            all_candidates,
            now=now or datetime.now(timezone.utc),
            newest_candidates=structured,
        )

        if self.chronological:
            views = EpisodeViews(
                all_episodes=tuple(order_chronologically(views.all_episodes)),
                newest_episodes=views.newest_episodes,
            )

        return views

    @staticmethod
    def _in_source_order(
        fetch_results: Iterable[FetchResult], sources: Sequence[Source]
    ) -> List[FetchResult]:
        """Re-order completion-ordered results to follow the source list."""
        position = {}
        for index, source in enumerate(sources):
            position.setdefault((source.name, source.address), index)

        return sorted(
            fetch_results,
            key=lambda r: position.get((r.source_name, r.feed_url), len(sources)),
        )
