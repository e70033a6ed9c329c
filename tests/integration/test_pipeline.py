"""
Scrape Pipeline Integration Test
================================

Runs the complete workflow, fetch → extract → select → order, against an
in-memory session serving a mix of healthy and failing feeds.
"""

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from conftest import FakeResponse
from podscraper.models import Source
from podscraper.processing import (
    FeedFetcher,
    FetchResult,
    FilterPolicy,
    PipelineResult,
    ScrapePipeline,
)


pytestmark = pytest.mark.integration

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)

FEED_A = """<?xml version="1.0"?>
<rss version="2.0">
  <channel>
    <title>Show A</title>
    <item>
      <title>A new</title>
      <enclosure url="http://a.example/new.mp3" type="audio/mpeg"/>
      <pubDate>Sat, 25 May 2024 09:00:00 +0000</pubDate>
    </item>
    <item>
      <title>A old</title>
      <enclosure url="http://a.example/old.mp3" type="audio/mpeg"/>
      <pubDate>Wed, 10 Jan 2024 09:00:00 +0000</pubDate>
    </item>
    <item>
      <title>A desc</title>
      <description>Listen http://a.example/desc.mp3</description>
      <pubDate>Mon, 20 May 2024 09:00:00 +0000</pubDate>
    </item>
  </channel>
</rss>
"""

FEED_D = """<?xml version="1.0"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Show D</title>
    <item>
      <title>D one</title>
      <enclosure url="http://d.example/1.mp3" type="audio/mpeg"/>
      <media:content url="http://d.example/extra.mp4" type="video/mp4"/>
      <pubDate>Tue, 28 May 2024 09:00:00 +0000</pubDate>
    </item>
    <item>
      <title>D undated</title>
      <enclosure url="http://d.example/undated.mp3" type="audio/mpeg"/>
    </item>
  </channel>
</rss>
"""

SOURCES = [
    Source(name="Show A", address="http://a.example/feed.xml"),
    Source(name="Show B", address="http://b.example/feed.xml"),
    Source(name="Show C", address="http://c.example/feed.xml"),
    Source(name="Show D", address="http://d.example/feed.xml"),
]


@pytest.fixture
def routes():
    return {
        "http://a.example/feed.xml": FakeResponse(body=FEED_A),
        "http://b.example/feed.xml": FakeResponse(status=500, reason="Server Error"),
        "http://c.example/feed.xml": asyncio.TimeoutError(),
        "http://d.example/feed.xml": FakeResponse(body=FEED_D),
    }


def make_pipeline(fake_session_factory, routes, chronological, policy=None, **session_kwargs):
    fetcher = FeedFetcher(max_concurrent=2)
    fake_session_factory(fetcher, routes, **session_kwargs)
    return ScrapePipeline(policy=policy or FilterPolicy(), chronological=chronological, fetcher=fetcher)


def addresses(episodes):
    return [e.media_address for e in episodes]


class TestScrapePipeline:
    """End-to-end scrape runs."""

    @pytest.mark.asyncio
    async def test_default_mode(self, fake_session_factory, routes):
        """Full view: enclosure entries plus the document scan, per source."""
        pipeline = make_pipeline(fake_session_factory, routes, chronological=False)

        result = await pipeline.run(SOURCES, now=NOW)

        assert isinstance(result, PipelineResult)
        assert result.total_sources == 4
        assert result.successful_fetches == 2
        assert result.fetch_success_rate == 50.0

        assert addresses(result.all_episodes) == [
            "http://a.example/new.mp3",
            "http://a.example/old.mp3",
            "http://a.example/new.mp3",
            "http://a.example/old.mp3",
            "http://a.example/desc.mp3",
            "http://d.example/1.mp3",
            "http://d.example/undated.mp3",
            "http://d.example/1.mp3",
            "http://d.example/extra.mp4",
            "http://d.example/undated.mp3",
        ]
        assert addresses(result.newest_episodes) == [
            "http://a.example/new.mp3",
            "http://d.example/1.mp3",
        ]

    @pytest.mark.asyncio
    async def test_chronological_mode(self, fake_session_factory, routes):
        """Full view: structured entries only, oldest first, undated leading."""
        pipeline = make_pipeline(fake_session_factory, routes, chronological=True)

        result = await pipeline.run(SOURCES, now=NOW)

        assert result.chronological is True
        assert [e.title for e in result.all_episodes] == [
            "D undated", "A old", "A desc", "A new", "D one",
        ]
        assert [e.title for e in result.newest_episodes] == ["A new", "D one"]

    @pytest.mark.asyncio
    async def test_chronological_with_filtered_all_view(self, fake_session_factory, routes):
        policy = FilterPolicy(apply_to_all_view=True)
        pipeline = make_pipeline(fake_session_factory, routes, chronological=True, policy=policy)

        result = await pipeline.run(SOURCES, now=NOW)

        assert [e.title for e in result.all_episodes] == ["A desc", "A new", "D one"]

    @pytest.mark.asyncio
    async def test_cutoff_disabled(self, fake_session_factory, routes):
        pipeline = make_pipeline(
            fake_session_factory, routes, chronological=False,
            policy=FilterPolicy(apply_cutoff=False),
        )

        result = await pipeline.run(SOURCES, now=datetime(2030, 1, 1, tzinfo=timezone.utc))

        assert [e.title for e in result.newest_episodes] == ["A new", "D one"]

    @pytest.mark.asyncio
    async def test_stale_feeds_have_no_newest_episode(self, fake_session_factory, routes):
        pipeline = make_pipeline(fake_session_factory, routes, chronological=False)

        result = await pipeline.run(SOURCES, now=datetime(2030, 1, 1, tzinfo=timezone.utc))

        assert result.newest_episodes == ()
        assert len(result.all_episodes) == 10

    @pytest.mark.asyncio
    async def test_output_follows_source_order_not_completion_order(
        self, fake_session_factory, routes
    ):
        """A slow first feed still comes first in the full view."""
        pipeline = make_pipeline(
            fake_session_factory, routes, chronological=False,
            delays={"http://a.example/feed.xml": 0.1},
        )

        result = await pipeline.run(SOURCES, now=NOW)

        assert result.all_episodes[0].source_name == "Show A"
        assert [e.source_name for e in result.newest_episodes] == ["Show A", "Show D"]

    @pytest.mark.asyncio
    async def test_all_feeds_failing(self, fake_session_factory):
        pipeline = make_pipeline(fake_session_factory, {}, chronological=False)

        result = await pipeline.run(SOURCES, now=NOW)

        assert result.successful_fetches == 0
        assert result.all_episodes == ()
        assert result.newest_episodes == ()

    @pytest.mark.asyncio
    async def test_empty_source_list(self, fake_session_factory):
        pipeline = make_pipeline(fake_session_factory, {}, chronological=False)

        result = await pipeline.run([], now=NOW)

        assert result.total_sources == 0
        assert result.fetch_success_rate == 0.0


class TestProcess:
    """Post-fetch processing without the network."""

    def test_unparseable_document_still_scanned(self, fake_session_factory):
        pipeline = make_pipeline(fake_session_factory, {}, chronological=False)
        results = [
            FetchResult(
                source_name="Broken",
                feed_url="http://broken.example/feed",
                success=True,
                content="<html><a href='http://broken.example/ep.mp3'>ep</a>",
            )
        ]

        views = pipeline.process(results, now=NOW)

        assert addresses(views.all_episodes) == ["http://broken.example/ep.mp3"]
        assert views.newest_episodes == ()

    def test_failed_results_ignored(self, fake_session_factory):
        pipeline = make_pipeline(fake_session_factory, {}, chronological=True)
        results = [
            FetchResult(source_name="X", feed_url="http://x.example/", success=False, error="HTTP 500"),
        ]

        views = pipeline.process(results, now=NOW)

        assert views.all_episodes == ()
