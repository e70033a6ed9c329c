"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for PodScraper tests.

Nothing here touches the network: fetcher tests install an in-memory
session (see ``FakeSession``) in place of aiohttp.
"""

import asyncio
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep test runs independent of the developer's environment
for _key in list(os.environ):
    if _key.startswith("PODSCRAPER_"):
        del os.environ[_key]
os.environ["PODSCRAPER_LOGGING__CONSOLE_LOGGING"] = "false"


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop the cached settings singleton after every test."""
    yield
    from podscraper.config import settings as settings_module

    settings_module._settings = None


# ============================================================================
# In-memory HTTP session
# ============================================================================


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse."""

    def __init__(self, status=200, body="", reason="OK"):
        self.status = status
        self.reason = reason
        self.body = body

    async def text(self):
        if isinstance(self.body, BaseException):
            raise self.body
        return self.body


class FakeSession:
    """Instrumented session recording how many requests overlap.

    ``routes`` maps URL to either a FakeResponse or an exception raised when
    the request is issued. ``delays`` optionally maps URL to seconds spent
    "on the wire".
    """

    def __init__(self, routes, delay=0.01, delays=None):
        self.routes = routes
        self.delay = delay
        self.delays = delays or {}
        self.in_flight = 0
        self.high_water = 0
        self.requested = []

    @asynccontextmanager
    async def get(self, url):
        self.in_flight += 1
        self.high_water = max(self.high_water, self.in_flight)
        self.requested.append(url)
        try:
            await asyncio.sleep(self.delays.get(url, self.delay))
            route = self.routes.get(url, FakeResponse(status=404, reason="Not Found"))
            if isinstance(route, BaseException):
                raise route
            yield route
        finally:
            self.in_flight -= 1


def install_session(fetcher, session):
    """Make ``fetcher`` use ``session`` instead of opening an aiohttp session."""

    @asynccontextmanager
    async def fake_get_session():
        yield session

    fetcher.get_session = fake_get_session
    return session


@pytest.fixture
def fake_session_factory():
    """Build a FakeSession and install it on a fetcher in one call."""

    def factory(fetcher, routes, **kwargs):
        return install_session(fetcher, FakeSession(routes, **kwargs))

    return factory


# ============================================================================
# Sample documents
# ============================================================================


SHOW_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example Show</title>
    <link>http://a.example/</link>
    <description>An example podcast</description>
    <item>
      <title>Episode One</title>
      <description>Also at &lt;a href="http://a.example/other.mp3"&gt;mirror&lt;/a&gt;</description>
      <enclosure url="http://a.example/ep.mp3" length="1024" type="audio/mpeg"/>
      <pubDate>Fri, 01 Mar 2024 10:00:00 +0000</pubDate>
    </item>
    <item>
      <title>Episode Two</title>
      <description>Listen: http://a.example/ep2.mp3</description>
      <pubDate>Mon, 01 Jan 2024 08:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Episode Three</title>
      <description>Show notes only</description>
      <content:encoded><![CDATA[<p><a href="https://cdn.example/ep3.mp4?token=abc">video</a></p>]]></content:encoded>
      <pubDate>not a date</pubDate>
    </item>
    <item>
      <title>Announcement</title>
      <description>No media in this one</description>
      <pubDate>Tue, 02 Jan 2024 08:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def show_rss():
    """RSS document mixing enclosure, description and encoded-content media."""
    return SHOW_RSS


@pytest.fixture
def fixed_now():
    """Reference time used by cutoff tests."""
    return datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_episode():
    """Factory for Episode records with short keyword arguments."""
    from podscraper.models import Episode

    def factory(source="X", date=None, url=None, title="Untitled"):
        published_at = None
        if date is not None:
            published_at = datetime.fromisoformat(date).replace(tzinfo=timezone.utc)
        return Episode(
            source_name=source,
            title=title,
            published_at=published_at,
            media_address=url or f"http://{source.lower()}.example/{date or 'undated'}.mp3",
        )

    return factory
