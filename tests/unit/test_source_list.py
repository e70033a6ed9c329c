"""
Source List Reader Tests
========================

OPML parsing and file reading.
"""

import logging
import sys
import warnings
from pathlib import Path

import pytest
from bs4 import XMLParsedAsHTMLWarning

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from podscraper.ingestion.source_list import parse_opml, read_source_list
from podscraper.utils.exceptions import ErrorCode, SourceListError


SUBSCRIPTIONS_OPML = """<?xml version="1.0" encoding="UTF-8"?>
<opml version="1.0">
  <head><title>Podcast Subscriptions</title></head>
  <body>
    <outline text="My Subscriptions" xmlUrl="http://self.example/subscriptions.xml"/>
    <outline text="Feeds">
      <outline type="rss" text="Show A" xmlUrl="http://a.example/feed.xml"/>
      <outline type="rss" text="Show &amp; B" xmlUrl="https://b.example/rss?x=1&amp;y=2"/>
      <outline type="rss" text="Broken" xmlUrl="ftp://c.example/feed"/>
      <outline text="No address"/>
      <outline type="rss" xmlUrl="http://d.example/nameless.xml"/>
    </outline>
  </body>
</opml>
"""


class TestParseOpml:
    """OPML parsing."""

    def test_first_entry_skipped_by_default(self):
        sources = parse_opml(SUBSCRIPTIONS_OPML)

        assert [(s.name, s.address) for s in sources] == [
            ("Show A", "http://a.example/feed.xml"),
            ("Show & B", "https://b.example/rss?x=1&y=2"),
        ]

    def test_keep_first_entry(self):
        sources = parse_opml(SUBSCRIPTIONS_OPML, skip_first=False)

        assert [s.name for s in sources] == ["My Subscriptions", "Show A", "Show & B"]

    def test_invalid_address_logged_and_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="podscraper.source_list"):
            sources = parse_opml(SUBSCRIPTIONS_OPML)

        assert "Broken" not in [s.name for s in sources]
        assert "ftp://c.example/feed" in caplog.text

    def test_accepts_bytes(self):
        assert len(parse_opml(SUBSCRIPTIONS_OPML.encode("utf-8"))) == 2

    def test_document_without_feeds(self):
        assert parse_opml("<opml><body></body></opml>") == []

    def test_lenient_with_broken_markup(self):
        """Unclosed outlines still yield their feeds."""
        broken = (
            '<opml><body><outline text="Self" xmlUrl="http://self.example/">'
            '<outline text="Show" xmlUrl="http://show.example/rss">'
        )
        assert [s.name for s in parse_opml(broken)] == ["Show"]

    def test_xml_declaration_parses_quietly(self):
        """Parsing OPML with the HTML parser emits no XML-as-HTML warning."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            sources = parse_opml(SUBSCRIPTIONS_OPML)

        assert len(sources) == 2
        assert not [w for w in caught if issubclass(w.category, XMLParsedAsHTMLWarning)]


class TestReadSourceList:
    """Reading the feed list file."""

    def test_read_file(self, tmp_path):
        opml_file = tmp_path / "feeds.opml"
        opml_file.write_text(SUBSCRIPTIONS_OPML, encoding="utf-8")

        sources = read_source_list(opml_file)

        assert [s.name for s in sources] == ["Show A", "Show & B"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceListError) as exc_info:
            read_source_list(tmp_path / "missing.opml")

        error = exc_info.value
        assert error.error_code == ErrorCode.SOURCE_LIST_UNREADABLE
        assert error.recoverable is False
        assert error.context["path"].endswith("missing.opml")

    def test_directory_is_not_a_source_list(self, tmp_path):
        with pytest.raises(SourceListError):
            read_source_list(tmp_path)
