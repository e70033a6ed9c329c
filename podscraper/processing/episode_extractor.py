"""
Episode Extractor
=================

Turns one source's raw feed document into Episode records.

Two extraction modes are provided:

- structured: parse the document with feedparser and build one episode per
  entry, taking the enclosure URL or, failing that, the first media URL found
  in the entry's description and encoded content;
- document scan: search the whole raw text for media URLs, one episode per
  distinct URL, for feeds that put their media links where the parser does
  not look.

Neither mode raises on malformed input. An entry without a usable media
address is skipped.
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional

import feedparser
from pydantic import ValidationError as PydanticValidationError

from ..models import Episode, UNKNOWN_TITLE
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator, ContentValidator


# Absolute http(s) URL ending in a media extension. The query string, when
# present, is not part of the captured address. Sentence punctuation counts
# as a terminator only when whitespace or the end of text follows it.
MEDIA_URL_PATTERN = re.compile(
    r"""(https?://[^\s"'<>]+?\.(?:mp3|mp4))(?=[?"'<>&)\s]|[.,;:!](?:\s|$)|$)"""
)


def find_media_urls(text: str) -> List[str]:
    """Return the distinct media URLs in ``text`` in order of first occurrence."""
    if not text:
        return []
    return [
        url
        for url in dict.fromkeys(MEDIA_URL_PATTERN.findall(text))
        if URLValidator.is_absolute_http_url(url)
    ]


def parse_rfc2822_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 2822 date string into an aware UTC datetime.

    Returns None for missing or unparseable input.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError, OverflowError):
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        # "-0000" means UTC with unknown local offset
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class EpisodeExtractor:
    """Extracts episodes from raw feed documents."""

    def __init__(self):
        self.logger = get_logger_for_component("episode_extractor")

    def parse(self, content: str, source_name: str = "") -> Optional[Any]:
        """Parse a raw document with feedparser.

        Args:
            content: Raw document text
            source_name: Owning source, for log messages

        Returns:
            Parsed feed, or None when the document yields nothing usable
        """
        if not content:
            return None

        feed_data = feedparser.parse(content)

        if getattr(feed_data, "bozo", False):
            entries = getattr(feed_data, "entries", None)
            error = getattr(feed_data, "bozo_exception", "invalid XML structure")
            if not entries:
                self.logger.info(f"Feed parse failed for '{source_name}': {error}")
                return None
            self.logger.debug(
                f"Feed '{source_name}' has parse warnings but contains entries: {error}"
            )

        return feed_data

    def extract_items(
        self, source_name: str, content: str, fallback: bool = True
    ) -> List[Episode]:
        """Build one episode per structured feed entry.

        Args:
            source_name: Display name of the owning source
            content: Raw document text
            fallback: Search description and encoded content when an entry
                has no enclosure

        Returns:
            Episodes in entry order
        """
        feed_data = self.parse(content, source_name)
        if feed_data is None:
            return []

        episodes = []
        skipped = 0

        for entry in feed_data.entries:
            media_address = self._resolve_media_address(entry, fallback)
            if media_address is None:
                skipped += 1
                continue

            try:
                episode = Episode(
                    source_name=source_name,
                    title=ContentValidator.sanitize_title(entry.get("title")) or UNKNOWN_TITLE,
                    published_at=parse_rfc2822_date(entry.get("published")),
                    media_address=media_address,
                )
            except PydanticValidationError as e:
                self.logger.debug(f"Skipping entry in '{source_name}': {e}")
                skipped += 1
                continue

            episodes.append(episode)

        self.logger.debug(
            f"Extracted {len(episodes)} episodes from '{source_name}' "
            f"({skipped} entries without media)"
        )
        return episodes

    def scan_document(self, source_name: str, content: str) -> List[Episode]:
        """Build one undated episode per distinct media URL in the raw text.

        Args:
            source_name: Display name of the owning source
            content: Raw document text

        Returns:
            Episodes in order of first occurrence
        """
        return [
            Episode(source_name=source_name, media_address=url)
            for url in find_media_urls(content)
        ]

    def _resolve_media_address(self, entry: Any, fallback: bool) -> Optional[str]:
        """Pick the media URL of one entry.

        Enclosures win. Otherwise, when ``fallback`` is set, the first media
        URL in the description followed by the encoded content is used.
        """
        enclosure_url = self._enclosure_url(entry)
        if enclosure_url:
            return enclosure_url

        if not fallback:
            return None

        matches = find_media_urls(self._searchable_text(entry))
        return matches[0] if matches else None

    @staticmethod
    def _enclosure_url(entry: Any) -> Optional[str]:
        """First absolute enclosure URL declared by the entry, if any."""
        candidates = [enc.get("href") for enc in entry.get("enclosures", [])]
        candidates.extend(
            link.get("href")
            for link in entry.get("links", [])
            if link.get("rel") == "enclosure"
        )

        for url in candidates:
            if url:
                url = url.strip()
                if URLValidator.is_absolute_http_url(url):
                    return url
        return None

    @staticmethod
    def _searchable_text(entry: Any) -> str:
        """Description and encoded content of an entry joined by a space."""
        description = entry.get("summary") or entry.get("description") or ""

        encoded = []
        for item in entry.get("content", []):
            value = item.get("value") if isinstance(item, dict) else None
            if value:
                encoded.append(value)

        return " ".join([description, *encoded])
