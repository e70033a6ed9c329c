"""
Feed Fetcher
============

Concurrent feed retrieval under a fixed concurrency ceiling. Every source
gets exactly one attempt; failures are logged and reported as unsuccessful
results, never raised.
"""

import asyncio
import aiohttp
from datetime import datetime, timezone
from typing import List, Optional, AsyncGenerator, Iterable
from dataclasses import dataclass, field
import ssl
import certifi
from contextlib import asynccontextmanager

from ..models import Source
from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ConfigurationError, ErrorCode, ValidationError
from ..utils.validators import URLValidator


@dataclass
class FetchResult:
    """Result of one feed fetch attempt."""

    source_name: str
    feed_url: str
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    fetch_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def content_length(self) -> int:
        return len(self.content) if self.content else 0


class FeedFetcher:
    """Concurrent feed fetcher with per-source failure isolation."""

    def __init__(
        self,
        max_concurrent: Optional[int] = None,
        timeout: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        """Initialize feed fetcher.

        Args:
            max_concurrent: Maximum concurrent requests (default from config)
            timeout: Per-request timeout in seconds (default from config)
            user_agent: User-Agent header value (default from config)

        Raises:
            ConfigurationError: If max_concurrent is below 1
        """
        settings = get_settings()
        self.max_concurrent = (
            max_concurrent if max_concurrent is not None else settings.fetch.max_concurrent
        )
        self.timeout = timeout if timeout is not None else settings.fetch.request_timeout
        self.user_agent = user_agent or settings.fetch.user_agent
        self.logger = get_logger_for_component("feed_fetcher")

        if self.max_concurrent < 1:
            raise ConfigurationError(
                f"max_concurrent must be at least 1, got {self.max_concurrent}",
                config_key="fetch.max_concurrent",
                error_code=ErrorCode.CONFIG_INVALID,
            )

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get the configured aiohttp session shared by one run."""
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.max_concurrent,
            enable_cleanup_closed=True,
        )

        timeout = aiohttp.ClientTimeout(total=self.timeout)

        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch_feed(
        self, source: Source, session: aiohttp.ClientSession
    ) -> FetchResult:
        """Fetch the raw document of a single source.

        Args:
            source: Source to fetch
            session: aiohttp session for requests

        Returns:
            FetchResult with the document text, or the failure reason and its
            error code
        """
        start_time = datetime.now(timezone.utc)
        logger = get_logger_for_component("feed_fetcher", source_name=source.name)

        try:
            validated_url = URLValidator.validate_feed_url(source.address)

            logger.debug(f"Fetching feed '{source.name}': {validated_url}")

            async with session.get(validated_url) as response:
                if not 200 <= response.status < 300:
                    error_msg = f"HTTP {response.status}: {response.reason}"
                    logger.warning(
                        f"Feed fetch failed for '{source.name}' ({validated_url}): {error_msg}"
                    )
                    return self._failure(
                        source, error_msg, start_time, ErrorCode.FEED_BAD_STATUS
                    )

                content = await response.text()

            logger.debug(
                f"Fetched {len(content)} chars from '{source.name}' "
                f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
            )

            return FetchResult(
                source_name=source.name,
                feed_url=source.address,
                success=True,
                content=content,
                fetch_time=start_time,
            )

        except asyncio.TimeoutError:
            error_msg = f"Request timeout after {self.timeout}s"
            logger.warning(f"Feed fetch timeout for '{source.name}': {error_msg}")
            return self._failure(source, error_msg, start_time, ErrorCode.FEED_FETCH_TIMEOUT)

        except UnicodeDecodeError as e:
            error_msg = f"Undecodable response body: {e.reason}"
            logger.warning(f"Feed fetch failed for '{source.name}': {error_msg}")
            return self._failure(source, error_msg, start_time, ErrorCode.FEED_DECODE_ERROR)

        except aiohttp.ClientError as e:
            error_msg = f"Network error: {str(e) or type(e).__name__}"
            logger.warning(f"Feed fetch failed for '{source.name}': {error_msg}")
            return self._failure(source, error_msg, start_time, ErrorCode.FEED_NETWORK_ERROR)

        except ValidationError as e:
            logger.warning(f"Skipping '{source.name}': {e}")
            return self._failure(source, str(e), start_time, ErrorCode.FEED_INVALID_URL)

        except Exception as e:
            error_msg = f"Fetch error: {str(e)}"
            logger.error(f"Feed fetch failed for '{source.name}': {error_msg}", exc_info=True)
            return self._failure(source, error_msg, start_time, ErrorCode.FEED_FETCH_FAILED)

    @staticmethod
    def _failure(
        source: Source, error: str, start_time: datetime, error_code: ErrorCode
    ) -> FetchResult:
        return FetchResult(
            source_name=source.name,
            feed_url=source.address,
            success=False,
            error=error,
            error_code=error_code,
            fetch_time=start_time,
        )

    async def fetch_feeds(
        self, sources: Iterable[Source]
    ) -> AsyncGenerator[FetchResult, None]:
        """Fetch many sources concurrently.

        At most ``max_concurrent`` requests are in flight at any moment. The
        semaphore slot is released when a fetch finishes, whatever its outcome.

        Args:
            sources: Sources to fetch

        Yields:
            FetchResult objects in completion order
        """
        sources = list(sources)
        if not sources:
            return

        self.logger.info(
            f"Starting concurrent fetch of {len(sources)} feeds "
            f"(max {self.max_concurrent} in flight)"
        )

        async with self.get_session() as session:
            semaphore = asyncio.Semaphore(self.max_concurrent)

            async def fetch_with_semaphore(source: Source) -> FetchResult:
                async with semaphore:
                    return await self.fetch_feed(source, session)

            tasks = [fetch_with_semaphore(source) for source in sources]

            for completed_task in asyncio.as_completed(tasks):
                result = await completed_task
                yield result

    async def fetch_feeds_batch(self, sources: Iterable[Source]) -> List[FetchResult]:
        """Fetch many sources and return the successful results.

        Args:
            sources: Sources to fetch

        Returns:
            Successful FetchResult objects in completion order
        """
        results = []
        async for result in self.fetch_feeds(sources):
            results.append(result)

        successful = [r for r in results if r.success]

        self.logger.info(
            f"Feed fetch complete: {len(successful)}/{len(results)} feeds successful"
        )

        return successful
