"""
RSS Feed Fetcher
===============

Fetches the upstream front-page feed over HTTP and turns it into a
validated Feed.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlencode, urlunsplit

import aiohttp
import certifi

from ..config.settings import get_settings, HNMirrorSettings
from ..models import Feed
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import FeedFetchError, ErrorCode
from .feed_parser import parse_feed, validate_feed


def build_feed_url(settings: Optional[HNMirrorSettings] = None) -> str:
    """Build the feed URL with its upstream filtering parameters.

    >>> build_feed_url()
    'https://hnrss.org/frontpage?count=50&points=100&comments=10'
    """
    feed = (settings or get_settings()).feed
    query = urlencode({
        "count": feed.count,
        "points": feed.points_threshold,
        "comments": feed.comments_threshold,
    })
    return urlunsplit((feed.protocol, feed.base_url, f"/{feed.feed_path}", query, ""))


class FeedFetcher:
    """Downloads and parses the upstream RSS feed."""

    def __init__(self, settings: Optional[HNMirrorSettings] = None, timeout: Optional[int] = None):
        """Initialize feed fetcher.

        Args:
            settings: Application settings (default: global settings)
            timeout: Request timeout in seconds (default from config)
        """
        self.settings = settings or get_settings()
        self.timeout = timeout or self.settings.feed.request_timeout
        self.feed_url = build_feed_url(self.settings)
        self.logger = get_logger_for_component("feed_fetcher")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit=2)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {
            "User-Agent": f"{self.settings.app_name}/{self.settings.version}",
            "Accept": "application/rss+xml, application/xml, text/xml, */*",
        }

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch_text(self, session: aiohttp.ClientSession) -> str:
        """GET the feed and return its body.

        Raises:
            FeedFetchError: On a non-2xx status, timeout or network failure
        """
        try:
            async with session.get(self.feed_url) as response:
                if not 200 <= response.status < 300:
                    raise FeedFetchError(
                        f"Failed to fetch RSS feed: HTTP {response.status} {response.reason or ''}".rstrip(),
                        source=self.feed_url,
                        error_code=ErrorCode.FEED_BAD_STATUS,
                    )
                return await response.text()

        except asyncio.TimeoutError as e:
            raise FeedFetchError(
                f"Feed request timed out after {self.timeout}s",
                source=self.feed_url,
                error_code=ErrorCode.FEED_FETCH_TIMEOUT,
            ) from e
        except aiohttp.ClientError as e:
            raise FeedFetchError(
                f"Feed request failed: {e}",
                source=self.feed_url,
                error_code=ErrorCode.FEED_NETWORK_ERROR,
            ) from e

    async def fetch_feed(self, session: Optional[aiohttp.ClientSession] = None) -> Feed:
        """Fetch, parse and validate the feed.

        Args:
            session: Existing session to reuse; a private one is opened otherwise

        Returns:
            Feed with at least one item, every item carrying a publish date

        Raises:
            FeedFetchError: If the feed cannot be downloaded
            ParseError: If the feed is empty or malformed
        """
        self.logger.info(f"Getting feed: {self.feed_url}")

        with PerformanceLogger(self.logger, "feed fetch", feed_url=self.feed_url):
            if session is not None:
                xml_text = await self.fetch_text(session)
            else:
                async with self.get_session() as own_session:
                    xml_text = await self.fetch_text(own_session)

            feed = validate_feed(parse_feed(xml_text))

        self.logger.info(f"Fetched {len(feed)} feed items")
        return feed
