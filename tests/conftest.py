"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for HNMirror tests.

Network and Reddit access are replaced with in-memory fakes so that the
whole suite runs offline.
"""

import pytest
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
os.environ["HNMIRROR_REDDIT__CLIENT_ID"] = "test-client-id"
os.environ["HNMIRROR_REDDIT__CLIENT_SECRET"] = "test-client-secret"
os.environ["HNMIRROR_REDDIT__USERNAME"] = "test-bot"
os.environ["HNMIRROR_REDDIT__PASSWORD"] = "test-password"
os.environ["HNMIRROR_PROCESSING__POST_DELAY_MS"] = "0"
os.environ["HNMIRROR_LOGGING__FILE_PATH"] = ""
os.environ["HNMIRROR_DEBUG"] = "true"

from hnmirror.config.settings import HNMirrorSettings
from hnmirror.models import Feed, FeedItem, ListedPost
from hnmirror.publishing.base import ListingCategory, ListingSource, PublishingSink
from hnmirror.utils.exceptions import CommentError, PublishError


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """Settings with credentials, no pacing and no log file."""
    return HNMirrorSettings(
        reddit={
            "client_id": "test-client-id",
            "client_secret": "test-client-secret",
            "username": "test-bot",
            "password": "test-password",
            "subreddit": "testsub",
        },
        processing={"post_delay_ms": 0},
        logging={"file_path": None, "console_logging": False},
    )


# ============================================================================
# Collaborator Fakes
# ============================================================================


class FakeListingSource(ListingSource):
    """Serves canned posts per category; a category mapped to an exception raises it."""

    def __init__(self, listings: Optional[Dict[ListingCategory, object]] = None):
        self.listings = listings or {}
        self.calls: List[ListingCategory] = []

    async def list_by_category(self, category, limit):
        self.calls.append(category)
        result = self.listings.get(category, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class RecordingSink(PublishingSink):
    """Records posts and comments; failures can be scripted per title or post id."""

    def __init__(self, fail_titles=(), fail_comments=False, empty_id_titles=()):
        self.posts: List[tuple] = []
        self.comments: List[tuple] = []
        self.fail_titles = set(fail_titles)
        self.fail_comments = fail_comments
        self.empty_id_titles = set(empty_id_titles)
        self.submit_attempts: List[str] = []

    async def submit_post(self, title, url):
        self.submit_attempts.append(title)
        if title in self.fail_titles:
            raise PublishError("Submission rejected", title=title)
        if title in self.empty_id_titles:
            return ""
        post_id = f"post{len(self.posts) + 1}"
        self.posts.append((post_id, title, url))
        return post_id

    async def add_comment(self, post_id, text):
        if self.fail_comments:
            raise CommentError("Comment rejected", post_id=post_id)
        self.comments.append((post_id, text))
        return f"comment{len(self.comments)}"


@pytest.fixture
def listing_source():
    return FakeListingSource()


@pytest.fixture
def sink():
    return RecordingSink()


# ============================================================================
# Data Fixtures
# ============================================================================


def make_item(index: int, link: Optional[str] = None, title: Optional[str] = None,
              guid: Optional[str] = None, published: bool = True) -> FeedItem:
    """Build a feed item with distinct title and link."""
    return FeedItem(
        title=title if title is not None else f"Story number {index} about topic {index}",
        link=link if link is not None else f"https://example{index}.com/article",
        external_id=guid if guid is not None else f"https://news.ycombinator.com/item?id={1000 + index}",
        published_at=datetime.now(timezone.utc) - timedelta(minutes=index) if published else None,
    )


def make_listed(url: str, title: str, hours_ago: float = 1, removed: bool = False) -> ListedPost:
    return ListedPost(
        url=url,
        title=title,
        created_at=datetime.now(timezone.utc) - timedelta(hours=hours_ago),
        removed=removed,
    )


@pytest.fixture
def sample_feed():
    return Feed(items=[make_item(i) for i in range(1, 4)])


SAMPLE_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Hacker News: Front Page</title>
    <link>https://news.ycombinator.com/</link>
    <item>
      <title><![CDATA[Show HN: A tiny database in 500 lines]]></title>
      <link>https://example.com/tiny-db</link>
      <guid isPermaLink="false">https://news.ycombinator.com/item?id=40000001</guid>
      <pubDate>Mon, 01 Jul 2024 12:00:00 +0000</pubDate>
    </item>
    <item>
      <title>Rust &amp; Python interop</title>
      <link>https://blog.example.org/rust-python?ref=hn</link>
      <guid isPermaLink="false">https://news.ycombinator.com/item?id=40000002</guid>
      <pubDate>Mon, 01 Jul 2024 11:30:00 +0000</pubDate>
    </item>
    <item>
      <title>Ask HN: What are you working on?</title>
      <link>https://news.ycombinator.com/item?id=40000003</link>
      <guid isPermaLink="false">https://news.ycombinator.com/item?id=40000003</guid>
      <pubDate>Mon, 01 Jul 2024 11:00:00 +0000</pubDate>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def sample_feed_xml():
    return SAMPLE_FEED_XML


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def listed_factory():
    return make_listed


@pytest.fixture
def sink_factory():
    return RecordingSink


@pytest.fixture
def listing_factory():
    return FakeListingSource
