"""
RSS Feed Parser
==============

Feed parsing built on feedparser. Only the four fields the mirror needs are
read from each entry: title, link, guid (the HN discussion link) and the
publish date. Parser warnings (bozo feeds) are tolerated as long as
entries were recovered.
"""

from datetime import datetime, timezone
from typing import Any, Optional

import feedparser

from ..models import Feed, FeedItem
from ..utils.exceptions import ParseError, ErrorCode
from ..utils.logging import get_logger_for_component

_DATE_FIELDS = ("published_parsed", "updated_parsed", "created_parsed")

logger = get_logger_for_component("feed_parser")


def parse_date(entry: Any) -> Optional[datetime]:
    """Return the entry's publish date as an aware UTC datetime.

    feedparser normalizes every date it understands to a UTC
    ``time.struct_time``; None means no usable date was present.
    """
    for field in _DATE_FIELDS:
        date_tuple = entry.get(field)
        if date_tuple:
            try:
                return datetime(*date_tuple[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError, OverflowError):
                continue

    return None


def _entry_to_item(entry: Any) -> FeedItem:
    return FeedItem(
        title=(entry.get("title") or "").strip(),
        link=(entry.get("link") or "").strip(),
        external_id=(entry.get("id") or "").strip(),
        published_at=parse_date(entry),
    )


def parse_feed(raw_markup: str) -> Feed:
    """Convert every feed entry to a FeedItem, in document order.

    Missing fields become empty strings and a missing or unparseable date
    becomes None; individual items never cause a failure.

    Raises:
        ParseError: If no item could be extracted at all
    """
    if not raw_markup or not raw_markup.strip():
        raise ParseError("Feed document is empty", error_code=ErrorCode.FEED_EMPTY)

    feed_data = feedparser.parse(raw_markup)

    if not feed_data.entries:
        detail = f": {feed_data.bozo_exception}" if feed_data.get("bozo") else ""
        raise ParseError(f"Feed contains no items{detail}", error_code=ErrorCode.FEED_EMPTY)

    if feed_data.get("bozo"):
        logger.warning(f"Feed parsed with warnings: {feed_data.get('bozo_exception')}")

    return Feed(items=[_entry_to_item(entry) for entry in feed_data.entries])


def validate_feed(feed: Optional[Feed]) -> Feed:
    """Fail fast on a feed that indicates an upstream problem.

    Raises:
        ParseError: If the feed is missing or empty, or any item lacks a
            publish date
    """
    if feed is None:
        raise ParseError("Feed is missing after parsing", error_code=ErrorCode.FEED_EMPTY)

    if not feed.items:
        raise ParseError("Feed items are empty", error_code=ErrorCode.FEED_EMPTY)

    for index, item in enumerate(feed.items):
        if item.published_at is None:
            raise ParseError(
                f"Feed item at index {index} has no publish date",
                item_index=index,
                error_code=ErrorCode.FEED_MISSING_DATE,
            )

    return feed
