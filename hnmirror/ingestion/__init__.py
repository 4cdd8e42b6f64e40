"""
HNMirror Ingestion Module
========================

Upstream feed fetching and parsing.
"""

from .feed_parser import parse_feed, validate_feed
from .feed_fetcher import FeedFetcher, build_feed_url

__all__ = [
    'parse_feed',
    'validate_feed',
    'FeedFetcher',
    'build_feed_url',
]
