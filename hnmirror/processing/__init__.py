"""
HNMirror Processing Module
=========================

Duplicate filtering and publishing of feed items.
"""

from .url_normalizer import normalize_url
from .duplicate_detector import is_duplicate
from .feed_processor import FeedProcessor, PublishOutcome

__all__ = [
    'normalize_url',
    'is_duplicate',
    'FeedProcessor',
    'PublishOutcome',
]
