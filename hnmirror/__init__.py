"""
HNMirror - Hacker News to Reddit Mirror
=======================================

Mirrors front-page Hacker News stories into a subreddit.

Main Components:
- Ingestion: RSS fetching and regex-based item extraction
- Processing: URL normalization, duplicate detection, paced publishing
- Publishing: PRAW-backed Reddit gateway and a dry-run sink
- Scheduler: Interval and manual cycle triggers
"""

__version__ = "0.1.0"
__author__ = "HNMirror Development Team"
__description__ = "Hacker News front page mirror for Reddit"

from .config.settings import get_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import HNMirrorError

__all__ = [
    "get_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "HNMirrorError",
]
