"""
HNMirror Publishing Module
=========================

Listing and posting collaborators for the target subreddit.
"""

from .base import ListingCategory, ListingSource, PublishingSink
from .dry_run import DryRunSink

__all__ = [
    'ListingCategory',
    'ListingSource',
    'PublishingSink',
    'DryRunSink',
]
