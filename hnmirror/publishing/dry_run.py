"""
Dry-Run Sink
===========

Publishing sink that logs what would have been posted. Listing still goes
through the real source so duplicate checks behave as in production.
"""

import itertools
from typing import List, Tuple

from ..utils.logging import get_logger_for_component
from .base import PublishingSink


class DryRunSink(PublishingSink):
    """Records submissions in memory instead of sending them."""

    def __init__(self):
        self.logger = get_logger_for_component("dry_run")
        self.posts: List[Tuple[str, str]] = []
        self.comments: List[Tuple[str, str]] = []
        self._ids = itertools.count(1)

    async def submit_post(self, title: str, url: str) -> str:
        post_id = f"dry{next(self._ids)}"
        self.posts.append((title, url))
        self.logger.info(f"[dry-run] would post '{title}' -> {url}")
        return post_id

    async def add_comment(self, post_id: str, text: str) -> str:
        comment_id = f"dry{next(self._ids)}"
        self.comments.append((post_id, text))
        self.logger.info(f"[dry-run] would comment on {post_id}: {text}")
        return comment_id
