"""
Reddit Gateway
=============

PRAW-backed implementation of the listing source and publishing sink.
PRAW is synchronous, so every API call runs in a worker thread to keep
the event loop responsive.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional

import praw
from praw.exceptions import PRAWException
from prawcore.exceptions import PrawcoreException

from ..config.settings import get_settings, HNMirrorSettings
from ..models import ListedPost
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import (
    ConfigurationError,
    ListingFetchError,
    PublishError,
    CommentError,
    ErrorCode,
)
from .base import ListingCategory, ListingSource, PublishingSink

REDDIT_ERRORS = (PRAWException, PrawcoreException)


def make_reddit_client(settings: HNMirrorSettings) -> praw.Reddit:
    """Create an authenticated script-app client from settings.

    Raises:
        ConfigurationError: If any credential is missing
    """
    reddit_settings = settings.reddit
    missing = reddit_settings.missing_credentials()
    if missing:
        raise ConfigurationError(
            f"Missing Reddit credentials: {', '.join(missing)}",
            config_key="reddit",
            error_code=ErrorCode.CONFIG_MISSING,
        )

    return praw.Reddit(
        client_id=reddit_settings.client_id,
        client_secret=reddit_settings.client_secret,
        username=reddit_settings.username,
        password=reddit_settings.password,
        user_agent=reddit_settings.user_agent,
        requestor_kwargs={"timeout": reddit_settings.request_timeout},
    )


def _listed_post(submission) -> ListedPost:
    # vars() avoids PRAW's lazy fetch for attributes absent from the listing
    attrs = vars(submission)
    removed = bool(attrs.get("removed") or attrs.get("removed_by_category"))
    return ListedPost(
        url=attrs.get("url") or "",
        title=attrs.get("title") or "",
        created_at=datetime.fromtimestamp(float(attrs.get("created_utc") or 0), tz=timezone.utc),
        removed=removed,
    )


class RedditClient(ListingSource, PublishingSink):
    """Reads listings from and posts to one subreddit."""

    def __init__(self, settings: Optional[HNMirrorSettings] = None, reddit: Optional[praw.Reddit] = None):
        """Initialize the gateway.

        Args:
            settings: Application settings (default: global settings)
            reddit: Pre-built PRAW client, mainly for tests
        """
        self.settings = settings or get_settings()
        self.subreddit_name = self.settings.reddit.subreddit
        self.reddit = reddit or make_reddit_client(self.settings)
        self.logger = get_logger_for_component("reddit", subreddit=self.subreddit_name)

    def _list_sync(self, category: ListingCategory, limit: int) -> List[ListedPost]:
        subreddit = self.reddit.subreddit(self.subreddit_name)
        if category == ListingCategory.NEW:
            listing = subreddit.new(limit=limit)
        elif category == ListingCategory.HOT:
            listing = subreddit.hot(limit=limit)
        else:
            listing = subreddit.top(time_filter="week", limit=limit)
        return [_listed_post(submission) for submission in listing]

    async def list_by_category(self, category: ListingCategory, limit: int) -> List[ListedPost]:
        try:
            return await asyncio.to_thread(self._list_sync, ListingCategory(category), limit)
        except REDDIT_ERRORS as e:
            raise ListingFetchError(
                f"Failed to get {ListingCategory(category).value} listings: {e}",
                category=ListingCategory(category).value,
            ) from e

    def _submit_sync(self, title: str, url: str) -> str:
        submission = self.reddit.subreddit(self.subreddit_name).submit(title, url=url)
        return getattr(submission, "id", "") or ""

    async def submit_post(self, title: str, url: str) -> str:
        try:
            post_id = await asyncio.to_thread(self._submit_sync, title, url)
        except REDDIT_ERRORS as e:
            raise PublishError(f"Failed to create Reddit post: {e}", title=title) from e

        if not post_id:
            raise PublishError(
                "No post id returned", title=title, error_code=ErrorCode.PUBLISH_NO_ID
            )

        self.logger.info(f"Created post {post_id}: {title}")
        return post_id

    def _comment_sync(self, post_id: str, text: str) -> str:
        comment = self.reddit.submission(id=post_id).reply(text)
        return getattr(comment, "id", "") or ""

    async def add_comment(self, post_id: str, text: str) -> str:
        try:
            comment_id = await asyncio.to_thread(self._comment_sync, post_id, text)
        except REDDIT_ERRORS as e:
            raise CommentError(f"Failed to post comment: {e}", post_id=post_id) from e

        if not comment_id:
            raise CommentError(
                "No comment id returned", post_id=post_id, error_code=ErrorCode.COMMENT_NO_ID
            )

        return comment_id
