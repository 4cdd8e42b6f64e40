"""
Publishing Interfaces
====================

Abstract collaborators used by the feed processor: a listing source that
reports what is already published, and a sink that creates posts and
comments.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List

from ..models import ListedPost


class ListingCategory(str, Enum):
    """Listing views consulted for existing posts."""
    NEW = "new"
    HOT = "hot"
    TOP_OF_WEEK = "top"


class ListingSource(ABC):
    """Reports recent posts of the target community."""

    @abstractmethod
    async def list_by_category(self, category: ListingCategory, limit: int) -> List[ListedPost]:
        """Return up to ``limit`` posts from one listing view.

        Raises:
            ListingFetchError: If the listing cannot be read
        """


class PublishingSink(ABC):
    """Creates posts and follow-up comments."""

    @abstractmethod
    async def submit_post(self, title: str, url: str) -> str:
        """Submit a link post.

        Returns:
            Identifier of the created post, never empty

        Raises:
            PublishError: If the submission is rejected or yields no id
        """

    @abstractmethod
    async def add_comment(self, post_id: str, text: str) -> str:
        """Reply to a post created by ``submit_post``.

        Returns:
            Identifier of the created comment, never empty

        Raises:
            CommentError: If the comment is rejected or yields no id
        """
