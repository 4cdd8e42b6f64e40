"""
HNMirror Data Models
===================

Plain data carriers shared by the ingestion, processing and publishing
layers.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Iterator, Dict, Any


@dataclass(frozen=True)
class FeedItem:
    """One entry of the upstream feed.

    ``published_at`` is None when the entry had no parseable publish date;
    such items are rejected by validation and skipped by the processor.
    """
    title: str
    link: str
    external_id: str = ""
    published_at: Optional[datetime] = None


@dataclass
class Feed:
    """Feed items in document order, which is also publish order."""
    items: List[FeedItem] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[FeedItem]:
        return iter(self.items)


@dataclass
class ExistingItem:
    """A post already present in the target community."""
    url: str
    title: str
    created_at: datetime


@dataclass
class ListedPost:
    """Raw record returned by a listing collaborator."""
    url: str
    title: str
    created_at: datetime
    removed: bool = False

    def to_existing_item(self) -> ExistingItem:
        return ExistingItem(url=self.url, title=self.title, created_at=self.created_at)


@dataclass
class CycleStats:
    """Counters for one ingestion cycle."""
    feed_items: int = 0
    existing_items: int = 0
    processed: int = 0
    skipped: int = 0
    duplicates: int = 0
    errors: int = 0
    comments_posted: int = 0
    comment_failures: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0

    @property
    def attempted(self) -> int:
        """Publish attempts that reached the sink."""
        return self.processed + self.errors

    def as_dict(self) -> Dict[str, Any]:
        return {
            "feed_items": self.feed_items,
            "existing_items": self.existing_items,
            "processed": self.processed,
            "skipped": self.skipped,
            "duplicates": self.duplicates,
            "errors": self.errors,
            "comments_posted": self.comments_posted,
            "comment_failures": self.comment_failures,
            "duration_seconds": round(self.duration_seconds, 3),
        }
