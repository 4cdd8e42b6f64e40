"""
Feed Processor
=============

Drives one ingestion cycle: list what is already published, walk the feed
in order, drop duplicates and publish the rest with pacing and a bounded
error budget.

All state of a cycle (the growing list of existing items and the error
counter) lives inside a single ``run()`` call, so overlapping cycles never
share mutable state.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional

from ..config.settings import get_settings, HNMirrorSettings
from ..models import CycleStats, ExistingItem, Feed, FeedItem
from ..publishing.base import ListingCategory, ListingSource, PublishingSink
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import (
    CycleCancelledError,
    ErrorCode,
    ListingFetchError,
    ProcessingError,
    PublishError,
    ValidationError,
)
from .duplicate_detector import is_duplicate
from .url_normalizer import normalize_url

LISTING_CATEGORIES = (ListingCategory.NEW, ListingCategory.HOT, ListingCategory.TOP_OF_WEEK)


class PublishOutcome(str, Enum):
    """What happened to an item that reached the publish step."""
    PUBLISHED = "published"
    DUPLICATE = "duplicate"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedProcessor:
    """Filters feed items against existing posts and publishes the rest."""

    def __init__(
        self,
        listing_source: ListingSource,
        sink: PublishingSink,
        settings: Optional[HNMirrorSettings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize feed processor.

        Args:
            listing_source: Reports posts already in the community
            sink: Receives new posts and discussion comments
            settings: Application settings (default: global settings)
            clock: Source of the current time, timezone-aware
        """
        self.listing_source = listing_source
        self.sink = sink
        self.settings = settings or get_settings()
        self.clock = clock
        self.logger = get_logger_for_component(
            "feed_processor", subreddit=self.settings.reddit.subreddit
        )

        processing = self.settings.processing
        self.origin_domain = processing.origin_domain.lower()
        self.duplicate_window = timedelta(hours=processing.duplicate_check_hours)
        self.post_delay = processing.post_delay_ms / 1000.0
        self.max_error_count = processing.max_error_count
        self.comment_template = processing.comment_template
        self.listing_limit = self.settings.reddit.listing_limit

    async def fetch_existing_items(self) -> List[ExistingItem]:
        """Collect existing posts across all listing categories.

        A failing category is logged and skipped. Duplicate checks without
        any visibility are unsafe, so failure of every category is fatal.

        Raises:
            ListingFetchError: If no category could be read
        """
        self.logger.info("Getting existing posts from subreddit")

        existing: List[ExistingItem] = []
        success_count = 0
        last_error: Optional[Exception] = None

        for category in LISTING_CATEGORIES:
            try:
                posts = await self.listing_source.list_by_category(category, self.listing_limit)
            except Exception as e:
                self.logger.warning(f"Failed to get {category.value} listings: {e}")
                last_error = e
                continue

            success_count += 1
            existing.extend(
                post.to_existing_item() for post in posts if post.url and not post.removed
            )

        if success_count == 0:
            raise ListingFetchError(
                f"Failed to fetch any listings: {last_error}",
                error_code=ErrorCode.LISTING_ALL_FAILED,
            ) from last_error

        if existing:
            self.logger.info(f"Found {len(existing)} existing posts across new/hot/top")
        else:
            self.logger.info("No existing posts found")

        return existing

    def is_native_link(self, url: str) -> bool:
        """True if ``url`` points at the feed's own origin site."""
        return bool(url) and self.origin_domain in url.lower()

    async def publish_item(
        self,
        item: FeedItem,
        existing: List[ExistingItem],
        cutoff: datetime,
        stats: Optional[CycleStats] = None,
    ) -> PublishOutcome:
        """Publish one item unless it turns out to be a duplicate.

        On success the new post is appended to ``existing`` so that later
        items of the same cycle see it.

        Raises:
            ValidationError: If the item has no title or link
            PublishError: If the sink rejects the post
        """
        if not item.title:
            raise ValidationError("Item title is empty", field_name="title")
        if not item.link:
            raise ValidationError("Item link is empty", field_name="link")

        self.logger.info(f"Posting: {item.title}")

        native = self.is_native_link(item.link)
        self.logger.debug(f"HN link: {native}")

        # Re-check against the list as it is right now, just before the side effect
        if is_duplicate(normalize_url(item.link), item.title, existing, cutoff):
            self.logger.info(f"Post already exists (double-check), skipping: {item.link}")
            return PublishOutcome.DUPLICATE

        post_id = await self.sink.submit_post(item.title, item.link)
        if not post_id:
            raise PublishError("No post id returned", title=item.title, error_code=ErrorCode.PUBLISH_NO_ID)

        existing.append(ExistingItem(url=item.link, title=item.title, created_at=self.clock()))

        if not native:
            await self._post_discussion_comment(post_id, item, stats)

        return PublishOutcome.PUBLISHED

    async def _post_discussion_comment(
        self, post_id: str, item: FeedItem, stats: Optional[CycleStats]
    ) -> None:
        discussion_link = item.external_id
        if not discussion_link:
            self.logger.warning(f"No HN link found in GUID for '{item.title}', skipping comment")
            return

        if not self.is_native_link(discussion_link):
            self.logger.warning(
                f"GUID is not an HN link for '{item.title}': {discussion_link}, skipping comment"
            )
            return

        try:
            await self.sink.add_comment(post_id, self.comment_template.format(link=discussion_link))
        except Exception as e:
            # The post itself already exists
            self.logger.warning(f"Failed to add discussion comment to {post_id}: {e}")
            if stats is not None:
                stats.comment_failures += 1
            return

        if stats is not None:
            stats.comments_posted += 1

    def _check_cancelled(
        self,
        cancel_event: Optional[asyncio.Event],
        deadline: Optional[datetime],
        stats: CycleStats,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise CycleCancelledError(
                "Cycle cancelled", stats=stats, error_code=ErrorCode.CYCLE_CANCELLED
            )
        if deadline is not None and self.clock() >= deadline:
            raise CycleCancelledError(
                f"Cycle deadline {deadline.isoformat()} exceeded",
                stats=stats,
                error_code=ErrorCode.CYCLE_DEADLINE_EXCEEDED,
            )

    async def _pause(self, cancel_event: Optional[asyncio.Event]) -> None:
        if self.post_delay <= 0:
            return
        if cancel_event is None:
            await asyncio.sleep(self.post_delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.post_delay)
        except asyncio.TimeoutError:
            pass

    async def run(
        self,
        feed: Feed,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[datetime] = None,
    ) -> CycleStats:
        """Run one ingestion cycle over ``feed``.

        Args:
            feed: Items in publish order
            cancel_event: When set, the cycle stops before the next item
            deadline: Timezone-aware instant after which no new item starts

        Returns:
            Counters of the cycle, also written to the log

        Raises:
            ListingFetchError: If no listing category could be read
            ProcessingError: If the error budget is exhausted
            CycleCancelledError: If cancelled or past the deadline
        """
        stats = CycleStats(feed_items=len(feed), started_at=self.clock())
        self.logger.info("Processing feed", extra={"feed_items": len(feed)})

        try:
            with PerformanceLogger(self.logger, "feed processing") as perf:
                await self._run_items(feed, stats, cancel_event, deadline)
        finally:
            stats.duration_seconds = perf.duration or 0.0
            self.logger.info(
                f"Cycle summary: {stats.processed} published, {stats.duplicates} duplicates, "
                f"{stats.skipped} skipped, {stats.errors} errors",
                extra={"cycle_stats": stats.as_dict()},
            )

        self.logger.info(f"Successfully processed {stats.processed} items")
        return stats

    async def _run_items(
        self,
        feed: Feed,
        stats: CycleStats,
        cancel_event: Optional[asyncio.Event],
        deadline: Optional[datetime],
    ) -> None:
        self._check_cancelled(cancel_event, deadline, stats)

        existing = await self.fetch_existing_items()
        stats.existing_items = len(existing)

        cutoff = self.clock() - self.duplicate_window

        for index, item in enumerate(feed.items):
            self._check_cancelled(cancel_event, deadline, stats)

            if item.published_at is None:
                self.logger.warning(f"Skipping item with no publish date: {item.title}")
                stats.skipped += 1
                continue

            if not item.link:
                self.logger.warning(f"Skipping item with empty link: {item.title}")
                stats.skipped += 1
                continue

            if is_duplicate(normalize_url(item.link), item.title, existing, cutoff):
                self.logger.info(f"Post already exists, skipping: {item.link}")
                stats.duplicates += 1
                continue

            try:
                outcome = await self.publish_item(item, existing, cutoff, stats)
            except ValidationError as e:
                self.logger.warning(f"Skipping invalid item {index}: {e}")
                stats.skipped += 1
                continue
            except Exception as e:
                stats.errors += 1
                self.logger.error(
                    f"Error posting item {index} ({item.title}): {e}",
                    extra={"error_count": stats.errors},
                )
                if stats.errors >= self.max_error_count:
                    raise ProcessingError(
                        f"Too many posting errors ({stats.errors}): aborting",
                        stats=stats,
                        error_code=ErrorCode.ERROR_BUDGET_EXHAUSTED,
                    ) from e
                continue

            if outcome is PublishOutcome.DUPLICATE:
                stats.duplicates += 1
                continue

            stats.processed += 1
            await self._pause(cancel_event)
