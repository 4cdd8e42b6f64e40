"""
HNMirror Cycle Scheduler
=======================

Runs ingestion cycles on a fixed interval or on demand.

Only one cycle runs at a time per scheduler; a trigger that arrives while
a cycle is in flight is reported back instead of queued.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from ..config.settings import get_settings, HNMirrorSettings
from ..ingestion.feed_fetcher import FeedFetcher
from ..models import CycleStats
from ..processing.feed_processor import FeedProcessor
from ..publishing.base import ListingSource, PublishingSink
from ..publishing.dry_run import DryRunSink
from ..publishing.reddit_client import RedditClient
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import (
    ErrorCode,
    HNMirrorError,
    handle_exception,
    is_retryable_error,
)


@dataclass
class CycleResult:
    """Outcome of one triggered cycle."""
    success: bool
    trigger: str
    cycle_id: str
    stats: Optional[CycleStats] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "trigger": self.trigger,
            "cycle_id": self.cycle_id,
            "stats": self.stats.as_dict() if self.stats else None,
            "error": self.error,
            "error_code": self.error_code,
            "retryable": self.retryable,
            "finished_at": self.finished_at.isoformat(),
        }


class CycleScheduler:
    """
    Coordinates feed fetching and processing for one subreddit.

    Collaborators are created on first use unless injected, so building a
    scheduler never touches the network.
    """

    def __init__(
        self,
        settings: Optional[HNMirrorSettings] = None,
        fetcher: Optional[FeedFetcher] = None,
        listing_source: Optional[ListingSource] = None,
        sink: Optional[PublishingSink] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger_for_component("scheduler", subreddit=self.settings.reddit.subreddit)
        self.fetcher = fetcher or FeedFetcher(self.settings)

        self._listing_source = listing_source
        self._sink = sink
        self._reddit: Optional[RedditClient] = None
        self._cycle_lock: Optional[asyncio.Lock] = None

    @property
    def is_running(self) -> bool:
        """True while a cycle is in flight."""
        return self._cycle_lock is not None and self._cycle_lock.locked()

    def _reddit_client(self) -> RedditClient:
        if self._reddit is None:
            self._reddit = RedditClient(self.settings)
        return self._reddit

    def _collaborators(self, dry_run: bool) -> Tuple[ListingSource, PublishingSink]:
        source = self._listing_source or self._reddit_client()
        if dry_run:
            return source, DryRunSink()
        return source, self._sink or self._reddit_client()

    async def run_cycle(
        self,
        trigger: str = "scheduled",
        dry_run: Optional[bool] = None,
        cancel_event: Optional[asyncio.Event] = None,
        deadline: Optional[datetime] = None,
    ) -> CycleResult:
        """
        Fetch the feed and process it once.

        Args:
            trigger: "scheduled" or "manual", recorded in logs and result
            dry_run: Log posts instead of submitting (default from config)
            cancel_event: Stops the cycle between items when set
            deadline: No new item starts after this instant

        Returns:
            CycleResult; failures are reported here, never raised
        """
        if dry_run is None:
            dry_run = self.settings.dry_run

        cycle_id = f"cycle_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

        if self._cycle_lock is None:
            self._cycle_lock = asyncio.Lock()
        elif self._cycle_lock.locked():
            self.logger.warning(f"Cycle already running, ignoring {trigger} trigger")
            return CycleResult(
                success=False,
                trigger=trigger,
                cycle_id=cycle_id,
                error="A cycle is already running",
                error_code=ErrorCode.CYCLE_ALREADY_RUNNING.value,
                retryable=True,
            )

        async with self._cycle_lock:
            logger = get_logger_for_component(
                "scheduler", subreddit=self.settings.reddit.subreddit, cycle_id=cycle_id
            )
            logger.info(
                f"Starting {trigger} cycle",
                extra={"trigger": trigger, "dry_run": dry_run},
            )

            try:
                feed = await self.fetcher.fetch_feed()
                source, sink = self._collaborators(dry_run)
                processor = FeedProcessor(source, sink, self.settings)
                stats = await processor.run(feed, cancel_event=cancel_event, deadline=deadline)

            except HNMirrorError as e:
                logger.error(f"Cycle failed: {e}", extra=e.to_dict())
                return CycleResult(
                    success=False,
                    trigger=trigger,
                    cycle_id=cycle_id,
                    stats=getattr(e, "stats", None),
                    error=str(e),
                    error_code=e.error_code.value if e.error_code else None,
                    retryable=is_retryable_error(e),
                )

            except Exception as e:
                error = handle_exception(e, logger, "ingestion cycle")
                logger.debug("Unexpected cycle failure", exc_info=True)
                return CycleResult(
                    success=False,
                    trigger=trigger,
                    cycle_id=cycle_id,
                    error=str(error),
                    error_code=error.error_code.value if error.error_code else None,
                    retryable=is_retryable_error(error),
                )

            logger.info(
                f"Cycle completed: {stats.processed} posted",
                extra={"cycle_stats": stats.as_dict()},
            )
            return CycleResult(success=True, trigger=trigger, cycle_id=cycle_id, stats=stats)

    async def run_forever(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Run cycles every ``interval_minutes`` until ``stop_event`` is set.

        Each scheduled cycle must finish before the next tick, and the stop
        event also cancels a cycle that is in progress.
        """
        stop_event = stop_event or asyncio.Event()
        interval = self.settings.scheduler.interval_minutes * 60

        self.logger.info(
            f"Scheduler started, interval {self.settings.scheduler.interval_minutes} minutes"
        )

        run_now = self.settings.scheduler.run_on_start
        while not stop_event.is_set():
            if run_now:
                deadline = datetime.now(timezone.utc) + timedelta(seconds=interval)
                result = await self.run_cycle(
                    trigger="scheduled", cancel_event=stop_event, deadline=deadline
                )
                if not result.success:
                    self.logger.warning(
                        f"Scheduled cycle failed ({result.error_code}), "
                        f"{'will retry' if result.retryable else 'not retryable'} next interval"
                    )
            run_now = True

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        self.logger.info("Scheduler stopped")
