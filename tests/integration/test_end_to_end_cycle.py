"""
End-to-End Cycle Integration Tests
=================================

Runs a full cycle through the real fetcher, parser, processor and Reddit
gateway. Only the HTTP body and the PRAW client are faked.
"""

import time
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from hnmirror.ingestion.feed_fetcher import FeedFetcher
from hnmirror.publishing.reddit_client import RedditClient
from hnmirror.scheduler.cycle_scheduler import CycleScheduler


def reddit_with_listings(new=(), hot=(), top=()):
    reddit = MagicMock()
    subreddit = reddit.subreddit.return_value
    subreddit.new.return_value = list(new)
    subreddit.hot.return_value = list(hot)
    subreddit.top.return_value = list(top)

    ids = iter(f"p{i}" for i in range(1, 100))
    subreddit.submit.side_effect = lambda title, url: SimpleNamespace(id=next(ids))
    reddit.submission.return_value.reply.return_value = SimpleNamespace(id="c1")
    return reddit


def listed(url, title, hours_ago=1):
    return SimpleNamespace(url=url, title=title, created_utc=time.time() - hours_ago * 3600)


@pytest.fixture
def scheduler_factory(test_settings, sample_feed_xml):
    def build(reddit):
        gateway = RedditClient(test_settings, reddit=reddit)
        return CycleScheduler(test_settings, listing_source=gateway, sink=gateway)

    with patch.object(FeedFetcher, "fetch_text", new=AsyncMock(return_value=sample_feed_xml)):
        yield build


class TestEndToEndCycle:
    """Test complete cycles against a fake subreddit."""

    @pytest.mark.asyncio
    async def test_fresh_subreddit(self, scheduler_factory):
        reddit = reddit_with_listings()
        scheduler = scheduler_factory(reddit)

        result = await scheduler.run_cycle(trigger="manual")

        assert result.success
        submit = reddit.subreddit.return_value.submit
        assert [c.args[0] for c in submit.call_args_list] == [
            "Show HN: A tiny database in 500 lines",
            "Rust & Python interop",
            "Ask HN: What are you working on?",
        ]
        # The Ask HN item links to HN itself and gets no discussion comment
        replies = reddit.submission.return_value.reply.call_args_list
        assert [c.args[0] for c in replies] == [
            "Discussion on HN: https://news.ycombinator.com/item?id=40000001",
            "Discussion on HN: https://news.ycombinator.com/item?id=40000002",
        ]
        assert result.stats.comments_posted == 2

    @pytest.mark.asyncio
    async def test_already_mirrored_items_skipped(self, scheduler_factory):
        reddit = reddit_with_listings(
            hot=[listed("http://www.blog.example.org/rust-python/", "Rust and Python, together")],
            top=[listed("https://other.example.net/", "Show HN: A tiny database in 500 lines")],
        )
        scheduler = scheduler_factory(reddit)

        result = await scheduler.run_cycle()

        assert result.success
        submit = reddit.subreddit.return_value.submit
        assert [c.args[0] for c in submit.call_args_list] == ["Ask HN: What are you working on?"]
        assert result.stats.duplicates == 2

    @pytest.mark.asyncio
    async def test_stale_posts_do_not_block(self, scheduler_factory):
        reddit = reddit_with_listings(
            new=[listed("https://example.com/tiny-db", "Show HN: A tiny database in 500 lines", hours_ago=72)],
        )
        scheduler = scheduler_factory(reddit)

        result = await scheduler.run_cycle()

        assert result.stats.processed == 3

    @pytest.mark.asyncio
    async def test_second_cycle_sees_first_cycle_posts(self, scheduler_factory):
        reddit = reddit_with_listings()
        scheduler = scheduler_factory(reddit)

        first = await scheduler.run_cycle()

        posted = [
            listed(c.kwargs["url"], c.args[0])
            for c in reddit.subreddit.return_value.submit.call_args_list
        ]
        reddit.subreddit.return_value.new.return_value = posted
        second = await scheduler.run_cycle()

        assert first.stats.processed == 3
        assert second.stats.processed == 0
        assert second.stats.duplicates == 3

    @pytest.mark.asyncio
    async def test_dry_run_posts_nothing(self, scheduler_factory):
        reddit = reddit_with_listings()
        scheduler = scheduler_factory(reddit)

        result = await scheduler.run_cycle(dry_run=True)

        assert result.success
        assert result.stats.processed == 3
        reddit.subreddit.return_value.submit.assert_not_called()
        reddit.submission.return_value.reply.assert_not_called()
