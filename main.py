#!/usr/bin/env python3
"""
HNMirror - Hacker News to Reddit Mirror
=======================================

Main application entry point with CLI interface for operation and testing.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py show-feed                 # Fetch and display the feed
    python main.py normalize URL...          # Print canonical URL forms
    python main.py run-once --dry-run        # Run one cycle without posting
    python main.py serve                     # Run cycles on the configured interval
"""

import sys
import asyncio
import signal
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from hnmirror.config.settings import get_settings
from hnmirror.ingestion.feed_fetcher import FeedFetcher, build_feed_url
from hnmirror.processing.url_normalizer import normalize_url
from hnmirror.scheduler.cycle_scheduler import CycleScheduler, CycleResult
from hnmirror.utils.logging import configure_application_logging
from hnmirror.utils.process_lock import lock_for_subreddit
from hnmirror.utils.exceptions import HNMirrorError

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(settings, debug: bool = False) -> None:
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """HNMirror - mirrors the Hacker News front page into a subreddit."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.pass_context
def check_config(ctx):
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking HNMirror Configuration[/bold blue]")

    try:
        settings = get_settings()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Details")

        checks = [
            ("Feed", _check_feed_config),
            ("Reddit", _check_reddit_config),
            ("Processing", _check_processing_config),
            ("Scheduler", _check_scheduler_config),
            ("Logging", _check_logging_config),
        ]

        all_passed = True
        for name, check_func in checks:
            status, details = check_func(settings)
            table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
            if not status:
                all_passed = False

        console.print(table)

        if all_passed:
            console.print("[bold green]✅ All configuration checks passed![/bold green]")
            sys.exit(0)
        else:
            console.print("[bold red]❌ Configuration validation failed[/bold red]")
            sys.exit(1)

    except HNMirrorError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.option('--limit', default=10, help='Number of items to display (default: 10)')
@click.pass_context
def show_feed(ctx, limit):
    """Fetch the upstream feed and display its items."""
    settings = get_settings()
    _configure_logging(settings, ctx.obj.get('debug'))
    console.print(f"[bold blue]📡 Fetching feed: {build_feed_url(settings)}[/bold blue]")

    try:
        feed = asyncio.run(FeedFetcher(settings).fetch_feed())
    except HNMirrorError as e:
        console.print(f"[bold red]❌ Feed fetch error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title=f"Feed Items ({len(feed)} total)")
    table.add_column("#", style="dim")
    table.add_column("Published", style="cyan")
    table.add_column("Title", style="bold")
    table.add_column("Link")

    for index, item in enumerate(feed.items[:limit], 1):
        published = item.published_at.strftime('%Y-%m-%d %H:%M') if item.published_at else "-"
        table.add_row(str(index), published, item.title, item.link)

    console.print(table)


@cli.command()
@click.argument('urls', nargs=-1, required=True)
def normalize(urls):
    """Print the canonical form used for duplicate detection."""
    for url in urls:
        console.print(f"{url} [dim]->[/dim] [green]{normalize_url(url)}[/green]")


@cli.command()
@click.option('--dry-run', is_flag=True, help='Log posts instead of submitting them')
@click.pass_context
def run_once(ctx, dry_run):
    """Run a single ingestion cycle now."""
    settings = get_settings()
    _configure_logging(settings, ctx.obj.get('debug'))
    dry_run = dry_run or settings.dry_run

    # Dry runs still read the subreddit listings for duplicate detection
    try:
        settings.validate_configuration(require_credentials=True)
    except HNMirrorError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        sys.exit(1)

    console.print(
        f"[bold blue]🚀 Running cycle for r/{settings.reddit.subreddit}"
        f"{' (dry run)' if dry_run else ''}[/bold blue]"
    )

    result = asyncio.run(CycleScheduler(settings).run_cycle(trigger="manual", dry_run=dry_run))
    _print_result(result)
    sys.exit(0 if result.success else 1)


@cli.command()
@click.option('--dry-run', is_flag=True, help='Log posts instead of submitting them')
@click.pass_context
def serve(ctx, dry_run):
    """Run cycles on the configured interval until interrupted."""
    settings = get_settings()
    if dry_run:
        settings.dry_run = True
    _configure_logging(settings, ctx.obj.get('debug'))

    try:
        settings.validate_configuration(require_credentials=True)
    except HNMirrorError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        sys.exit(1)

    lock = lock_for_subreddit(settings.reddit.subreddit, settings.scheduler.lock_dir)
    if not lock.acquire():
        holder = lock.holder_pid()
        console.print(
            f"[bold red]❌ Another instance is already serving r/{settings.reddit.subreddit}"
            f"{f' (pid {holder})' if holder else ''}[/bold red]"
        )
        sys.exit(1)

    console.print(
        f"[bold green]✅ Serving r/{settings.reddit.subreddit} every "
        f"{settings.scheduler.interval_minutes} minutes[/bold green]"
    )

    try:
        asyncio.run(_serve(CycleScheduler(settings)))
    finally:
        lock.release()


async def _serve(scheduler: CycleScheduler) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await scheduler.run_forever(stop_event)


def _print_result(result: CycleResult) -> None:
    if not result.success:
        console.print(f"[bold red]❌ Cycle failed: {result.error}[/bold red]")
        if result.retryable:
            console.print("[yellow]The failure is transient; the next cycle may succeed[/yellow]")

    if result.stats is None:
        return

    table = Table(title=f"Cycle {result.cycle_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key, value in result.stats.as_dict().items():
        table.add_row(key.replace('_', ' ').title(), str(value))
    console.print(table)

    if result.success:
        console.print(f"[bold green]✅ Cycle completed: {result.stats.processed} posted[/bold green]")


# Helper functions for configuration checks
def _check_feed_config(settings) -> tuple[bool, str]:
    """Check feed configuration."""
    return True, build_feed_url(settings)


def _check_reddit_config(settings) -> tuple[bool, str]:
    """Check Reddit credentials."""
    missing = settings.reddit.missing_credentials()
    if missing:
        return False, f"Missing: {', '.join(missing)}"
    return True, f"r/{settings.reddit.subreddit} as u/{settings.reddit.username}"


def _check_processing_config(settings) -> tuple[bool, str]:
    """Check processing configuration."""
    processing = settings.processing
    return True, (
        f"Window: {processing.duplicate_check_hours}h, Delay: {processing.post_delay_ms}ms, "
        f"Max errors: {processing.max_error_count}"
    )


def _check_scheduler_config(settings) -> tuple[bool, str]:
    """Check scheduler configuration."""
    scheduler = settings.scheduler
    return True, f"Every {scheduler.interval_minutes} min, run on start: {scheduler.run_on_start}"


def _check_logging_config(settings) -> tuple[bool, str]:
    """Check logging configuration."""
    try:
        if settings.logging.file_path:
            log_path = Path(settings.logging.file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, Console: {settings.logging.console_logging}"
    except OSError as e:
        return False, str(e)


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 HNMirror interrupted by user[/yellow]")
        sys.exit(130)
