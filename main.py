#!/usr/bin/env python3
"""
BuildWatch - CI Build Status Bridge
===================================

Main application entry point with CLI interface.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py run                       # Start the bridge
    python main.py fetch-feed [URL]          # Show what the feed would relay
    python main.py classify "job #1 is stable"
"""

import sys
import asyncio

import click
from rich.console import Console
from rich.table import Table
from rich.markup import escape
from pydantic import ValidationError

from buildwatch.config.settings import get_settings, BuildWatchSettings, FeedSettings
from buildwatch.ingestion.feed_poller import FeedPoller
from buildwatch.processing.link_extractor import extract_pull_number
from buildwatch.processing.status_classifier import classify_title
from buildwatch.service import BuildWatchService
from buildwatch.utils.logging import configure_application_logging, get_logger_for_component
from buildwatch.utils.exceptions import (
    BuildWatchError,
    ChatTransportError,
    ConfigurationError,
    FeedFetchError,
)

console = Console()
error_console = Console(stderr=True)


def _load_settings_or_exit(debug: bool) -> BuildWatchSettings:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        error_console.print(f"[bold red]❌ {escape(e.user_message)}[/bold red]")
        error_console.print(
            "Set BUILDWATCH_GITHUB__TOKEN (see https://github.com/settings/tokens) "
            "and BUILDWATCH_TELEGRAM__BOT_TOKEN."
        )
        sys.exit(1)

    if debug:
        settings.debug = True
    return settings


def _configure_logging(settings: BuildWatchSettings) -> None:
    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """BuildWatch - relay CI build status changes to chat."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.pass_context
def run(ctx):
    """Poll the CI feed and relay notifications until the feed fails."""
    settings = _load_settings_or_exit(ctx.obj.get('debug', False))
    _configure_logging(settings)
    logger = get_logger_for_component('main')

    async def run_bridge():
        service = BuildWatchService(settings)
        return await service.run()

    try:
        error = asyncio.run(run_bridge())
    except ChatTransportError as e:
        click.echo(f"[e] {e}", err=True)
        logger.error(f"Chat transport failed: {e}", extra=e.to_dict())
        sys.exit(1)

    if isinstance(error, FeedFetchError):
        click.echo(f"[e] {settings.feed.url}: {error}", err=True)


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking BuildWatch Configuration[/bold blue]")

    try:
        settings = get_settings()
    except ConfigurationError as e:
        console.print(f"[bold red]❌ {escape(e.user_message)}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Section", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    table.add_row(
        "Feed", "✅ Valid",
        f"{settings.feed.url} (every {settings.feed.cache_timeout_minutes}m, "
        f"floor {settings.feed.min_poll_seconds:.0f}s)",
    )
    table.add_row("GitHub", "✅ Valid", f"{settings.github.owner}/{settings.github.repo}")
    table.add_row("Telegram", "✅ Valid", f"Channel: {settings.telegram.channel}")
    table.add_row(
        "Dispatch", "✅ Valid",
        f"Burst limit: {settings.dispatch.burst_limit}, "
        f"suppress aborted: {settings.dispatch.suppress_aborted}",
    )
    table.add_row(
        "Logging", "✅ Valid",
        f"Level: {settings.get_effective_log_level()}, file: {settings.logging.file_path}",
    )

    console.print(table)
    console.print("[bold green]✅ All configuration checks passed![/bold green]")


@cli.command()
@click.argument('url', required=False)
@click.option('--timeout', default=30, show_default=True, help='Request timeout in seconds')
def fetch_feed(url, timeout):
    """Fetch the feed once and show how each entry would be relayed."""
    try:
        feed_settings = FeedSettings(url=url, request_timeout=timeout) if url else FeedSettings(request_timeout=timeout)
    except ValidationError as e:
        console.print(f"[bold red]❌ Invalid feed settings: {escape(str(e))}[/bold red]")
        sys.exit(1)
    console.print(f"[bold blue]📡 Fetching feed: {feed_settings.url}[/bold blue]")

    async def noop(items):
        return None

    async def run_fetch():
        poller = FeedPoller(feed_settings, noop)
        async with poller.get_session() as session:
            return await poller.fetch(session)

    try:
        result = asyncio.run(run_fetch())
    except FeedFetchError as e:
        console.print(f"[bold red]❌ {escape(str(e))}[/bold red]")
        sys.exit(1)

    table = Table(title=f"{len(result.items)} entries")
    table.add_column("Title", style="cyan")
    table.add_column("Status", style="green", no_wrap=True)
    table.add_column("PR", style="yellow", no_wrap=True)
    table.add_column("Job URL")

    for item in result.items:
        extraction = extract_pull_number(item.content)
        status = classify_title(item.title)
        table.add_row(
            escape(item.title),
            status or "(suppressed)",
            str(extraction.pull_number) if extraction.success else extraction.reason.value,
            item.links[0] if item.links else "",
        )

    console.print(table)
    if result.ttl_minutes is not None:
        console.print(f"Feed TTL: {result.ttl_minutes} minutes")


@cli.command()
@click.argument('title')
def classify(title):
    """Print the status label for a feed entry title."""
    status = classify_title(title)
    click.echo(status if status else "(suppressed)")


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 BuildWatch interrupted by user[/yellow]")
        sys.exit(130)
    except BuildWatchError as e:
        error_console.print(f"\n[bold red]❌ Unexpected error: {escape(str(e))}[/bold red]")
        sys.exit(1)
