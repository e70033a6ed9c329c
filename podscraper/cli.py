"""
PodScraper command-line interface.

Usage:
    podscraper scrape feeds.opml                  # newest.txt + feeds.txt
    podscraper scrape feeds.opml -f txt,md,html   # newest view in three formats
    podscraper scrape feeds.opml -o true -F html  # chronological full view as HTML
    podscraper check-config                       # show effective configuration
"""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from .config.settings import get_settings
from .delivery.renderer import (
    ALL_EPISODES_HEADING,
    NEWEST_EPISODES_HEADING,
    EpisodeRenderer,
    OutputFormat,
    all_view_path,
    newest_view_path,
)
from .ingestion.source_list import read_source_list
from .processing.feed_fetcher import FeedFetcher
from .processing.pipeline import ScrapePipeline
from .processing.selector import FilterPolicy
from .utils.exceptions import PodScraperError, get_user_friendly_message, handle_exception
from .utils.logging import configure_application_logging, get_logger_for_component

console = Console()

BANNER = """\
                   ▗
▛▌▛▌▌▌▌█▌▛▘▛▘▛▘▌▌▛▘▜▘
▙▌▙▌▚▚▘▙▖▌ ▙▖▌ ▙▌▄▌▐▖
▌"""


def _parse_formats(ctx, param, value) -> Optional[List[OutputFormat]]:
    """Click callback turning ``txt,md`` into output formats."""
    if value is None:
        return None
    formats = []
    for part in value.split(","):
        if not part.strip():
            continue
        try:
            fmt = OutputFormat.parse(part)
        except ValueError as e:
            raise click.BadParameter(str(e))
        if fmt not in formats:
            formats.append(fmt)
    if not formats:
        raise click.BadParameter("at least one format is required")
    return formats


def _parse_format(ctx, param, value) -> Optional[OutputFormat]:
    if value is None:
        return None
    try:
        return OutputFormat.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _fail(error: Exception) -> None:
    console.print(f"[bold red]❌ {get_user_friendly_message(error)}[/bold red]")
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """Scrape podcast feeds listed in an OPML file and extract media URLs."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(BANNER)
        click.echo(ctx.get_help())


@cli.command()
@click.argument('opml_file', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--check-current', '-c', type=click.BOOL, default=None,
              help='Only include episodes from the last N days in the newest output (default: true)')
@click.option('--filter-all', '-a', type=click.BOOL, default=None,
              help='Apply the time filter to the all-episodes output as well (default: false)')
@click.option('--days', '-d', type=click.IntRange(min=0), default=None,
              help='Number of days to consider as current (default: 30)')
@click.option('--chronological', '-o', type=click.BOOL, default=None,
              help='Sort all episodes oldest first in the all-episodes output (default: false)')
@click.option('--formats', '-f', callback=_parse_formats, default=None,
              help='Comma-separated formats for the newest output: txt, md, html (default: txt)')
@click.option('--all-format', '-F', 'all_format', callback=_parse_format, default=None,
              help='Format for the all-episodes output: txt, md, html (default: txt)')
@click.option('--max-concurrent', type=click.IntRange(min=1), default=None,
              help='Maximum feeds fetched at once (default: 20)')
@click.option('--timeout', type=click.IntRange(min=1), default=None,
              help='Per-request timeout in seconds (default: 15)')
@click.pass_context
def scrape(ctx, opml_file, check_current, filter_all, days, chronological,
           formats, all_format, max_concurrent, timeout):
    """Fetch every feed in OPML_FILE and write the episode lists."""
    try:
        settings = get_settings()
    except PodScraperError as e:
        _fail(e)

    configure_application_logging(
        log_level="DEBUG" if ctx.obj.get('debug') else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
    )
    logger = get_logger_for_component("cli")

    filtering = settings.filtering
    policy = FilterPolicy(
        apply_cutoff=filtering.apply_cutoff if check_current is None else check_current,
        cutoff_days=filtering.cutoff_days if days is None else days,
        apply_to_all_view=filtering.apply_to_all_view if filter_all is None else filter_all,
    )
    chronological = filtering.chronological if chronological is None else chronological
    newest_formats = formats or [OutputFormat.parse(f) for f in settings.output.formats]
    all_format = all_format or OutputFormat.parse(settings.output.all_format)

    try:
        sources = read_source_list(opml_file, skip_first=settings.source_list.skip_first)
    except PodScraperError as e:
        handle_exception(e, logger, "read source list")
        _fail(e)

    console.print(f"Found {len(sources)} feeds")

    pipeline = ScrapePipeline(
        policy=policy,
        chronological=chronological,
        fetcher=FeedFetcher(max_concurrent=max_concurrent, timeout=timeout),
    )
    result = asyncio.run(pipeline.run(sources))

    console.print(
        f"Fetched {result.successful_fetches}/{result.total_sources} feeds "
        f"({result.fetch_success_rate:.0f}%)"
    )
    console.print(f"Found {len(result.all_episodes)} episodes.")
    console.print(f"Selected {len(result.newest_episodes)} newest episodes.")

    renderer = EpisodeRenderer()
    try:
        all_path = renderer.write(
            result.all_episodes, all_view_path(opml_file, all_format), all_format,
            ALL_EPISODES_HEADING,
        )
        newest_paths = [
            renderer.write(
                result.newest_episodes, newest_view_path(opml_file, fmt), fmt,
                NEWEST_EPISODES_HEADING,
            )
            for fmt in newest_formats
        ]
    except PodScraperError as e:
        handle_exception(e, logger, "write output")
        _fail(e)

    console.print(f"[bold green]✅ Done.[/bold green] All episodes written to {all_path}.", soft_wrap=True)
    for path in newest_paths:
        console.print(f"Newest episodes written to {path}.", soft_wrap=True)


@cli.command()
def check_config():
    """Show the effective configuration."""
    try:
        settings = get_settings()
    except PodScraperError as e:
        _fail(e)

    table = Table(title="PodScraper Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Max concurrent requests", str(settings.fetch.max_concurrent))
    table.add_row("Request timeout", f"{settings.fetch.request_timeout}s")
    table.add_row("User-Agent", settings.fetch.user_agent)
    table.add_row("Apply cutoff", str(settings.filtering.apply_cutoff))
    table.add_row("Cutoff days", str(settings.filtering.cutoff_days))
    table.add_row("Filter all view", str(settings.filtering.apply_to_all_view))
    table.add_row("Chronological", str(settings.filtering.chronological))
    table.add_row("Newest formats", ", ".join(settings.output.formats))
    table.add_row("All-view format", settings.output.all_format)
    table.add_row("Skip first OPML entry", str(settings.source_list.skip_first))
    table.add_row("Log level", settings.get_effective_log_level())

    console.print(table)


def main():
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Interrupted by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
