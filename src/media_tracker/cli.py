"""Command-line interface for the media tracker."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import Config, load_config, missing_provider_keys
from .constants import DEFAULT_WEB_UI_PORT, ContentType, EntryStatus
from .cover_engine import CoverResolver
from .cover_quality import low_quality_reason
from .entry_service import EntryService
from .errors import StoreError
from .models import BatchResult, Entry, OperationResult, rating_display
from .store import JsonRowStore

logger = logging.getLogger(__name__)

TYPE_CHOICES = [t.value for t in ContentType] + ["game", "movie", "tv", "scientific"]
STATUS_CHOICES = [s.value for s in EntryStatus]


def setup_logging(level: str):
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_service(config: Config) -> EntryService:
    """Wire the store and cover resolver from configuration."""
    store = JsonRowStore(Path(config.store.path))
    return EntryService(store, CoverResolver(config))


def _service(ctx: click.Context) -> EntryService:
    if "service" not in ctx.obj:
        try:
            ctx.obj["service"] = build_service(ctx.obj["config"])
        except StoreError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
    return ctx.obj["service"]


def _print_entry(entry: Entry):
    click.echo(f"{entry.title} [{entry.type.value}]")
    click.echo(f"  ID:       {entry.id}")
    click.echo(f"  Status:   {entry.status.value}")
    if entry.start_date:
        click.echo(f"  Started:  {entry.start_date.isoformat()}")
    if entry.finish_date:
        click.echo(f"  Finished: {entry.finish_date.isoformat()}")
    click.echo(f"  Rating:   {rating_display(entry.rating)}")
    if entry.hype_rating is not None:
        click.echo(f"  Hype:     {entry.hype_rating}/10")
    if entry.tags:
        click.echo(f"  Tags:     {', '.join(entry.tags)}")
    click.echo(f"  Cover:    {entry.cover_url or '-'}")
    if entry.metadata:
        click.echo(f"  Source:   {entry.metadata.source}")


def _finish(result: OperationResult, message: Optional[str] = None):
    """Print an operation result and exit non-zero on failure."""
    if not result.success:
        click.echo(f"Error: {result.error}", err=True)
        for error in result.errors:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)
    if message:
        click.echo(message)
    if result.entry:
        _print_entry(result.entry)


def _print_batch(title: str, result: BatchResult):
    if result.dry_run:
        click.echo("\n=== DRY RUN - No changes were made ===")
    click.echo(f"\n=== {title} ===")
    click.echo(f"Processed: {result.processed}")
    click.echo(f"Updated: {result.updated}")
    click.echo(f"Skipped: {result.skipped}")
    click.echo(f"Failed: {result.failed}")
    for item in result.items:
        marker = "OK " if item.success else "ERR"
        click.echo(f"  [{marker}] {item.title or item.entry_id}: {item.reason or item.cover_url or ''}")
    if result.errors:
        click.echo(f"\nErrors ({len(result.errors)}):")
        for error in result.errors[:10]:  # Show first 10
            click.echo(f"  - {error}")


def _entry_options(func):
    """Options shared by ``add`` and ``update``."""
    options = [
        click.option("--start", "start_date", help="Start date (YYYY-MM-DD)"),
        click.option("--finish", "finish_date", help="Finish date (YYYY-MM-DD)"),
        click.option("--rating", help="Rating 1-10 (0 or N/A for not applicable)"),
        click.option("--tags", help="Comma-separated tags"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to config.yaml")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default=None,
    help="Logging level (defaults to the config file setting)",
)
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]):
    """Track books, films, series, games and papers."""
    ctx.ensure_object(dict)
    try:
        config = load_config(Path(config_path) if config_path else None)
    except Exception as e:
        click.echo(f"Error: failed to load configuration: {e}", err=True)
        sys.exit(1)
    setup_logging(log_level or config.logging.level)
    ctx.obj["config"] = config

    missing = missing_provider_keys(config)
    if missing:
        logger.debug(f"Provider keys not configured (placeholders will be used): {', '.join(missing)}")


@main.command()
@click.argument("title")
@click.option("--type", "content_type", type=click.Choice(TYPE_CHOICES), required=True, help="Content type")
@_entry_options
@click.option("--finished", is_flag=True, help="Mark as finished even without dates or rating")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Store an explicit status instead of inferring it")
@click.pass_context
def add(ctx, title, content_type, start_date, finish_date, rating, tags, finished, status):
    """Add an entry; status is inferred from dates and rating."""
    result = _service(ctx).create_entry(
        {
            "title": title,
            "type": content_type,
            "start_date": start_date,
            "finish_date": finish_date,
            "rating": rating,
            "tags": tags,
            "finished": finished,
            "status": status,
        }
    )
    _finish(result, "Entry created:")


@main.command("add-pending")
@click.argument("title")
@click.option("--type", "content_type", type=click.Choice(TYPE_CHOICES), required=True, help="Content type")
@click.option("--hype", "hype_rating", type=click.IntRange(1, 10), help="Hype rating 1-10")
@click.option("--tags", help="Comma-separated tags")
@click.pass_context
def add_pending(ctx, title, content_type, hype_rating, tags):
    """Add an entry to the pending list."""
    result = _service(ctx).create_pending_entry(
        {"title": title, "type": content_type, "hype_rating": hype_rating, "tags": tags}
    )
    _finish(result, "Pending entry created:")


@main.command()
@click.argument("entry_id")
@click.option("--date", "start_date", help="Start date (YYYY-MM-DD, default: today)")
@click.pass_context
def start(ctx, entry_id, start_date):
    """Start a pending entry."""
    _finish(_service(ctx).start_pending(entry_id, start_date), "Entry started:")


@main.command()
@click.argument("entry_id")
@click.pass_context
def show(ctx, entry_id):
    """Show one entry."""
    _finish(_service(ctx).get_entry(entry_id))


@main.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Only entries with this status")
@click.option("--type", "content_type", type=click.Choice(TYPE_CHOICES), help="Only entries of this type")
@click.option("--tag", help="Only entries with this tag")
@click.pass_context
def list_command(ctx, status, content_type, tag):
    """List entries."""
    listed = _service(ctx).list_entries(status=status, content_type=content_type, tag=tag)
    if not listed.success:
        click.echo(f"Error: {listed.error}", err=True)
        sys.exit(1)

    entries = listed.entries
    if not entries:
        click.echo("No entries found.")
        return
    for entry in entries:
        click.echo(f"{entry.id}  {entry.status.value:<20} {entry.type.value:<9} {entry.title}")
    click.echo(f"\n{len(entries)} entries")


@main.command()
@click.argument("entry_id")
@click.option("--title", help="New title")
@click.option("--type", "content_type", type=click.Choice(TYPE_CHOICES), help="New content type")
@_entry_options
@click.option("--hype", "hype_rating", help="Hype rating 1-10")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Explicit status")
@click.option("--clear-status", is_flag=True, help="Clear the stored status so it is inferred")
@click.pass_context
def update(ctx, entry_id, title, content_type, start_date, finish_date, rating, tags, hype_rating, status, clear_status):
    """Update selected fields of an entry."""
    changes = {
        "title": title,
        "type": content_type,
        "start_date": start_date,
        "finish_date": finish_date,
        "rating": rating,
        "tags": tags,
        "hype_rating": hype_rating,
        "status": status,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if clear_status:
        changes["status"] = ""
    if not changes:
        click.echo("Nothing to update.", err=True)
        sys.exit(1)
    _finish(_service(ctx).update_entry(entry_id, changes), "Entry updated:")


@main.command()
@click.argument("entry_id")
@click.confirmation_option(prompt="Delete this entry?")
@click.pass_context
def delete(ctx, entry_id):
    """Delete an entry."""
    result = _service(ctx).delete_entry(entry_id)
    if result.success:
        click.echo(f"Deleted {result.entry.title}")
        return
    _finish(result)


@main.command("new-cover")
@click.argument("entry_id")
@click.pass_context
def new_cover(ctx, entry_id):
    """Look for a different cover image."""
    _finish(_service(ctx).request_new_cover(entry_id), "Cover updated:")


@main.command()
@click.argument("entry_id")
@click.pass_context
def placeholder(ctx, entry_id):
    """Replace the cover with a placeholder image."""
    _finish(_service(ctx).fallback_to_placeholder(entry_id), "Cover replaced with placeholder:")


@main.command("refresh-covers")
@click.argument("entry_ids", nargs=-1)
@click.pass_context
def refresh_covers(ctx, entry_ids):
    """Request new covers for the given entries (all entries if none given)."""
    result = _service(ctx).refresh_covers(list(entry_ids) or None)
    _print_batch("Cover Refresh Results", result)
    sys.exit(0 if result.success else 1)


@main.command("repair-covers")
@click.option("--dry-run", is_flag=True, help="Only report covers that would be replaced")
@click.option("--include-placeholders", is_flag=True, help="Also retry entries showing a placeholder")
@click.pass_context
def repair_covers(ctx, dry_run, include_placeholders):
    """Replace missing or low-quality covers."""
    result = _service(ctx).repair_low_quality_covers(dry_run=dry_run, include_placeholders=include_placeholders)
    _print_batch("Cover Repair Results", result)
    sys.exit(0 if result.success else 1)


@main.command("check-cover")
@click.argument("url")
def check_cover(url):
    """Check whether a cover URL is good enough."""
    reason = low_quality_reason(url)
    if reason:
        click.echo(f"Low quality: {reason}")
        sys.exit(1)
    click.echo("OK")


@main.command()
@click.pass_context
def stats(ctx):
    """Show entry counts by status and type."""
    summary = _service(ctx).summarize()
    if not summary.success:
        click.echo(f"Error: {summary.error}", err=True)
        sys.exit(1)

    click.echo(f"Total entries: {summary.total}")
    click.echo("\nBy status:")
    for status, count in summary.by_status.items():
        click.echo(f"  {status:<22} {count}")
    click.echo("\nBy type:")
    for content_type, count in summary.by_type.items():
        click.echo(f"  {content_type:<22} {count}")


@main.command()
@click.option("--host", type=str, default="0.0.0.0", help="Web API host")
@click.option("--port", type=int, default=DEFAULT_WEB_UI_PORT, help="Web API port")
@click.pass_context
def serve(ctx, host, port):
    """Run the JSON web API."""
    import uvicorn
    from .web import create_app

    service = _service(ctx)
    logger.info("=" * 60)
    logger.info(f"Media Tracker API: http://localhost:{port}/api/entries")
    logger.info("=" * 60)
    try:
        uvicorn.run(create_app(service), host=host, port=port, log_level="warning")
    except KeyboardInterrupt:
        logger.info("Web API stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
