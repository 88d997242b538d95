"""CLI interface for pubsync using Click.

Wraps the core engine for use in cron jobs, CI pipelines, and
interactive terminal use.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click

from pubsync.core import SyncEngine
from pubsync.errors import SyncError
from pubsync.export.json_export import dumps, works_to_json
from pubsync.models import ApprovalStatus, SearchPage, Work

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _get_engine(config: str) -> SyncEngine:
    """Create a SyncEngine from a config path.

    Args:
        config: Path to pubsync.yaml.

    Returns:
        Initialized SyncEngine instance.
    """
    try:
        return SyncEngine.from_config_file(config)
    except FileNotFoundError:
        click.echo(f"Error: Config file not found: {config}", err=True)
        sys.exit(1)
    except SyncError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _run(engine: SyncEngine, action: Callable[[SyncEngine], Awaitable[T]]) -> T:
    """Run one engine coroutine, closing the engine afterwards.

    Exits with status 1 on any SyncError.
    """

    async def _main() -> T:
        try:
            return await action(engine)
        finally:
            await engine.aclose()

    try:
        return asyncio.run(_main())
    except SyncError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _echo_work(w: Work) -> None:
    venue = w.venue or "venue unknown"
    doi = f" DOI: {w.doi}" if w.doi else ""
    date = w.publication_date.isoformat() if w.publication_date else "n.d."
    click.echo(f"  {w.id}  {w.title} ({date}) -- {venue}{doi}")


def _echo_page(page: SearchPage) -> None:
    if not page.results:
        click.echo("No works found.")
        return
    click.echo(
        f"Page {page.page}: {len(page.results)} of {page.total_count} works"
    )
    for w in page.results:
        _echo_work(w)


@click.group()
@click.option(
    "-c",
    "--config",
    default="pubsync.yaml",
    help="Path to pubsync.yaml",
    type=click.Path(),
)
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """pubsync -- Send new journal articles to a review sheet."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command()
@click.argument("journal_ids", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Print the sync report as JSON.")
@click.pass_context
def sync(ctx: click.Context, journal_ids: tuple[str, ...], as_json: bool) -> None:
    """Append last week's works from JOURNAL_IDS to the review sheet.

    Without arguments, the journals listed under sync.journals in the
    config file are used.
    """
    engine = _get_engine(ctx.obj["config"])
    ids = list(journal_ids) or list(engine.journals)
    report = _run(engine, lambda e: e.sync(ids))

    if as_json:
        click.echo(dumps(report))
        return

    click.echo(f"Sync complete at {report.timestamp.isoformat()}")
    click.echo(
        f"Window: {report.window.start.isoformat()} to "
        f"{report.window.end.isoformat()}"
    )
    for j in report.journals:
        click.echo(
            f"  {j.journal_id}: {j.fetched} fetched, "
            f"{j.skipped} already approved, {j.appended} added"
        )
    click.echo(f"New articles added: {report.appended_count}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("-o", "--output", default=None, help="Output file path.")
@click.pass_context
def approved(ctx: click.Context, as_json: bool, output: str | None) -> None:
    """List approved works, resolved against OpenAlex."""
    engine = _get_engine(ctx.obj["config"])
    works = _run(engine, lambda e: e.get_approved_articles())

    if as_json or output:
        data = dumps(works_to_json(works))
        if output:
            with open(output, "w") as f:
                f.write(data)
            click.echo(f"JSON written to {output}")
        else:
            click.echo(data)
        return

    if not works:
        click.echo("No approved articles.")
        return
    for w in works:
        _echo_work(w)


@main.command()
@click.option(
    "--status",
    default=None,
    type=click.Choice([s.value for s in ApprovalStatus]),
    help="Only show rows with this status.",
)
@click.pass_context
def records(ctx: click.Context, status: str | None) -> None:
    """List the rows currently in the review sheet."""
    engine = _get_engine(ctx.obj["config"])
    wanted = ApprovalStatus(status) if status else None
    rows = _run(engine, lambda e: e.get_records(wanted))
    if not rows:
        click.echo("No rows found.")
        return
    for r in rows:
        comment = f" -- {r.comment}" if r.comment else ""
        click.echo(f"  [{r.status}] row {r.row}: {r.work_id}  {r.title}{comment}")


@main.command()
@click.argument("query")
@click.option("--filter", "filter_", default=None, help="OpenAlex filter expression.")
@click.option("--page", default=1, type=click.IntRange(min=1))
@click.option("--per-page", default=25, type=click.IntRange(min=1, max=200))
@click.pass_context
def search(
    ctx: click.Context,
    query: str,
    filter_: str | None,
    page: int,
    per_page: int,
) -> None:
    """Search OpenAlex works."""
    engine = _get_engine(ctx.obj["config"])
    result = _run(
        engine,
        lambda e: e.search.search(query, filter=filter_, page=page, per_page=per_page),
    )
    _echo_page(result)


@main.command()
@click.argument("work_id")
@click.pass_context
def show(ctx: click.Context, work_id: str) -> None:
    """Show detailed metadata for one work by OpenAlex ID."""
    engine = _get_engine(ctx.obj["config"])
    w = _run(engine, lambda e: e.search.get_work(work_id))

    click.echo(f"ID: {w.id}")
    click.echo(f"Title: {w.title}")
    click.echo(f"Date: {w.publication_date or 'unknown'}")
    click.echo(f"Type: {w.work_type or 'unknown'}")
    click.echo(f"Venue: {w.venue or 'unknown'}")
    click.echo(f"DOI: {w.doi or 'none'}")
    click.echo(f"Authors: {', '.join(a.name for a in w.authors)}")
    click.echo(f"Citations: {w.citation_count}")
    if w.abstract:
        click.echo(f"\nAbstract: {w.abstract}")


@main.command("author-works")
@click.argument("author_id")
@click.option("--page", default=1, type=click.IntRange(min=1))
@click.option("--per-page", default=25, type=click.IntRange(min=1, max=200))
@click.pass_context
def author_works(
    ctx: click.Context, author_id: str, page: int, per_page: int
) -> None:
    """List works by an OpenAlex author."""
    engine = _get_engine(ctx.obj["config"])
    result = _run(
        engine,
        lambda e: e.search.works_by_author(author_id, page=page, per_page=per_page),
    )
    _echo_page(result)
