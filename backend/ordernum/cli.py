"""Administrative CLI for order numbering.

    ordernum backfill [--channel AS] [--dry-run] [--chunk-size 500]
    ordernum counters
    ordernum seed-counters

Run the backfill in a maintenance window: live order creation on the affected
channels must be stopped until it finishes.
"""

import asyncio
import sys

import click
import structlog

from ordernum.config import settings
from ordernum.db import script_db_session
from ordernum.logging import setup_logging
from ordernum.models.enums import OrderChannel
from ordernum.services.sequence.backfill import BackfillReconciler, BackfillReport
from ordernum.services.sequence.counter_store import ChannelCounterStore
from ordernum.utils.redis_lock import LockUnavailable, RedisLock

logger = structlog.get_logger(__name__)

CHANNEL_CHOICE = click.Choice([c.value for c in OrderChannel], case_sensitive=False)


@click.group()
@click.option("--database-url", envvar="DATABASE_URL", default=None, help="Override the configured database URL.")
@click.pass_context
def cli(ctx: click.Context, database_url: str | None) -> None:
    """Order numbering administration."""
    setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url or settings.database_url


async def _run_backfill(
    database_url: str,
    channels: list[OrderChannel] | None,
    dry_run: bool,
    chunk_size: int | None,
) -> BackfillReport:
    async with script_db_session(database_url) as session:
        reconciler = BackfillReconciler(session, chunk_size=chunk_size)
        return await reconciler.run(channels, dry_run=dry_run)


def _print_report(report: BackfillReport) -> None:
    verb = "would assign" if report.dry_run else "assigned"
    for result in report.results:
        if not result.ok:
            click.echo(f"{result.channel}: FAILED after {result.assigned} records ({result.error})")
            continue
        if result.assigned:
            span = f"{result.first_sequence}..{result.last_sequence}"
            click.echo(f"{result.channel}: {verb} {result.assigned} numbers ({span}), counter {result.counter_after}")
        else:
            click.echo(f"{result.channel}: nothing to backfill, counter {result.counter_after}")


@cli.command()
@click.option(
    "--channel",
    "channels",
    multiple=True,
    type=CHANNEL_CHOICE,
    help="Channel to backfill (repeatable). Defaults to all channels.",
)
@click.option("--dry-run", is_flag=True, help="Only report what would be assigned.")
@click.option("--chunk-size", type=click.IntRange(min=1), default=None, help="Orders committed per chunk.")
@click.pass_context
def backfill(ctx: click.Context, channels: tuple[str, ...], dry_run: bool, chunk_size: int | None) -> None:
    """Assign numbers to historical orders that have none.

    Safe to re-run: already numbered orders are never touched.
    """
    selected = [OrderChannel(c.upper()) for c in channels] or None
    database_url = ctx.obj["database_url"]

    try:
        with RedisLock(settings.backfill_lock_key, ttl=settings.backfill_lock_ttl):
            report = asyncio.run(_run_backfill(database_url, selected, dry_run, chunk_size))
    except LockUnavailable:
        logger.error("Another backfill run holds the lock", key=settings.backfill_lock_key)
        click.echo("Another backfill is already running.", err=True)
        sys.exit(1)

    _print_report(report)
    if not report.ok:
        sys.exit(1)


async def _list_counters(database_url: str) -> list[tuple[str, int]]:
    async with script_db_session(database_url) as session:
        rows = await ChannelCounterStore(session).list_counters()
        return [(row.channel, row.value) for row in rows]


@cli.command()
@click.pass_context
def counters(ctx: click.Context) -> None:
    """Show the current value of every channel counter."""
    rows = asyncio.run(_list_counters(ctx.obj["database_url"]))
    if not rows:
        click.echo("No counters yet.")
        return
    for channel, value in rows:
        click.echo(f"{channel}\t{value}")


async def _seed_counters(database_url: str) -> None:
    async with script_db_session(database_url) as session:
        store = ChannelCounterStore(session)
        for channel in OrderChannel:
            await store.ensure(channel)
        await session.commit()


@cli.command("seed-counters")
@click.pass_context
def seed_counters(ctx: click.Context) -> None:
    """Create a counter at 0 for every channel that has none."""
    asyncio.run(_seed_counters(ctx.obj["database_url"]))
    click.echo(f"Counters ensured for: {', '.join(c.value for c in OrderChannel)}")
