"""Backfill of order numbers for orders created before numbering existed.

The reconciler walks every unnumbered order of a channel in creation order,
assigns consecutive sequences and commits them in chunks. The channel counter
is aligned only after the whole channel succeeds, so a crash leaves the counter
behind the true count (never ahead) and a re-run corrects it.

Run it as a maintenance task: live order creation in the same channel must be
stopped for the duration, otherwise live and backfilled numbers collide.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ordernum.config import settings
from ordernum.models.enums import OrderChannel
from ordernum.models.order import Order
from ordernum.services.sequence.allocator import coerce_channel
from ordernum.services.sequence.counter_store import ChannelCounterStore
from ordernum.services.sequence.exceptions import ReconciliationAbort
from ordernum.services.sequence.formatting import format_order_number

logger = structlog.get_logger(__name__)


@dataclass
class ChannelBackfillResult:
    """Outcome of backfilling one channel."""

    channel: OrderChannel
    assigned: int = 0
    first_sequence: int | None = None
    last_sequence: int | None = None
    counter_before: int = 0
    counter_after: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BackfillReport:
    """Outcome of a backfill run over several channels."""

    dry_run: bool = False
    results: list[ChannelBackfillResult] = field(default_factory=list)

    @property
    def total_assigned(self) -> int:
        return sum(r.assigned for r in self.results)

    @property
    def failed(self) -> list[ChannelBackfillResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def for_channel(self, channel: OrderChannel | str) -> ChannelBackfillResult:
        for result in self.results:
            if result.channel == channel:
                return result
        raise KeyError(channel)


class BackfillReconciler:
    """Assigns sequence numbers to historical orders, channel by channel.

    Selection is "number is NULL", so running it again only touches records a
    previous run did not reach, and a run over a fully numbered channel changes
    nothing.

    Commits after every chunk and expunges the processed orders from the session.
    """

    def __init__(self, session: AsyncSession, *, chunk_size: int | None = None):
        self.session = session
        self.counters = ChannelCounterStore(session)
        self.chunk_size = chunk_size or settings.backfill_chunk_size
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    async def run(
        self,
        channels: Iterable[OrderChannel | str] | None = None,
        *,
        dry_run: bool = False,
    ) -> BackfillReport:
        """Backfill the given channels (all known channels by default).

        A failure in one channel is recorded in the report and does not stop
        the remaining channels.
        """
        targets = [coerce_channel(c) for c in channels] if channels is not None else list(OrderChannel)
        report = BackfillReport(dry_run=dry_run)

        logger.info("Starting order number backfill", channels=[str(c) for c in targets], dry_run=dry_run)

        for channel in targets:
            if dry_run:
                result = await self.preview_channel(channel)
            else:
                try:
                    result = await self.reconcile_channel(channel)
                except ReconciliationAbort as e:
                    logger.error(
                        "Backfill aborted for channel",
                        channel=channel,
                        assigned=e.assigned,
                        last_order_id=e.last_order_id,
                        last_sequence=e.last_sequence,
                        reason=e.reason,
                    )
                    result = ChannelBackfillResult(
                        channel=channel,
                        assigned=e.assigned,
                        last_sequence=e.last_sequence,
                        error=str(e),
                    )
            report.results.append(result)

        logger.info(
            "Order number backfill finished",
            total_assigned=report.total_assigned,
            failed=[str(r.channel) for r in report.failed],
            dry_run=dry_run,
        )
        return report

    async def preview_channel(self, channel: OrderChannel | str) -> ChannelBackfillResult:
        """Report what reconcile_channel would assign, without writing."""
        channel = coerce_channel(channel)
        counter_before = await self.counters.get_value(channel) or 0
        start = max(counter_before, await self.counters.max_assigned_sequence(channel))
        pending = await self.count_pending(channel)

        logger.info("Backfill preview", channel=channel, pending=pending, counter=counter_before)
        return ChannelBackfillResult(
            channel=channel,
            assigned=pending,
            first_sequence=start + 1 if pending else None,
            last_sequence=start + pending if pending else None,
            counter_before=counter_before,
            counter_after=start + pending,
        )

    async def count_pending(self, channel: OrderChannel | str) -> int:
        """Number of orders in the channel still lacking a number."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Order)
            .where(Order.channel == str(channel), Order.number.is_(None))  # type: ignore[arg-type,union-attr]
        )
        return result.scalar_one()

    async def reconcile_channel(self, channel: OrderChannel | str) -> ChannelBackfillResult:
        """Number every unnumbered order of one channel and align its counter.

        Raises:
            ReconciliationAbort: If a chunk or the counter update fails
        """
        channel = coerce_channel(channel)
        result = ChannelBackfillResult(channel=channel)

        try:
            await self.counters.ensure(channel)
            await self.session.commit()
            result.counter_before = await self.counters.get_value(channel) or 0
            # Continue after anything already numbered, so a re-run never reuses a sequence
            next_sequence = max(result.counter_before, await self.counters.max_assigned_sequence(channel)) + 1
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise ReconciliationAbort(
                channel, last_order_id=None, last_sequence=None, assigned=0, reason=str(e)
            ) from e

        logger.info("Backfilling channel", channel=channel, counter=result.counter_before, start=next_sequence)
        last_order_id: str | None = None

        while True:
            try:
                orders = await self._next_chunk(channel)
                if not orders:
                    break
                chunk_first = next_sequence
                for order in orders:
                    order.seq = next_sequence
                    order.number = format_order_number(next_sequence, channel)
                    next_sequence += 1
                chunk_last_id = orders[-1].id
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                raise ReconciliationAbort(
                    channel,
                    last_order_id=last_order_id,
                    last_sequence=result.last_sequence,
                    assigned=result.assigned,
                    reason=str(e),
                ) from e

            # Checkpoint: everything up to here is committed
            self.session.expunge_all()
            last_order_id = chunk_last_id
            result.assigned += len(orders)
            result.first_sequence = result.first_sequence or chunk_first
            result.last_sequence = next_sequence - 1
            logger.info(
                "Backfill progress",
                channel=channel,
                assigned=result.assigned,
                last_sequence=result.last_sequence,
            )

        try:
            result.counter_after = await self._align_counter(channel, result.counter_before)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise ReconciliationAbort(
                channel,
                last_order_id=last_order_id,
                last_sequence=result.last_sequence,
                assigned=result.assigned,
                reason=f"counter update failed: {e}",
            ) from e

        logger.info(
            "Channel backfill complete",
            channel=channel,
            assigned=result.assigned,
            counter=result.counter_after,
        )
        return result

    async def _next_chunk(self, channel: OrderChannel) -> list[Order]:
        # Ties on created_at fall back to id so repeated runs pick the same order
        statement = (
            select(Order)
            .where(Order.channel == channel, Order.number.is_(None))  # type: ignore[arg-type,union-attr]
            .order_by(Order.created_at.asc(), Order.id.asc())  # type: ignore[attr-defined]
            .limit(self.chunk_size)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def _align_counter(self, channel: OrderChannel, counter_before: int) -> int:
        """Raise the counter to the highest assigned sequence if it is behind."""
        target = max(counter_before, await self.counters.max_assigned_sequence(channel))
        if target != counter_before:
            await self.counters.set_value(channel, target)
        return target
