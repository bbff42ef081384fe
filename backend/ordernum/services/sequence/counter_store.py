"""Durable per-channel counters.

The counter row is the single source of truth for the next order number in a
channel. Every mutation is one SQL statement so the database serializes
concurrent writers on the row; nothing here reads a value and writes it back.

The store never commits. Callers own the transaction.
"""

from typing import Any

import structlog
from sqlalchemy import func, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ordernum.models.enums import OrderChannel
from ordernum.models.order import Order
from ordernum.models.order_counter import OrderCounter
from ordernum.services.sequence.exceptions import CounterRegressionError, UnknownChannelError

logger = structlog.get_logger(__name__)

_INSERT_BY_DIALECT: dict[str, Any] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ChannelCounterStore:
    """Atomic operations on the `order_counters` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self) -> Any:
        dialect = self.session.get_bind().dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise NotImplementedError(f"Counter upsert is not supported on {dialect}") from None
        return insert(OrderCounter)

    async def ensure(self, channel: OrderChannel | str) -> None:
        """Create the counter at 0 if it does not exist.

        Uses INSERT ... ON CONFLICT DO NOTHING, so concurrent callers are safe
        and an existing value is never reset.
        """
        stmt = (
            self._insert()
            .values(channel=str(channel), value=0)
            .on_conflict_do_nothing(index_elements=[OrderCounter.channel])
        )
        await self.session.execute(stmt)

    async def increment_and_get(self, channel: OrderChannel | str) -> int | None:
        """Atomically add one to the counter and return the new value.

        Returns None when no counter row exists for the channel.
        """
        stmt = (
            update(OrderCounter)
            .where(OrderCounter.channel == str(channel))  # type: ignore[arg-type]
            .values(value=OrderCounter.value + 1)  # type: ignore[operator]
            .returning(OrderCounter.value)  # type: ignore[arg-type]
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        value: int | None = result.scalar_one_or_none()
        return value

    async def get_value(self, channel: OrderChannel | str) -> int | None:
        """Current counter value, or None when the counter does not exist."""
        result = await self.session.execute(
            select(OrderCounter.value).where(OrderCounter.channel == str(channel))  # type: ignore[arg-type]
        )
        value: int | None = result.scalar_one_or_none()
        return value

    async def list_counters(self) -> list[OrderCounter]:
        """All counters ordered by channel."""
        result = await self.session.execute(select(OrderCounter).order_by(OrderCounter.channel))
        return list(result.scalars().all())

    async def max_assigned_sequence(self, channel: OrderChannel | str) -> int:
        """Highest sequence already stored on an order in the channel (0 when none)."""
        result = await self.session.execute(
            select(func.coalesce(func.max(Order.seq), 0)).where(Order.channel == str(channel))  # type: ignore[arg-type]
        )
        value: int = result.scalar_one()
        return value

    async def set_value(self, channel: OrderChannel | str, value: int) -> None:
        """Administrative override used by the backfill to align a counter.

        Never call this from order creation. The value may not drop below the
        highest sequence already assigned in the channel.

        Raises:
            CounterRegressionError: If value is negative or below an assigned sequence
            UnknownChannelError: If the channel has no counter
        """
        key = str(channel)
        floor = await self.max_assigned_sequence(key)
        if value < 0 or value < floor:
            raise CounterRegressionError(key, value, floor)

        stmt = (
            update(OrderCounter)
            .where(OrderCounter.channel == key)  # type: ignore[arg-type]
            .values(value=value)
            .returning(OrderCounter.value)  # type: ignore[arg-type]
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none() is None:
            raise UnknownChannelError(key)

        logger.info("Counter value set", channel=key, value=value)
