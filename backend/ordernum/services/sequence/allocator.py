"""Sequence allocation for newly created orders."""

from dataclasses import dataclass, field

import structlog
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ordernum.config import settings
from ordernum.models.enums import OrderChannel
from ordernum.services.sequence.counter_store import ChannelCounterStore
from ordernum.services.sequence.exceptions import AllocationError, UnknownChannelError
from ordernum.services.sequence.formatting import format_order_number

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AllocatedNumber:
    """Sequence minted for one order and its display number."""

    sequence: int
    number: str


@dataclass
class AllocationRetryConfig:
    """Retry policy for operational failures of the atomic increment."""

    max_attempts: int = field(default_factory=lambda: settings.allocation_max_attempts)
    min_wait: float = field(default_factory=lambda: settings.allocation_retry_min_wait)
    max_wait: float = field(default_factory=lambda: settings.allocation_retry_max_wait)


def coerce_channel(channel: OrderChannel | str) -> OrderChannel:
    """Convert a channel identifier to OrderChannel.

    Raises:
        UnknownChannelError: If the identifier is not a known channel
    """
    if isinstance(channel, OrderChannel):
        return channel
    try:
        return OrderChannel(channel)
    except ValueError:
        raise UnknownChannelError(channel) from None


class SequenceAllocator:
    """Mints order numbers from the channel counters.

    Runs inside the caller's session and does not commit: the order creation
    flow commits the increment together with the order row, so a number is
    never stored without its order.

    Allocation must be the first write in the unit of work. An operational
    failure of the increment rolls the session back before retrying, which is
    safe only while nothing else is pending.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        autocreate: bool | None = None,
        retry: AllocationRetryConfig | None = None,
    ):
        self.session = session
        self.counters = ChannelCounterStore(session)
        self.autocreate = settings.counter_autocreate if autocreate is None else autocreate
        self.retry = retry or AllocationRetryConfig()

    async def allocate(self, channel: OrderChannel | str) -> AllocatedNumber:
        """Take the next sequence in the channel and format its number.

        Raises:
            UnknownChannelError: If the channel is unknown, or has no counter and
                counters may not be created lazily
            AllocationError: If the counter store could not perform the increment
        """
        order_channel = coerce_channel(channel)

        try:
            sequence = await self._increment_with_retry(order_channel)
        except SQLAlchemyError as e:
            logger.error("Order number allocation failed", channel=order_channel, error=str(e))
            raise AllocationError(f"Counter increment for {order_channel} failed: {e}") from e

        number = format_order_number(sequence, order_channel)
        logger.debug("Allocated order number", channel=order_channel, sequence=sequence, number=number)
        return AllocatedNumber(sequence=sequence, number=number)

    async def _increment_with_retry(self, channel: OrderChannel) -> int:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(OperationalError),
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential(min=self.retry.min_wait, max=self.retry.max_wait),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                try:
                    return await self._increment(channel)
                except OperationalError as e:
                    logger.warning(
                        "Counter increment failed, retrying",
                        channel=channel,
                        attempt=attempt.retry_state.attempt_number,
                        max_attempts=self.retry.max_attempts,
                        error=str(e),
                    )
                    await self.session.rollback()
                    raise
        raise AllocationError(f"Counter increment for {channel} was not attempted")

    async def _increment(self, channel: OrderChannel) -> int:
        value = await self.counters.increment_and_get(channel)
        if value is not None:
            return value

        if not self.autocreate:
            raise UnknownChannelError(channel)

        logger.info("Creating missing channel counter", channel=channel)
        await self.counters.ensure(channel)
        value = await self.counters.increment_and_get(channel)
        if value is None:
            raise AllocationError(f"Counter for {channel} vanished after creation")
        return value
