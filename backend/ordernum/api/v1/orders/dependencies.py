"""FastAPI dependencies for service injection."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ordernum.db import get_session
from ordernum.services.orders.order_service import OrderService
from ordernum.services.sequence.counter_store import ChannelCounterStore


async def get_order_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OrderService:
    """Get an OrderService instance with the current session."""
    return OrderService(session)


async def get_counter_store(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ChannelCounterStore:
    """Get a ChannelCounterStore instance with the current session."""
    return ChannelCounterStore(session)


# Type aliases for cleaner endpoint signatures
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
CounterStoreDep = Annotated[ChannelCounterStore, Depends(get_counter_store)]
