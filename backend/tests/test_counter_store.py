import asyncio

import pytest

from ordernum.models.enums import OrderChannel
from ordernum.services.sequence.counter_store import ChannelCounterStore
from ordernum.services.sequence.exceptions import CounterRegressionError, UnknownChannelError

pytestmark = [pytest.mark.anyio, pytest.mark.integration]


async def test_ensure_creates_counter_at_zero(session):
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.AS)
    await session.commit()

    assert await store.get_value(OrderChannel.AS) == 0


async def test_ensure_never_resets_existing_value(session):
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.AS)
    await store.increment_and_get(OrderChannel.AS)
    await store.increment_and_get(OrderChannel.AS)
    await store.ensure(OrderChannel.AS)
    await session.commit()

    assert await store.get_value(OrderChannel.AS) == 2


async def test_increment_returns_consecutive_values(session):
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.LAB)

    values = [await store.increment_and_get(OrderChannel.LAB) for _ in range(3)]

    assert values == [1, 2, 3]


async def test_increment_missing_counter_returns_none(session):
    store = ChannelCounterStore(session)

    assert await store.increment_and_get(OrderChannel.LAB) is None
    assert await store.get_value(OrderChannel.LAB) is None


async def test_channels_are_independent(session):
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.AS)
    await store.ensure(OrderChannel.LAB)

    await store.increment_and_get(OrderChannel.AS)
    await store.increment_and_get(OrderChannel.AS)
    lab = await store.increment_and_get(OrderChannel.LAB)

    assert lab == 1
    assert await store.get_value(OrderChannel.AS) == 2


async def test_concurrent_increments_are_unique_and_contiguous(session_maker):
    async with session_maker() as s:
        await ChannelCounterStore(s).ensure(OrderChannel.AS)
        await s.commit()

    async def take() -> int | None:
        async with session_maker() as s:
            value = await ChannelCounterStore(s).increment_and_get(OrderChannel.AS)
            await s.commit()
            return value

    values = await asyncio.gather(*(take() for _ in range(10)))

    assert sorted(values) == list(range(1, 11))


async def test_list_counters_ordered_by_channel(session):
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.LAB)
    await store.ensure(OrderChannel.AS)
    await session.commit()

    assert [c.channel for c in await store.list_counters()] == ["AS", "LAB"]


async def test_max_assigned_sequence(session, make_order):
    store = ChannelCounterStore(session)
    assert await store.max_assigned_sequence(OrderChannel.AS) == 0

    await make_order(OrderChannel.AS, seq=4, number="№00004/AS")
    await make_order(OrderChannel.AS)
    await make_order(OrderChannel.LAB, seq=9, number="№00009/LAB")

    assert await store.max_assigned_sequence(OrderChannel.AS) == 4
    assert await store.max_assigned_sequence(OrderChannel.LAB) == 9


async def test_set_value_moves_counter_forward(session, make_order):
    await make_order(OrderChannel.AS, seq=3, number="№00003/AS")
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.AS)

    await store.set_value(OrderChannel.AS, 3)
    await session.commit()

    assert await store.get_value(OrderChannel.AS) == 3


async def test_set_value_refuses_to_go_below_assigned(session, make_order):
    await make_order(OrderChannel.AS, seq=5, number="№00005/AS")
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.AS)

    with pytest.raises(CounterRegressionError) as exc_info:
        await store.set_value(OrderChannel.AS, 4)

    assert exc_info.value.floor == 5


async def test_set_value_rejects_negative(session):
    store = ChannelCounterStore(session)
    await store.ensure(OrderChannel.AS)

    with pytest.raises(CounterRegressionError):
        await store.set_value(OrderChannel.AS, -1)


async def test_set_value_unknown_counter(session):
    with pytest.raises(UnknownChannelError):
        await ChannelCounterStore(session).set_value(OrderChannel.LAB, 1)
