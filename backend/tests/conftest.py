import os

# Must be set before ordernum modules build the engine and settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_ordernum.db")
os.environ.setdefault("SEED_COUNTERS_ON_STARTUP", "false")

from collections.abc import Awaitable, Callable  # noqa: E402
from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel, select  # noqa: E402

from ordernum.db import get_session  # noqa: E402
from ordernum.main import app  # noqa: E402
from ordernum.models.enums import OrderChannel  # noqa: E402
from ordernum.models.order import Order  # noqa: E402

MakeOrder = Callable[..., Awaitable[Order]]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def database_url(tmp_path):
    # File-backed so concurrent connections share one database
    return f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"


@pytest.fixture
async def test_engine(database_url):
    engine = create_async_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
async def client(session_maker):
    async def _override_get_session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_order(session_maker) -> MakeOrder:
    """Insert an order without a number, as created before numbering existed."""

    async def _make(
        channel: OrderChannel = OrderChannel.AS,
        created_at: datetime | None = None,
        **fields: object,
    ) -> Order:
        created = created_at or datetime.now(UTC)
        fields.setdefault("customer_name", "Legacy Customer")
        fields.setdefault("customer_phone", "+70000000000")
        async with session_maker() as s:
            order = Order(channel=channel, created_at=created, updated_at=created, **fields)
            s.add(order)
            await s.commit()
            return order

    return _make


@pytest.fixture
def order_numbers(session_maker):
    """Map order id -> (seq, number) for a channel, read with a fresh session."""

    async def _fetch(channel: OrderChannel) -> dict[str, tuple[int | None, str | None]]:
        async with session_maker() as s:
            result = await s.execute(select(Order.id, Order.seq, Order.number).where(Order.channel == channel))
            return {row.id: (row.seq, row.number) for row in result.all()}

    return _fetch
