"""Order management service.

This service handles business logic for order management. Every new order
gets its number from SequenceAllocator in the same transaction as the order
row, so an order is never stored without a number and a number is never
attached to more than one order.
"""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

import structlog
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from ulid import ULID

from ordernum.models.enums import OrderChannel, OrderStatus
from ordernum.models.order import Order
from ordernum.services.orders.exceptions import OrderNotFound
from ordernum.services.sequence.allocator import SequenceAllocator
from ordernum.services.sequence.formatting import normalize_order_number

logger = structlog.get_logger(__name__)


@dataclass
class OrderPage:
    """One page of orders plus pagination metadata."""

    orders: list[Order]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class OrderService:
    """Service for order management operations."""

    def __init__(self, session: AsyncSession, allocator: SequenceAllocator | None = None):
        self.session = session
        self.allocator = allocator or SequenceAllocator(session)

    async def create_order(
        self,
        *,
        channel: OrderChannel | str,
        customer_name: str,
        customer_phone: str,
        total_amount: Decimal = Decimal("0"),
        currency: str = "RUB",
        customer_address: str | None = None,
        comment: str | None = None,
        user_id: str | None = None,
    ) -> Order:
        """Create an order and assign its number.

        Allocation runs first, then the order row is added and both are
        committed together. If the write fails the counter increment is rolled
        back with the order, so no stored order ever refers to the dropped number.

        Raises:
            UnknownChannelError: If the channel cannot be numbered
            AllocationError: If the counter could not be incremented
        """
        allocated = await self.allocator.allocate(channel)
        order_channel = OrderChannel(channel)

        order = Order(
            channel=order_channel,
            seq=allocated.sequence,
            number=allocated.number,
            user_id=user_id,
            status=OrderStatus.NEW,
            total_amount=total_amount,
            currency=currency,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_address=customer_address or None,
            comment=comment or None,
        )
        self.session.add(order)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.error(
                "Order write failed, allocated number dropped",
                channel=order_channel,
                sequence=allocated.sequence,
                number=allocated.number,
            )
            raise

        logger.info("Created order", order_id=order.id, channel=order.channel, number=order.number)
        return order

    async def list_orders(
        self,
        *,
        page: int = 1,
        page_size: int = 20,
        channel: OrderChannel | None = None,
        status: OrderStatus | None = None,
        search: str | None = None,
    ) -> OrderPage:
        """List orders newest first, optionally filtered."""
        filters = []
        if channel is not None:
            filters.append(Order.channel == channel)
        if status is not None:
            filters.append(Order.status == status)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(
                    Order.customer_phone.ilike(pattern),  # type: ignore[attr-defined]
                    Order.customer_name.ilike(pattern),  # type: ignore[attr-defined]
                )
            )

        count_statement = select(func.count()).select_from(Order).where(*filters)
        count_result = await self.session.execute(count_statement)
        total = count_result.scalar() or 0

        orders_statement = (
            select(Order)
            .where(*filters)
            .order_by(Order.created_at.desc())  # type: ignore[attr-defined]
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        orders_result = await self.session.execute(orders_statement)
        orders = list(orders_result.scalars().all())

        return OrderPage(orders=orders, page=page, page_size=page_size, total=total)

    async def get_order(self, order_id: str) -> Order:
        """Get order by id."""
        try:
            ULID.from_str(order_id)
        except ValueError:
            raise OrderNotFound() from None
        order = await self.session.get(Order, order_id)
        if not order:
            raise OrderNotFound()
        return order

    async def get_order_by_number(self, number: str) -> Order:
        """Get order by its display number ("№00042/AS", "42/as", ...).

        Raises:
            InvalidOrderNumber: If the number is malformed
            OrderNotFound: If no order carries the number
        """
        normalized = normalize_order_number(number)
        result = await self.session.execute(select(Order).where(Order.number == normalized))
        order = result.scalars().first()
        if not order:
            raise OrderNotFound()
        return order

    async def update_status(self, order_id: str, status: OrderStatus) -> Order:
        """Change order status. The order number is kept, also on cancellation."""
        order = await self.get_order(order_id)
        order.status = status
        order.updated_at = datetime.now(UTC)
        await self.session.commit()

        logger.info("Order status updated", order_id=order.id, number=order.number, status=status)
        return order
