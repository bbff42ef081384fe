"""API schemas for orders endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from ordernum.models.enums import OrderChannel, OrderStatus, PaymentMethod
from ordernum.models.order import Order
from ordernum.models.order_counter import OrderCounter
from ordernum.services.orders.order_service import OrderPage
from ordernum.utils.datetime_utils import to_api_timezone

# =============================================================================
# Request Schemas
# =============================================================================


class CreateOrderRequest(BaseModel):
    """Request to create an order in a channel."""

    channel: OrderChannel = OrderChannel.AS
    customer_name: str = Field(min_length=1, max_length=200)
    customer_phone: str = Field(min_length=1, max_length=50)
    customer_address: str | None = None
    comment: str | None = None
    total_amount: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = Field(default="RUB", min_length=3, max_length=3)
    user_id: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    """Request to change order status."""

    status: OrderStatus


# =============================================================================
# Response Schemas
# =============================================================================


class OrderResponse(BaseModel):
    """Order response schema."""

    id: str
    channel: OrderChannel
    sequence: int | None
    number: str | None
    status: OrderStatus
    user_id: str | None
    total_amount: Decimal
    currency: str
    customer_name: str
    customer_phone: str
    customer_address: str | None
    comment: str | None
    payment_method: PaymentMethod
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_timestamps(self, dt: datetime) -> str:
        """Serialize datetime to API timezone."""
        localized_dt = to_api_timezone(dt)
        assert localized_dt is not None
        return localized_dt.isoformat()

    @classmethod
    def from_model(cls, order: Order) -> "OrderResponse":
        """Create response from Order model."""
        return cls(
            id=order.id,
            channel=order.channel,
            sequence=order.seq,
            number=order.number,
            status=order.status,
            user_id=order.user_id,
            total_amount=order.total_amount,
            currency=order.currency,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address,
            comment=order.comment,
            payment_method=order.payment_method,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PageMeta(BaseModel):
    """Pagination metadata."""

    page: int
    page_size: int
    total: int
    total_pages: int


class OrderListResponse(BaseModel):
    """Paginated order list."""

    items: list[OrderResponse]
    meta: PageMeta

    @classmethod
    def from_page(cls, page: OrderPage) -> "OrderListResponse":
        return cls(
            items=[OrderResponse.from_model(order) for order in page.orders],
            meta=PageMeta(
                page=page.page,
                page_size=page.page_size,
                total=page.total,
                total_pages=page.total_pages,
            ),
        )


class CounterResponse(BaseModel):
    """Current value of a channel counter."""

    channel: str
    value: int
    updated_at: datetime

    @field_serializer("updated_at")
    def serialize_updated_at(self, dt: datetime) -> str:
        """Serialize datetime to API timezone."""
        localized_dt = to_api_timezone(dt)
        assert localized_dt is not None
        return localized_dt.isoformat()

    @classmethod
    def from_model(cls, counter: OrderCounter) -> "CounterResponse":
        return cls(channel=counter.channel, value=counter.value, updated_at=counter.updated_at)


class CounterListResponse(BaseModel):
    """All channel counters."""

    counters: list[CounterResponse]
