"""Order database model."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, UniqueConstraint
from sqlmodel import Field, SQLModel
from ulid import ULID

from ordernum.models.enums import (
    ORDER_CHANNEL_SA_ENUM,
    ORDER_STATUS_SA_ENUM,
    PAYMENT_METHOD_SA_ENUM,
    OrderChannel,
    OrderStatus,
    PaymentMethod,
)
from ordernum.models.types import ULIDType


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


# Sequence is unique per channel; the formatted number embeds the channel so it is globally unique
ORDER_CHANNEL_SEQ_CONSTRAINT = UniqueConstraint("channel", "seq", name="uq_orders_channel_seq")
ORDER_NUMBER_CONSTRAINT = UniqueConstraint("number", name="uq_orders_number")
ORDER_NUMBER_PAIR_CONSTRAINT = CheckConstraint(
    "(seq IS NULL AND number IS NULL) OR (seq IS NOT NULL AND number IS NOT NULL)",
    name="ck_orders_seq_number_pair",
)


class Order(SQLModel, table=True):
    """Customer order.

    `seq` and `number` are assigned once (at creation or by the backfill) and
    never rewritten afterwards. Orders created before numbering existed have both
    set to None until reconciled.
    """

    __tablename__ = "orders"
    __table_args__ = (
        ORDER_CHANNEL_SEQ_CONSTRAINT,
        ORDER_NUMBER_CONSTRAINT,
        ORDER_NUMBER_PAIR_CONSTRAINT,
    )

    # ULID stored as UUID
    id: str = Field(
        default_factory=_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )

    channel: OrderChannel = Field(
        default=OrderChannel.AS,
        sa_column=Column(ORDER_CHANNEL_SA_ENUM, nullable=False, index=True),
    )
    seq: int | None = Field(default=None)
    # Display order number: "№00042/AS"
    number: str | None = Field(default=None, max_length=32)

    user_id: str | None = Field(default=None, index=True)
    status: OrderStatus = Field(
        default=OrderStatus.NEW,
        sa_column=Column(ORDER_STATUS_SA_ENUM, nullable=False),
    )
    total_amount: Decimal = Field(default=Decimal("0"), sa_column=Column(Numeric(12, 2), nullable=False))
    currency: str = Field(default="RUB", max_length=3)
    customer_name: str
    customer_phone: str
    customer_address: str | None = None
    comment: str | None = None
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.MANAGER,
        sa_column=Column(PAYMENT_METHOD_SA_ENUM, nullable=False),
    )

    created_at: datetime = Field(default_factory=_utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=_utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))

    @property
    def is_numbered(self) -> bool:
        return self.number is not None
