"""Per-channel order counter model."""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Integer
from sqlmodel import Field, SQLModel

from ordernum.models.enums import OrderChannel


def _utc_now() -> datetime:
    return datetime.now(UTC)


class OrderCounter(SQLModel, table=True):
    """Last sequence handed out in a channel.

    Incremented with a single `UPDATE ... SET value = value + 1 RETURNING value`
    so concurrent allocations are serialized by the row lock, never by a
    read followed by a write.
    """

    __tablename__ = "order_counters"
    __table_args__ = (CheckConstraint("value >= 0", name="ck_order_counters_value_non_negative"),)

    # Plain string key: a counter row may exist for a channel this build does not know yet
    channel: str = Field(primary_key=True, max_length=16)
    value: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    updated_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=_utc_now, onupdate=_utc_now),
    )

    @property
    def order_channel(self) -> OrderChannel | None:
        """Channel as enum, or None when the row belongs to an unknown channel."""
        try:
            return OrderChannel(self.channel)
        except ValueError:
            return None
