"""Enum definitions for database models."""

from enum import StrEnum

from sqlalchemy import Enum


class OrderChannel(StrEnum):
    """Sales channel with its own order numbering sequence.

    Values are persisted and appear in order numbers; never rename or reuse one.
    """

    AS = "AS"
    LAB = "LAB"


class OrderStatus(StrEnum):
    """Status of an order."""

    NEW = "NEW"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELED = "CANCELED"


class PaymentMethod(StrEnum):
    """How the order is paid."""

    MANAGER = "MANAGER"  # Settled by a manager after confirmation


# Stored as VARCHAR (non-native) so channels can be added without a type migration
ORDER_CHANNEL_SA_ENUM = Enum(
    OrderChannel,
    name="orderchannel",
    native_enum=False,
    length=16,
    values_callable=lambda e: [member.value for member in e],
)

ORDER_STATUS_SA_ENUM = Enum(
    OrderStatus,
    name="orderstatus",
    native_enum=False,
    length=16,
    values_callable=lambda e: [member.value for member in e],
)

PAYMENT_METHOD_SA_ENUM = Enum(
    PaymentMethod,
    name="paymentmethod",
    native_enum=False,
    length=16,
    values_callable=lambda e: [member.value for member in e],
)
