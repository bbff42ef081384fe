"""Database models."""

from sqlmodel import SQLModel

from ordernum.models.enums import OrderChannel, OrderStatus, PaymentMethod
from ordernum.models.order import Order
from ordernum.models.order_counter import OrderCounter

__all__ = [
    "SQLModel",
    "Order",
    "OrderCounter",
    "OrderChannel",
    "OrderStatus",
    "PaymentMethod",
]
