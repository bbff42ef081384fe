"""Order domain exceptions."""

from ordernum.services.exceptions import NotFoundError


class OrderNotFound(NotFoundError):
    """Order not found."""

    pass
