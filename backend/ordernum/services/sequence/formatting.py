"""Order number formatting.

An order number is the zero-padded sequence followed by the channel suffix:
sequence 42 in channel AS renders as "№00042/AS". The rendering depends only
on its two inputs, so recomputing it always yields the same string.
"""

import re

from ordernum.models.enums import OrderChannel
from ordernum.services.sequence.exceptions import InvalidOrderNumber

ORDER_NUMBER_PREFIX = "№"
ORDER_NUMBER_WIDTH = 5

_ORDER_NUMBER_RE = re.compile(r"^(?:№|#)?\s*(\d+)\s*/\s*([A-Za-z0-9_]+)$")


def format_order_number(sequence: int, channel: OrderChannel | str) -> str:
    """Render the display number for a sequence in a channel.

    Sequences wider than ORDER_NUMBER_WIDTH are rendered in full, never truncated.

    Raises:
        ValueError: If sequence is not a positive integer or channel is empty
    """
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise ValueError(f"Sequence must be an integer, got {sequence!r}")
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    suffix = str(channel)
    if not suffix or "/" in suffix:
        raise ValueError(f"Invalid channel for order number: {channel!r}")
    return f"{ORDER_NUMBER_PREFIX}{sequence:0{ORDER_NUMBER_WIDTH}d}/{suffix}"


def parse_order_number(text: str) -> tuple[int, OrderChannel]:
    """Parse a display number back into (sequence, channel).

    Accepts the number with or without the "№" prefix ("00042/as", "№42/AS").

    Raises:
        InvalidOrderNumber: If the text is malformed or names an unknown channel
    """
    match = _ORDER_NUMBER_RE.match(text.strip())
    if not match:
        raise InvalidOrderNumber(f"Malformed order number: {text!r}")
    digits, suffix = match.groups()
    sequence = int(digits)
    if sequence < 1:
        raise InvalidOrderNumber(f"Order number sequence must be positive: {text!r}")
    try:
        channel = OrderChannel(suffix.upper())
    except ValueError:
        raise InvalidOrderNumber(f"Unknown channel in order number: {text!r}") from None
    return sequence, channel


def normalize_order_number(text: str) -> str:
    """Return the canonical display form of an order number.

    Example:
        normalize_order_number("42/lab") == "№00042/LAB"
    """
    sequence, channel = parse_order_number(text)
    return format_order_number(sequence, channel)
