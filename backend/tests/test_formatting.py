import pytest

from ordernum.models.enums import OrderChannel
from ordernum.services.sequence.exceptions import InvalidOrderNumber
from ordernum.services.sequence.formatting import (
    format_order_number,
    normalize_order_number,
    parse_order_number,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("sequence", "channel", "expected"),
    [
        (1, OrderChannel.AS, "№00001/AS"),
        (42, OrderChannel.AS, "№00042/AS"),
        (3, OrderChannel.LAB, "№00003/LAB"),
        (99999, "AS", "№99999/AS"),
    ],
)
def test_format_order_number(sequence, channel, expected):
    assert format_order_number(sequence, channel) == expected


def test_format_is_deterministic():
    assert format_order_number(7, OrderChannel.LAB) == format_order_number(7, OrderChannel.LAB)


def test_sequence_wider_than_padding_is_not_truncated():
    assert format_order_number(123456, OrderChannel.AS) == "№123456/AS"


@pytest.mark.parametrize("sequence", [0, -1, True, 1.5, "42"])
def test_format_rejects_invalid_sequence(sequence):
    with pytest.raises(ValueError):
        format_order_number(sequence, OrderChannel.AS)


@pytest.mark.parametrize("channel", ["", "A/S"])
def test_format_rejects_invalid_channel(channel):
    with pytest.raises(ValueError):
        format_order_number(1, channel)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("№00042/AS", (42, OrderChannel.AS)),
        ("00042/AS", (42, OrderChannel.AS)),
        ("42/lab", (42, OrderChannel.LAB)),
        ("  #7 / LAB ", (7, OrderChannel.LAB)),
        ("№123456/AS", (123456, OrderChannel.AS)),
    ],
)
def test_parse_order_number(text, expected):
    assert parse_order_number(text) == expected


@pytest.mark.parametrize("text", ["", "AS", "42", "42/", "/AS", "№00000/AS", "42/XYZ", "-5/AS", "4 2/AS"])
def test_parse_rejects_malformed_numbers(text):
    with pytest.raises(InvalidOrderNumber):
        parse_order_number(text)


def test_normalize_order_number():
    assert normalize_order_number("42/lab") == "№00042/LAB"
    assert normalize_order_number("№00042/LAB") == "№00042/LAB"
