"""Utility functions and helpers."""

from ordernum.utils.datetime_utils import ensure_utc, to_api_timezone

__all__ = [
    "ensure_utc",
    "to_api_timezone",
]
