"""Order numbering: channel counters, allocation, formatting and backfill."""

from ordernum.services.sequence.allocator import AllocatedNumber, SequenceAllocator
from ordernum.services.sequence.backfill import BackfillReconciler, BackfillReport, ChannelBackfillResult
from ordernum.services.sequence.counter_store import ChannelCounterStore
from ordernum.services.sequence.exceptions import (
    AllocationError,
    CounterRegressionError,
    InvalidOrderNumber,
    ReconciliationAbort,
    SequenceError,
    UnknownChannelError,
)
from ordernum.services.sequence.formatting import format_order_number, normalize_order_number, parse_order_number

__all__ = [
    "AllocatedNumber",
    "AllocationError",
    "BackfillReconciler",
    "BackfillReport",
    "ChannelBackfillResult",
    "ChannelCounterStore",
    "CounterRegressionError",
    "InvalidOrderNumber",
    "ReconciliationAbort",
    "SequenceAllocator",
    "SequenceError",
    "UnknownChannelError",
    "format_order_number",
    "normalize_order_number",
    "parse_order_number",
]
