"""Order numbering exceptions."""

from ordernum.services.exceptions import ServiceError, ValidationError


class SequenceError(ServiceError):
    """Base exception for order numbering."""

    pass


class UnknownChannelError(SequenceError):
    """Channel is not recognized or has no counter that can be used."""

    def __init__(self, channel: object):
        self.channel = channel
        super().__init__(f"Unknown order channel: {str(channel)!r}")


class AllocationError(SequenceError):
    """The atomic counter increment could not be performed.

    No number was minted. The caller must not persist the order; it may retry
    the whole allocate-and-persist unit or give up.
    """

    pass


class CounterRegressionError(SequenceError):
    """Counter override would move below a sequence that is already assigned."""

    def __init__(self, channel: str, value: int, floor: int):
        self.channel = channel
        self.value = value
        self.floor = floor
        super().__init__(f"Refusing to set counter {channel} to {value}: lowest allowed value is {floor}")


class ReconciliationAbort(SequenceError):
    """A backfill write failed; the channel batch was stopped.

    Records numbered before the failure stay numbered. Re-run the backfill
    before resuming live traffic on the channel.
    """

    def __init__(
        self,
        channel: str,
        *,
        last_order_id: str | None,
        last_sequence: int | None,
        assigned: int,
        reason: str,
    ):
        self.channel = channel
        self.last_order_id = last_order_id
        self.last_sequence = last_sequence
        self.assigned = assigned
        self.reason = reason
        super().__init__(
            f"Backfill of channel {channel} aborted after {assigned} records "
            f"(last sequence {last_sequence}): {reason}"
        )


class InvalidOrderNumber(SequenceError, ValidationError):
    """Text is not a well-formed order number."""

    pass
