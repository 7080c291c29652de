"""
Exceptions raised while decoding balances and assembling transfers.

Every error aborts the whole assembly attempt. Shortfall errors carry the
needed and available quantities so callers can tell the user how much to
top up before retrying.
"""

from __future__ import annotations


class XudtTransferError(Exception):
    """Base class for all xudt_transfer errors."""


class MalformedAmountError(XudtTransferError):
    """Cell data does not hold a decodable little-endian amount."""


class AmountOverflowError(XudtTransferError):
    """Amount does not fit in an unsigned 128-bit integer."""


class InvalidReceiverError(XudtTransferError):
    """Receiver requested a zero or negative transfer amount."""


class InvalidAddressError(XudtTransferError):
    """Address cannot be decoded into a lock script."""


class NoLiveCellError(XudtTransferError):
    """The sender has no live cells at all."""


class NoXudtLiveCellError(XudtTransferError):
    """The sender has no live cells of the requested token."""


class ShortfallError(XudtTransferError):
    """A resource requirement could not be met."""

    def __init__(self, message: str, needed: int = 0, available: int = 0):
        super().__init__(message)
        self.needed = needed
        self.available = available


class InsufficientTokenBalanceError(ShortfallError):
    pass


class InsufficientCapacityError(ShortfallError):
    pass


class NegativeChangeError(InsufficientCapacityError):
    """Selected inputs carry less capacity than the planned outputs."""


class ChangeBelowMinimumError(ShortfallError):
    """Paying the fee would leave the change cell below its minimum capacity."""
