"""
xUDT amount codec.

A token cell stores its amount as an unsigned 128-bit little-endian integer
in the first 16 bytes of its data. Anything after byte 16 is opaque extra
data owned by the token's extension scripts.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext

from xudt_transfer.constants import MAX_XUDT_AMOUNT, XUDT_AMOUNT_SIZE
from xudt_transfer.errors import AmountOverflowError, MalformedAmountError
from xudt_transfer.models import Cell, from_hex

# 2**128 - 1 has 39 digits; the default decimal context only keeps 28
U128_DIGITS = 39


@dataclass(frozen=True)
class DecodedAmount:
    amount: int
    extra: bytes | None = None


def decode_amount(data: bytes | str) -> DecodedAmount:
    """
    Decode the token amount held in a cell's data.

    Args:
        data: Raw cell data, or the 0x-prefixed hex string returned by RPC

    Returns:
        DecodedAmount with the amount and any trailing extra data

    Raises:
        MalformedAmountError: If data is empty or not valid hex
    """
    if isinstance(data, str):
        try:
            data = from_hex(data)
        except ValueError as e:
            raise MalformedAmountError(f"Invalid hex cell data: {data!r}") from e

    amount_bytes = data[:XUDT_AMOUNT_SIZE]
    if not amount_bytes:
        raise MalformedAmountError("Cell data is empty, no amount to decode")

    extra = bytes(data[XUDT_AMOUNT_SIZE:]) or None
    return DecodedAmount(amount=int.from_bytes(amount_bytes, "little"), extra=extra)


def encode_amount(amount: int) -> bytes:
    """Encode an amount as exactly 16 little-endian bytes."""
    if amount < 0 or amount > MAX_XUDT_AMOUNT:
        raise AmountOverflowError(f"Amount {amount} does not fit in u128")
    return amount.to_bytes(XUDT_AMOUNT_SIZE, "little")


def sum_cell_amounts(cells: Iterable[Cell]) -> int:
    return sum(decode_amount(cell.data).amount for cell in cells)


def to_minimal_units(value: Decimal | int | str, decimals: int) -> int:
    """
    Scale a token amount to minimal units, rounding half up.

    Raises:
        AmountOverflowError: If the result is not a finite u128
    """
    amount = Decimal(value)
    if not amount.is_finite():
        raise AmountOverflowError(f"Amount {value} is not finite")
    if amount.adjusted() + decimals >= U128_DIGITS:
        raise AmountOverflowError(f"Amount {value} does not fit in u128 at {decimals} decimals")
    with localcontext() as ctx:
        ctx.prec = U128_DIGITS + 1
        units = int(amount.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if units > MAX_XUDT_AMOUNT:
        raise AmountOverflowError(f"Amount {value} does not fit in u128 at {decimals} decimals")
    return units


def format_token_amount(units: int, decimals: int) -> str:
    """Format minimal units as a fixed-point token amount string."""
    whole, fraction = divmod(units, 10**decimals)
    if decimals == 0:
        return str(whole)
    return f"{whole}.{fraction:0{decimals}d}"
