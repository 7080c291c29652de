"""
Transaction fee estimation.

The fee is estimated once, on the unsigned transaction with placeholder
witnesses, plus a fixed allowance for the signature that will replace the
placeholder. It is deducted from the trailing capacity change output only.
Changing that output's capacity does not change the transaction size (u64
field), so no second pass is needed.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from xudt_transfer.constants import DEFAULT_FEE_RATE, SECP256K1_WITNESS_LOCK_SIZE
from xudt_transfer.errors import ChangeBelowMinimumError
from xudt_transfer.models import UnsignedTransaction
from xudt_transfer.molecule import transaction_size

FEE_RATE_RATIO = 1000


def calculate_transaction_fee(tx_size: int, fee_rate: int = DEFAULT_FEE_RATE) -> int:
    """Fee in shannons for tx_size bytes at fee_rate shannons/KB, rounded up."""
    base = tx_size * fee_rate
    fee, remainder = divmod(base, FEE_RATE_RATIO)
    return fee + 1 if remainder else fee


class FeeEstimator:
    """
    Computes the fee of an assembled transaction.

    size_fn and fee_fn default to the molecule size rule and the per-KB rate;
    both can be swapped for chain-specific rules.
    """

    def __init__(
        self,
        fee_rate: int = DEFAULT_FEE_RATE,
        witness_lock_size: int = SECP256K1_WITNESS_LOCK_SIZE,
        size_fn: Callable[[UnsignedTransaction], int] = transaction_size,
        fee_fn: Callable[[int], int] | None = None,
    ):
        self.fee_rate = fee_rate
        self.witness_lock_size = witness_lock_size
        self.size_fn = size_fn
        self.fee_fn = fee_fn or (lambda size: calculate_transaction_fee(size, self.fee_rate))

    def estimate(self, tx: UnsignedTransaction) -> int:
        tx_size = self.size_fn(tx) + self.witness_lock_size
        fee = self.fee_fn(tx_size)
        logger.debug(f"Estimated tx size {tx_size} bytes, fee {fee} shannons")
        return fee


def apply_fee(
    tx: UnsignedTransaction,
    fee: int,
    min_change_capacity: int,
    max_fee: int | None = None,
) -> UnsignedTransaction:
    """
    Deduct the fee from the last output (the capacity change cell).

    Raises:
        ChangeBelowMinimumError: If the change would drop below min_change_capacity
    """
    if max_fee is not None and fee > max_fee:
        logger.warning(f"Fee {fee} exceeds the reserved maximum {max_fee}")

    change_index = len(tx.outputs) - 1
    change_capacity = tx.outputs[change_index].capacity - fee
    if change_capacity < min_change_capacity:
        raise ChangeBelowMinimumError(
            f"Change capacity {change_capacity} after fee {fee} is below "
            f"minimum {min_change_capacity}",
            needed=min_change_capacity + fee,
            available=tx.outputs[change_index].capacity,
        )

    return tx.with_output_capacity(change_index, change_capacity)
