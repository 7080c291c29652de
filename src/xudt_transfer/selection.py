"""
Input selection for xUDT transfers.

Both passes are greedy and order-preserving: cells are taken in the order
the cell index returned them until the requirement is met. No sorting is
done, so the selection is always a prefix of the (filtered) pool.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from xudt_transfer.amount import decode_amount
from xudt_transfer.errors import (
    InsufficientCapacityError,
    InsufficientTokenBalanceError,
    NoLiveCellError,
    NoXudtLiveCellError,
)
from xudt_transfer.models import Cell, SelectionResult


def collect_token_inputs(cells: Sequence[Cell], need_amount: int) -> SelectionResult:
    """
    Select token cells until their amounts cover need_amount.

    Args:
        cells: Live token cells of the sender, in index order
        need_amount: Total amount (minimal units) to transfer

    Returns:
        SelectionResult; sum_amount may exceed need_amount (the excess is change)

    Raises:
        NoXudtLiveCellError: If the pool is empty
        InsufficientTokenBalanceError: If the pool runs out first
    """
    if not cells:
        raise NoXudtLiveCellError("The address has no xudt cells")

    selected: list[Cell] = []
    sum_capacity = 0
    sum_amount = 0

    for cell in cells:
        selected.append(cell)
        sum_capacity += cell.capacity
        sum_amount += decode_amount(cell.data).amount
        if sum_amount >= need_amount:
            break

    if sum_amount < need_amount:
        raise InsufficientTokenBalanceError(
            f"Insufficient xudt balance: need {need_amount}, have {sum_amount}",
            needed=need_amount,
            available=sum_amount,
        )

    logger.debug(
        f"Selected {len(selected)}/{len(cells)} xudt cells: "
        f"amount={sum_amount}, capacity={sum_capacity}"
    )
    return SelectionResult(
        selected=tuple(selected), sum_capacity=sum_capacity, sum_amount=sum_amount
    )


def collect_capacity_inputs(
    cells: Sequence[Cell],
    need_capacity: int,
    fee_reserve: int,
    min_change_capacity: int,
) -> SelectionResult:
    """
    Select plain capacity cells to cover a shortfall.

    Enough is gathered to pay need_capacity, leave a change cell of at least
    min_change_capacity and still have fee_reserve left for the fee.

    Raises:
        NoLiveCellError: If the pool is empty
        InsufficientCapacityError: If the pool runs out first
    """
    if not cells:
        raise NoLiveCellError("The address has no empty cells")

    target = need_capacity + min_change_capacity + fee_reserve
    selected: list[Cell] = []
    sum_capacity = 0

    for cell in cells:
        # Only typeless, empty-data cells are spendable as plain capacity
        if cell.type is not None or cell.data:
            continue
        selected.append(cell)
        sum_capacity += cell.capacity
        if sum_capacity >= target:
            break

    if sum_capacity < target:
        raise InsufficientCapacityError(
            f"Insufficient free CKB balance: need {target} shannons, have {sum_capacity}",
            needed=target,
            available=sum_capacity,
        )

    logger.debug(f"Selected {len(selected)} capacity cells: capacity={sum_capacity}")
    return SelectionResult(selected=tuple(selected), sum_capacity=sum_capacity)
