"""
Balance lookups and top-up planning.

The planner brings a set of addresses up to a target token balance: it
reads every balance concurrently and emits one receiver per address that is
strictly below the target. An empty plan means there is nothing to do.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

from loguru import logger

from xudt_transfer.address import script_from_address
from xudt_transfer.amount import format_token_amount, sum_cell_amounts, to_minimal_units
from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.models import Script, TransferReceiver
from xudt_transfer.tx_builder import AddressDecoder


async def fetch_xudt_balance(backend: CellIndexBackend, lock: Script, xudt_type: Script) -> int:
    """Total token amount (minimal units) held by a lock."""
    cells = await backend.get_cells(lock, xudt_type)
    return sum_cell_amounts(cells)


async def fetch_balances(
    backend: CellIndexBackend, locks: Sequence[Script], xudt_type: Script
) -> list[int]:
    """
    Fetch balances for many locks concurrently.

    Waits for every lookup to finish, then raises the first failure (in
    input order) if any lookup failed. No partial results are returned.
    """
    results = await asyncio.gather(
        *(fetch_xudt_balance(backend, lock, xudt_type) for lock in locks),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


def plan_top_up(
    addresses: Sequence[str], balances: Sequence[int], target_units: int
) -> list[TransferReceiver]:
    """Receivers bringing every address strictly below target up to it."""
    if len(addresses) != len(balances):
        raise ValueError(f"Got {len(addresses)} addresses but {len(balances)} balances")
    return [
        TransferReceiver(to_address=address, transfer_amount=target_units - balance)
        for address, balance in zip(addresses, balances)
        if balance < target_units
    ]


def read_address_file(path: Path) -> list[str]:
    """Read a newline-delimited address list, skipping blank lines."""
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


class TopUpPlanner:
    """Plans the transfers needed to bring addresses up to a target balance."""

    def __init__(
        self,
        backend: CellIndexBackend,
        xudt_type: Script,
        decimals: int,
        address_decoder: AddressDecoder = script_from_address,
    ):
        self.backend = backend
        self.xudt_type = xudt_type
        self.decimals = decimals
        self.address_decoder = address_decoder

    async def get_balances(self, addresses: Sequence[str]) -> list[int]:
        locks = [self.address_decoder(address) for address in addresses]
        return await fetch_balances(self.backend, locks, self.xudt_type)

    async def plan(
        self, addresses: Sequence[str], target_amount: Decimal | int | str
    ) -> list[TransferReceiver]:
        """
        Plan top-ups toward target_amount (in token units, e.g. 100 for 100 XTT).

        Returns:
            Receivers with amounts in minimal units; empty if nothing to do
        """
        target_units = to_minimal_units(target_amount, self.decimals)
        balances = await self.get_balances(addresses)

        for index, (address, balance) in enumerate(zip(addresses, balances), 1):
            shown = format_token_amount(balance, self.decimals)
            if balance < target_units:
                top_up = format_token_amount(target_units - balance, self.decimals)
                logger.info(f"Address {index} {address} balance: {shown}. Will top up: {top_up}")
            else:
                logger.info(f"Address {index} {address} balance: {shown}. No top-up needed.")

        receivers = plan_top_up(addresses, balances, target_units)
        if not receivers:
            logger.info(f"No transfer needed. All addresses hold at least {target_amount}.")
        return receivers
