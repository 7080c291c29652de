"""
Tests for balance lookups and top-up planning.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import pytest

from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.models import Cell, Script, TransferReceiver
from xudt_transfer.planner import (
    TopUpPlanner,
    fetch_balances,
    fetch_xudt_balance,
    plan_top_up,
    read_address_file,
)


class FlakyCellIndex(CellIndexBackend):
    """Fails lookups for selected locks after the others have completed."""

    def __init__(self, balances: dict[Script, list[Cell]], failing: set[Script]):
        self.balances = balances
        self.failing = failing
        self.completed: list[Script] = []

    async def get_cells(self, lock: Script, type_script: Script | None = None) -> list[Cell]:
        if lock in self.failing:
            await asyncio.sleep(0)
            raise ConnectionError(f"lookup failed for {lock.args.hex()}")
        await asyncio.sleep(0.01)
        self.completed.append(lock)
        return self.balances.get(lock, [])

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        raise NotImplementedError

    async def get_tip_block_number(self) -> int:
        return 0


@pytest.fixture
def three_locks(script_factory) -> dict[str, Script]:
    return {"a1": script_factory(0xC1), "a2": script_factory(0xC2), "a3": script_factory(0xC3)}


class TestPlanTopUp:
    def test_only_addresses_below_target(self) -> None:
        receivers = plan_top_up(
            ["addr1", "addr2", "addr3"],
            [4_000_000_000, 15_000_000_000, 9_999_999_900],
            10_000_000_000,
        )
        assert receivers == [
            TransferReceiver("addr1", 6_000_000_000),
            TransferReceiver("addr3", 100),
        ]

    def test_balance_at_target_is_skipped(self) -> None:
        assert plan_top_up(["addr1"], [100], 100) == []

    def test_preserves_input_order(self) -> None:
        receivers = plan_top_up(["z", "a", "m"], [0, 0, 0], 5)
        assert [r.to_address for r in receivers] == ["z", "a", "m"]

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            plan_top_up(["addr1", "addr2"], [1], 10)


class TestFetchBalances:
    @pytest.mark.asyncio
    async def test_sums_cell_amounts(
        self, fake_backend, make_cell, xudt_type, receiver_locks
    ) -> None:
        alice = receiver_locks["alice"]
        fake_backend.cells = [
            make_cell(alice, 143, xudt_type, amount=300),
            make_cell(alice, 143, xudt_type, amount=200),
            make_cell(alice, 500),
        ]
        assert await fetch_xudt_balance(fake_backend, alice, xudt_type) == 500

    @pytest.mark.asyncio
    async def test_results_in_input_order(
        self, fake_backend, make_cell, xudt_type, receiver_locks
    ) -> None:
        alice, bob = receiver_locks["alice"], receiver_locks["bob"]
        fake_backend.cells = [
            make_cell(bob, 143, xudt_type, amount=7),
            make_cell(alice, 143, xudt_type, amount=3),
        ]
        balances = await fetch_balances(fake_backend, [alice, bob], xudt_type)
        assert balances == [3, 7]

    @pytest.mark.asyncio
    async def test_no_cells_is_zero(self, fake_backend, xudt_type, receiver_locks) -> None:
        balances = await fetch_balances(fake_backend, [receiver_locks["alice"]], xudt_type)
        assert balances == [0]

    @pytest.mark.asyncio
    async def test_failure_raised_after_all_lookups_finish(
        self, three_locks, xudt_type
    ) -> None:
        backend = FlakyCellIndex(balances={}, failing={three_locks["a2"]})
        locks = list(three_locks.values())

        with pytest.raises(ConnectionError, match=three_locks["a2"].args.hex()):
            await fetch_balances(backend, locks, xudt_type)

        assert set(backend.completed) == {three_locks["a1"], three_locks["a3"]}

    @pytest.mark.asyncio
    async def test_first_failure_in_input_order(self, three_locks, xudt_type) -> None:
        backend = FlakyCellIndex(
            balances={}, failing={three_locks["a2"], three_locks["a3"]}
        )
        with pytest.raises(ConnectionError, match=three_locks["a2"].args.hex()):
            await fetch_balances(backend, list(three_locks.values()), xudt_type)


class TestTopUpPlanner:
    @pytest.mark.asyncio
    async def test_plan(self, fake_backend, make_cell, xudt_type, three_locks) -> None:
        fake_backend.cells = [
            make_cell(three_locks["a1"], 143, xudt_type, amount=4_000_000_000),
            make_cell(three_locks["a2"], 143, xudt_type, amount=15_000_000_000),
            make_cell(three_locks["a3"], 143, xudt_type, amount=9_999_999_900),
        ]
        planner = TopUpPlanner(
            backend=fake_backend,
            xudt_type=xudt_type,
            decimals=8,
            address_decoder=three_locks.__getitem__,
        )

        receivers = await planner.plan(["a1", "a2", "a3"], Decimal("100"))

        assert receivers == [
            TransferReceiver("a1", 6_000_000_000),
            TransferReceiver("a3", 100),
        ]

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, fake_backend, make_cell, xudt_type, three_locks) -> None:
        fake_backend.cells = [make_cell(three_locks["a1"], 143, xudt_type, amount=10**10)]
        planner = TopUpPlanner(
            backend=fake_backend,
            xudt_type=xudt_type,
            decimals=8,
            address_decoder=three_locks.__getitem__,
        )
        assert await planner.plan(["a1"], 100) == []


class TestReadAddressFile:
    def test_skips_blank_lines(self, tmp_path) -> None:
        path = tmp_path / "addresses.txt"
        path.write_text("ckt1first\n\n  ckt1second  \n\n")
        assert read_address_file(path) == ["ckt1first", "ckt1second"]

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "addresses.txt"
        path.write_text("")
        assert read_address_file(path) == []
