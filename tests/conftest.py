"""
Pytest configuration and fixtures for xudt_transfer tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from xudt_transfer.amount import encode_amount
from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.constants import CKB_UNIT
from xudt_transfer.models import Cell, HashType, OutPoint, Script


class FakeCellIndex(CellIndexBackend):
    """In-memory cell index returning cells in insertion order."""

    def __init__(self, cells: list[Cell] | None = None):
        self.cells = list(cells or [])
        self.queries: list[tuple[Script, Script | None]] = []
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def get_cells(self, lock: Script, type_script: Script | None = None) -> list[Cell]:
        self.queries.append((lock, type_script))
        return [
            cell
            for cell in self.cells
            if cell.lock == lock and (type_script is None or cell.type == type_script)
        ]

    async def send_transaction(self, tx: dict[str, Any]) -> str:
        self.sent.append(tx)
        return "0x" + "ab" * 32

    async def get_tip_block_number(self) -> int:
        return 1

    async def close(self) -> None:
        self.closed = True


def make_script(tag: int, args_len: int = 20, code_tag: int = 0x9B) -> Script:
    return Script(
        code_hash=bytes([code_tag]) * 32, hash_type=HashType.TYPE, args=bytes([tag]) * args_len
    )


@pytest.fixture
def sender_lock() -> Script:
    return make_script(0x01)


@pytest.fixture
def xudt_type() -> Script:
    return make_script(0x7A, args_len=32, code_tag=0x25)


@pytest.fixture
def receiver_locks() -> dict[str, Script]:
    return {"alice": make_script(0xA1), "bob": make_script(0xB0)}


@pytest.fixture
def make_cell() -> Callable[..., Cell]:
    """Factory for live cells with unique outpoints."""
    counter = iter(range(1, 10_000))

    def _make(
        lock: Script,
        capacity_ckb: int,
        type_script: Script | None = None,
        amount: int | None = None,
        data: bytes = b"",
    ) -> Cell:
        if amount is not None:
            data = encode_amount(amount) + data
        index = next(counter)
        return Cell(
            out_point=OutPoint(tx_hash=index.to_bytes(32, "big"), index=0),
            capacity=capacity_ckb * CKB_UNIT,
            lock=lock,
            type=type_script,
            data=data,
        )

    return _make


@pytest.fixture
def fake_backend() -> FakeCellIndex:
    return FakeCellIndex()


@pytest.fixture
def script_factory() -> Callable[..., Script]:
    return make_script
