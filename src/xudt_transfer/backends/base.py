"""
Base cell index backend interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from xudt_transfer.models import Cell, Script


class CellIndexBackend(ABC):
    """
    Abstract cell index interface.

    The transfer assembler only reads live cells through get_cells; each call
    must return a consistent snapshot, in the index's own order.
    """

    @abstractmethod
    async def get_cells(self, lock: Script, type_script: Script | None = None) -> list[Cell]:
        """Get live cells for a lock, optionally restricted to a type script.

        With type_script=None, plain capacity cells are wanted. A backend may
        still return typed or data-bearing cells; the selector skips them."""

    @abstractmethod
    async def send_transaction(self, tx: dict[str, Any]) -> str:
        """Submit a signed transaction (node JSON shape), returns tx hash"""

    @abstractmethod
    async def get_tip_block_number(self) -> int:
        """Get current tip block number"""

    async def close(self) -> None:
        """Close backend connection"""
        pass
