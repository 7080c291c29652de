"""
Cell capacity rules.

A cell must hold at least as many CKB as it occupies bytes on chain:
capacity field (8) + lock script + optional type script + data.
"""

from __future__ import annotations

from xudt_transfer.constants import CKB_UNIT, XUDT_AMOUNT_SIZE, XUDT_CELL_EXTRA_BYTES
from xudt_transfer.models import Script

CAPACITY_FIELD_SIZE = 8


def occupied_size(lock: Script, type_script: Script | None = None, data_size: int = 0) -> int:
    """Bytes occupied by a cell with the given scripts and data length."""
    if data_size < 0:
        raise ValueError(f"data_size must be non-negative, got {data_size}")
    size = CAPACITY_FIELD_SIZE + lock.occupied_size + data_size
    if type_script is not None:
        size += type_script.occupied_size
    return size


def occupied_capacity(
    lock: Script, type_script: Script | None = None, data_size: int = 0
) -> int:
    """Minimum capacity in shannons for a cell of this shape."""
    return occupied_size(lock, type_script, data_size) * CKB_UNIT


def xudt_cell_capacity(
    lock: Script, xudt_type: Script, extra_bytes: int = XUDT_CELL_EXTRA_BYTES
) -> int:
    """
    Capacity for an xUDT cell carrying a 16-byte amount.

    The amount payload is fixed-width, so the result depends only on the
    lock (for a given token type), never on the amount transferred.
    """
    if extra_bytes < 0:
        raise ValueError(f"extra_bytes must be non-negative, got {extra_bytes}")
    size = occupied_size(lock, xudt_type, XUDT_AMOUNT_SIZE) + extra_bytes
    return size * CKB_UNIT
