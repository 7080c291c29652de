"""
Ledger data models.

Cells, scripts and transactions as immutable dataclasses, with conversion to
and from the CKB node JSON-RPC representation (0x-prefixed hex strings).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any

from xudt_transfer.errors import InvalidReceiverError


def to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def from_hex(value: str) -> bytes:
    """Parse a hex string with or without the 0x prefix."""
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)


class HashType(IntEnum):
    DATA = 0
    TYPE = 1
    DATA1 = 2
    DATA2 = 4

    @property
    def rpc_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_rpc(cls, name: str) -> HashType:
        return cls[name.upper()]


class DepType(IntEnum):
    CODE = 0
    DEP_GROUP = 1

    @property
    def rpc_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_rpc(cls, name: str) -> DepType:
        return cls[name.upper()]


@dataclass(frozen=True)
class Script:
    """Lock or type script. Two scripts are equal iff all three fields match."""

    code_hash: bytes
    hash_type: HashType
    args: bytes = b""

    def __post_init__(self) -> None:
        if len(self.code_hash) != 32:
            raise ValueError(f"code_hash must be 32 bytes, got {len(self.code_hash)}")

    @property
    def occupied_size(self) -> int:
        """Bytes this script occupies in a cell: code_hash + hash_type + args."""
        return 32 + 1 + len(self.args)

    def to_rpc(self) -> dict[str, str]:
        return {
            "code_hash": to_hex(self.code_hash),
            "hash_type": self.hash_type.rpc_name,
            "args": to_hex(self.args),
        }

    @classmethod
    def from_rpc(cls, data: dict[str, str]) -> Script:
        return cls(
            code_hash=from_hex(data["code_hash"]),
            hash_type=HashType.from_rpc(data["hash_type"]),
            args=from_hex(data["args"]),
        )


@dataclass(frozen=True)
class OutPoint:
    tx_hash: bytes
    index: int

    def to_rpc(self) -> dict[str, str]:
        return {"tx_hash": to_hex(self.tx_hash), "index": hex(self.index)}

    @classmethod
    def from_rpc(cls, data: dict[str, str]) -> OutPoint:
        return cls(tx_hash=from_hex(data["tx_hash"]), index=int(data["index"], 16))


@dataclass(frozen=True)
class Cell:
    """A live cell as reported by the cell index."""

    out_point: OutPoint
    capacity: int
    lock: Script
    type: Script | None = None
    data: bytes = b""

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> Cell:
        output = data["output"]
        return cls(
            out_point=OutPoint.from_rpc(data["out_point"]),
            capacity=int(output["capacity"], 16),
            lock=Script.from_rpc(output["lock"]),
            type=Script.from_rpc(output["type"]) if output.get("type") else None,
            data=from_hex(data.get("output_data") or "0x"),
        )


@dataclass(frozen=True)
class CellOutput:
    capacity: int
    lock: Script
    type: Script | None = None

    def to_rpc(self) -> dict[str, Any]:
        return {
            "capacity": hex(self.capacity),
            "lock": self.lock.to_rpc(),
            "type": self.type.to_rpc() if self.type else None,
        }


@dataclass(frozen=True)
class CellInput:
    previous_output: OutPoint
    since: int = 0

    def to_rpc(self) -> dict[str, Any]:
        return {"previous_output": self.previous_output.to_rpc(), "since": hex(self.since)}


@dataclass(frozen=True)
class CellDep:
    out_point: OutPoint
    dep_type: DepType = DepType.CODE

    def to_rpc(self) -> dict[str, Any]:
        return {"out_point": self.out_point.to_rpc(), "dep_type": self.dep_type.rpc_name}


@dataclass(frozen=True)
class WitnessArgs:
    """Structured witness. WitnessArgs() is the placeholder the signer fills in."""

    lock: bytes | None = None
    input_type: bytes | None = None
    output_type: bytes | None = None


Witness = WitnessArgs | bytes


@dataclass(frozen=True)
class TransferReceiver:
    """A receiver address and the amount (in minimal units) it should get."""

    to_address: str
    transfer_amount: int

    def __post_init__(self) -> None:
        if self.transfer_amount <= 0:
            raise InvalidReceiverError(
                f"Transfer amount for {self.to_address} must be positive, "
                f"got {self.transfer_amount}"
            )


@dataclass(frozen=True)
class SelectionResult:
    """Cells picked by one selection pass, in pool order."""

    selected: tuple[Cell, ...]
    sum_capacity: int
    sum_amount: int = 0


@dataclass(frozen=True)
class UnsignedTransaction:
    version: int
    cell_deps: tuple[CellDep, ...]
    header_deps: tuple[bytes, ...]
    inputs: tuple[CellInput, ...]
    outputs: tuple[CellOutput, ...]
    outputs_data: tuple[bytes, ...]
    witnesses: tuple[Witness, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.outputs) != len(self.outputs_data):
            raise ValueError(
                f"outputs ({len(self.outputs)}) and outputs_data "
                f"({len(self.outputs_data)}) must have the same length"
            )
        if len(self.witnesses) != len(self.inputs):
            raise ValueError(
                f"witnesses ({len(self.witnesses)}) must align with inputs ({len(self.inputs)})"
            )

    def with_output_capacity(self, index: int, capacity: int) -> UnsignedTransaction:
        """Return a copy with one output's capacity replaced."""
        outputs = list(self.outputs)
        outputs[index] = replace(outputs[index], capacity=capacity)
        return replace(self, outputs=tuple(outputs))

    def to_rpc(self) -> dict[str, Any]:
        from xudt_transfer.molecule import serialize_witness

        return {
            "version": hex(self.version),
            "cell_deps": [dep.to_rpc() for dep in self.cell_deps],
            "header_deps": [to_hex(h) for h in self.header_deps],
            "inputs": [inp.to_rpc() for inp in self.inputs],
            "outputs": [out.to_rpc() for out in self.outputs],
            "outputs_data": [to_hex(d) for d in self.outputs_data],
            "witnesses": [to_hex(serialize_witness(w)) for w in self.witnesses],
        }


@dataclass(frozen=True)
class TransferResult:
    """Assembled transfer handed to the external signer."""

    transaction: UnsignedTransaction
    fee: int
    sum_amount: int
    token_change: int = 0
