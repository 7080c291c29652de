"""
Molecule serialization for CKB transactions.

Only the encoding side is needed: the serialized size drives the fee, and
the placeholder witness must be rendered as bytes for the signer.

Molecule layouts used here:
- fixvec: item count (u32 LE) + items
- dynvec: total size (u32 LE) + one offset per item (u32 LE) + items
- table: same header as dynvec, one offset per field
- option: empty when absent, the inner value otherwise
"""

from __future__ import annotations

import struct
from collections.abc import Sequence

from xudt_transfer.constants import TRANSACTION_SIZE_OFFSET
from xudt_transfer.models import (
    CellDep,
    CellInput,
    CellOutput,
    OutPoint,
    Script,
    UnsignedTransaction,
    Witness,
    WitnessArgs,
)

HEADER_ITEM_SIZE = 4


def pack_u32(n: int) -> bytes:
    return struct.pack("<I", n)


def pack_u64(n: int) -> bytes:
    return struct.pack("<Q", n)


def pack_fixvec(items: Sequence[bytes]) -> bytes:
    """Serialize a vector of fixed-size items."""
    return pack_u32(len(items)) + b"".join(items)


def pack_bytes(data: bytes) -> bytes:
    """Serialize molecule Bytes (a fixvec of byte)."""
    return pack_u32(len(data)) + data


def pack_dynvec(items: Sequence[bytes]) -> bytes:
    """Serialize a vector of variable-size items (also the table layout)."""
    header_size = HEADER_ITEM_SIZE * (len(items) + 1)
    offsets = []
    offset = header_size
    for item in items:
        offsets.append(offset)
        offset += len(item)

    result = pack_u32(offset)
    for item_offset in offsets:
        result += pack_u32(item_offset)
    return result + b"".join(items)


def pack_table(fields: Sequence[bytes]) -> bytes:
    return pack_dynvec(fields)


def pack_option(value: bytes | None) -> bytes:
    return b"" if value is None else value


def serialize_script(script: Script) -> bytes:
    return pack_table(
        [
            script.code_hash,
            bytes([script.hash_type]),
            pack_bytes(script.args),
        ]
    )


def serialize_outpoint(out_point: OutPoint) -> bytes:
    """Serialize outpoint struct (tx_hash + u32 index), 36 bytes."""
    return out_point.tx_hash + pack_u32(out_point.index)


def serialize_cell_input(cell_input: CellInput) -> bytes:
    """Serialize cell input struct (since + outpoint), 44 bytes."""
    return pack_u64(cell_input.since) + serialize_outpoint(cell_input.previous_output)


def serialize_cell_dep(cell_dep: CellDep) -> bytes:
    """Serialize cell dep struct (outpoint + dep_type), 37 bytes."""
    return serialize_outpoint(cell_dep.out_point) + bytes([cell_dep.dep_type])


def serialize_cell_output(output: CellOutput) -> bytes:
    return pack_table(
        [
            pack_u64(output.capacity),
            serialize_script(output.lock),
            pack_option(serialize_script(output.type) if output.type else None),
        ]
    )


def serialize_witness_args(witness: WitnessArgs) -> bytes:
    return pack_table(
        [
            pack_option(pack_bytes(witness.lock) if witness.lock is not None else None),
            pack_option(
                pack_bytes(witness.input_type) if witness.input_type is not None else None
            ),
            pack_option(
                pack_bytes(witness.output_type) if witness.output_type is not None else None
            ),
        ]
    )


def serialize_witness(witness: Witness) -> bytes:
    """Render a witness slot as raw bytes (WitnessArgs are molecule-encoded)."""
    if isinstance(witness, WitnessArgs):
        return serialize_witness_args(witness)
    return witness


def serialize_raw_transaction(tx: UnsignedTransaction) -> bytes:
    return pack_table(
        [
            pack_u32(tx.version),
            pack_fixvec([serialize_cell_dep(dep) for dep in tx.cell_deps]),
            pack_fixvec(list(tx.header_deps)),
            pack_fixvec([serialize_cell_input(inp) for inp in tx.inputs]),
            pack_dynvec([serialize_cell_output(out) for out in tx.outputs]),
            pack_dynvec([pack_bytes(data) for data in tx.outputs_data]),
        ]
    )


def serialize_transaction(tx: UnsignedTransaction) -> bytes:
    witnesses = [pack_bytes(serialize_witness(w)) for w in tx.witnesses]
    return pack_table([serialize_raw_transaction(tx), pack_dynvec(witnesses)])


def transaction_size(tx: UnsignedTransaction) -> int:
    """Size a transaction occupies in a block, used for fee calculation."""
    return len(serialize_transaction(tx)) + TRANSACTION_SIZE_OFFSET
