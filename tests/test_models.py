"""
Tests for ledger models and their RPC representation.
"""

from __future__ import annotations

import pytest

from xudt_transfer.errors import InvalidReceiverError
from xudt_transfer.models import (
    Cell,
    CellDep,
    CellInput,
    CellOutput,
    DepType,
    HashType,
    OutPoint,
    Script,
    TransferReceiver,
    UnsignedTransaction,
    WitnessArgs,
    from_hex,
    to_hex,
)

RPC_CELL = {
    "block_number": "0x1",
    "out_point": {"tx_hash": "0x" + "ab" * 32, "index": "0x2"},
    "output": {
        "capacity": "0x35458af00",
        "lock": {"code_hash": "0x" + "9b" * 32, "hash_type": "type", "args": "0x" + "01" * 20},
        "type": {"code_hash": "0x" + "25" * 32, "hash_type": "type", "args": "0x" + "7a" * 32},
    },
    "output_data": "0x00e87648170000000000000000000000",
    "tx_index": "0x0",
}


class TestHex:
    def test_round_trip_prefix(self) -> None:
        assert to_hex(b"\x01\xff") == "0x01ff"
        assert from_hex("0x01ff") == b"\x01\xff"
        assert from_hex("01ff") == b"\x01\xff"
        assert from_hex("0x") == b""


class TestScript:
    def test_equality_on_all_fields(self) -> None:
        base = Script(b"\x01" * 32, HashType.TYPE, b"\x02")
        assert base == Script(b"\x01" * 32, HashType.TYPE, b"\x02")
        assert base != Script(b"\x01" * 32, HashType.DATA, b"\x02")
        assert base != Script(b"\x01" * 32, HashType.TYPE, b"\x03")

    def test_code_hash_length(self) -> None:
        with pytest.raises(ValueError):
            Script(b"\x01" * 31, HashType.TYPE)

    @pytest.mark.parametrize(
        "name,hash_type",
        [
            ("data", HashType.DATA),
            ("type", HashType.TYPE),
            ("data1", HashType.DATA1),
            ("data2", HashType.DATA2),
        ],
    )
    def test_hash_type_names(self, name: str, hash_type: HashType) -> None:
        assert HashType.from_rpc(name) == hash_type
        assert hash_type.rpc_name == name

    def test_rpc_shape(self, sender_lock) -> None:
        rpc = sender_lock.to_rpc()
        assert rpc["hash_type"] == "type"
        assert rpc["args"] == "0x" + "01" * 20
        assert Script.from_rpc(rpc) == sender_lock


class TestCell:
    def test_from_rpc(self) -> None:
        cell = Cell.from_rpc(RPC_CELL)
        assert cell.out_point == OutPoint(b"\xab" * 32, 2)
        assert cell.capacity == 143 * 10**8
        assert cell.lock.args == b"\x01" * 20
        assert cell.type is not None
        assert cell.type.code_hash == b"\x25" * 32
        assert cell.data[:5] == bytes.fromhex("00e8764817")

    def test_from_rpc_plain_cell(self) -> None:
        rpc = {**RPC_CELL, "output": {**RPC_CELL["output"], "type": None}, "output_data": "0x"}
        cell = Cell.from_rpc(rpc)
        assert cell.type is None
        assert cell.data == b""


class TestTransferReceiver:
    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_rejected(self, amount: int) -> None:
        with pytest.raises(InvalidReceiverError):
            TransferReceiver("ckt1receiver", amount)


class TestUnsignedTransaction:
    def _tx(self, lock: Script, **overrides) -> UnsignedTransaction:
        out_point = OutPoint(b"\x01" * 32, 0)
        fields = dict(
            version=0,
            cell_deps=(CellDep(out_point, DepType.DEP_GROUP),),
            header_deps=(),
            inputs=(CellInput(out_point), CellInput(OutPoint(b"\x02" * 32, 1))),
            outputs=(CellOutput(capacity=61 * 10**8, lock=lock),),
            outputs_data=(b"",),
            witnesses=(WitnessArgs(), b""),
        )
        fields.update(overrides)
        return UnsignedTransaction(**fields)

    def test_outputs_data_must_align(self, sender_lock) -> None:
        with pytest.raises(ValueError, match="outputs_data"):
            self._tx(sender_lock, outputs_data=())

    def test_witnesses_must_align(self, sender_lock) -> None:
        with pytest.raises(ValueError, match="witnesses"):
            self._tx(sender_lock, witnesses=(WitnessArgs(),))

    def test_with_output_capacity(self, sender_lock) -> None:
        tx = self._tx(sender_lock)
        updated = tx.with_output_capacity(0, 100)
        assert updated.outputs[0].capacity == 100
        assert tx.outputs[0].capacity == 61 * 10**8

    def test_to_rpc(self, sender_lock) -> None:
        rpc = self._tx(sender_lock).to_rpc()

        assert rpc["version"] == "0x0"
        assert rpc["cell_deps"][0]["dep_type"] == "dep_group"
        assert rpc["inputs"][1] == {
            "previous_output": {"tx_hash": "0x" + "02" * 32, "index": "0x1"},
            "since": "0x0",
        }
        assert rpc["outputs"][0]["capacity"] == hex(61 * 10**8)
        assert rpc["outputs"][0]["type"] is None
        assert rpc["outputs_data"] == ["0x"]
        assert rpc["witnesses"] == ["0x10000000100000001000000010000000", "0x"]
