"""
Transaction builder for xUDT transfers.

Builds the unsigned transfer transaction from:
- The sender's xUDT cells (token inputs) and, if short, plain capacity cells
- One output per receiver
- A token change output when more tokens were selected than transferred
- A trailing capacity change output that pays the fee

Output layout: [receivers..., token change?, capacity change]
Witness layout: [WitnessArgs placeholder, b"", b"", ...], one per input.
The signer expects the placeholder at index 0 only.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from loguru import logger

from xudt_transfer.address import script_from_address
from xudt_transfer.amount import encode_amount
from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.capacity import xudt_cell_capacity
from xudt_transfer.config import AssemblerConfig
from xudt_transfer.errors import InvalidReceiverError, NegativeChangeError
from xudt_transfer.fees import FeeEstimator, apply_fee
from xudt_transfer.models import (
    Cell,
    CellDep,
    CellInput,
    CellOutput,
    Script,
    TransferReceiver,
    TransferResult,
    UnsignedTransaction,
    Witness,
    WitnessArgs,
)
from xudt_transfer.selection import collect_capacity_inputs, collect_token_inputs

TX_VERSION = 0

AddressDecoder = Callable[[str], Script]


def build_witnesses(input_count: int) -> tuple[Witness, ...]:
    """Placeholder witnesses: structured at index 0, empty bytes elsewhere."""
    return tuple(WitnessArgs() if i == 0 else b"" for i in range(input_count))


def build_receiver_outputs(
    receivers: Sequence[TransferReceiver],
    xudt_type: Script,
    address_decoder: AddressDecoder,
    extra_bytes: int,
) -> tuple[list[CellOutput], list[bytes]]:
    """One xUDT output per receiver, with the matching amount payloads."""
    outputs: list[CellOutput] = []
    outputs_data: list[bytes] = []
    for receiver in receivers:
        lock = address_decoder(receiver.to_address)
        outputs.append(
            CellOutput(
                capacity=xudt_cell_capacity(lock, xudt_type, extra_bytes),
                lock=lock,
                type=xudt_type,
            )
        )
        outputs_data.append(encode_amount(receiver.transfer_amount))
    return outputs, outputs_data


class XudtTransferBuilder:
    """
    Assembles xUDT transfers for one sender and one token type.

    Holds no state between build() calls; every call re-reads the sender's
    live cells and returns a fresh transaction.
    """

    def __init__(
        self,
        backend: CellIndexBackend,
        xudt_type: Script,
        sender_lock: Script,
        config: AssemblerConfig | None = None,
        cell_deps: Sequence[CellDep] = (),
        address_decoder: AddressDecoder = script_from_address,
        fee_estimator: FeeEstimator | None = None,
    ):
        self.backend = backend
        self.xudt_type = xudt_type
        self.sender_lock = sender_lock
        self.config = config or AssemblerConfig()
        self.cell_deps = tuple(cell_deps)
        self.address_decoder = address_decoder
        self.fee_estimator = fee_estimator or FeeEstimator(
            fee_rate=self.config.fee_rate,
            witness_lock_size=self.config.witness_lock_size,
        )

    async def build(self, receivers: Sequence[TransferReceiver]) -> TransferResult:
        """
        Build an unsigned transfer to the given receivers.

        Raises:
            InvalidReceiverError: If receivers is empty
            NoXudtLiveCellError / InsufficientTokenBalanceError: Token shortfall
            NoLiveCellError / InsufficientCapacityError: Capacity shortfall
            ChangeBelowMinimumError: If the fee eats into the change floor
        """
        if not receivers:
            raise InvalidReceiverError("At least one receiver is required")

        config = self.config
        sum_transfer_amount = sum(r.transfer_amount for r in receivers)

        token_cells = await self.backend.get_cells(self.sender_lock, self.xudt_type)
        token_selection = collect_token_inputs(token_cells, sum_transfer_amount)

        outputs, outputs_data = build_receiver_outputs(
            receivers, self.xudt_type, self.address_decoder, config.xudt_cell_extra_bytes
        )

        # Token change capacity counts as a requirement before the capacity pass
        token_change = token_selection.sum_amount - sum_transfer_amount
        if token_change > 0:
            outputs.append(
                CellOutput(
                    capacity=xudt_cell_capacity(
                        self.sender_lock, self.xudt_type, config.xudt_cell_extra_bytes
                    ),
                    lock=self.sender_lock,
                    type=self.xudt_type,
                )
            )
            outputs_data.append(encode_amount(token_change))

        sum_output_capacity = sum(out.capacity for out in outputs)
        inputs: list[Cell] = list(token_selection.selected)
        input_capacity = token_selection.sum_capacity

        required = sum_output_capacity + config.min_change_capacity + config.max_fee
        if input_capacity < required:
            logger.debug(
                f"xudt inputs carry {input_capacity} shannons, need {required}; "
                "collecting capacity cells"
            )
            capacity_cells = await self.backend.get_cells(self.sender_lock)
            capacity_selection = collect_capacity_inputs(
                capacity_cells,
                need_capacity=max(sum_output_capacity - input_capacity, 0),
                fee_reserve=config.max_fee,
                min_change_capacity=config.min_change_capacity,
            )
            inputs.extend(capacity_selection.selected)
            input_capacity += capacity_selection.sum_capacity

        change_capacity = input_capacity - sum_output_capacity
        if change_capacity < 0:
            raise NegativeChangeError(
                f"Inputs carry {input_capacity} shannons, outputs need {sum_output_capacity}",
                needed=sum_output_capacity,
                available=input_capacity,
            )
        outputs.append(CellOutput(capacity=change_capacity, lock=self.sender_lock))
        outputs_data.append(b"")

        unsigned_tx = UnsignedTransaction(
            version=TX_VERSION,
            cell_deps=self.cell_deps,
            header_deps=(),
            inputs=tuple(CellInput(previous_output=cell.out_point) for cell in inputs),
            outputs=tuple(outputs),
            outputs_data=tuple(outputs_data),
            witnesses=build_witnesses(len(inputs)),
        )

        fee = self.fee_estimator.estimate(unsigned_tx)
        unsigned_tx = apply_fee(unsigned_tx, fee, config.min_change_capacity, config.max_fee)

        logger.info(
            f"Built xudt transfer: {len(receivers)} receiver(s), {len(inputs)} input(s), "
            f"{len(outputs)} output(s), fee {fee} shannons"
        )
        return TransferResult(
            transaction=unsigned_tx,
            fee=fee,
            sum_amount=token_selection.sum_amount,
            token_change=token_change,
        )
