"""
xudt_transfer - xUDT balance decoding and transfer assembly for CKB

Provides the amount codec, capacity rules, input selection, transaction
assembly with fee deduction, and top-up planning.
"""

__version__ = "0.1.0"

from xudt_transfer.amount import DecodedAmount, decode_amount, encode_amount
from xudt_transfer.capacity import occupied_capacity, xudt_cell_capacity
from xudt_transfer.config import AssemblerConfig, Settings
from xudt_transfer.errors import (
    AmountOverflowError,
    ChangeBelowMinimumError,
    InsufficientCapacityError,
    InsufficientTokenBalanceError,
    InvalidAddressError,
    InvalidReceiverError,
    MalformedAmountError,
    NegativeChangeError,
    NoLiveCellError,
    NoXudtLiveCellError,
    XudtTransferError,
)
from xudt_transfer.fees import FeeEstimator, apply_fee, calculate_transaction_fee
from xudt_transfer.models import (
    Cell,
    Script,
    SelectionResult,
    TransferReceiver,
    TransferResult,
    UnsignedTransaction,
)
from xudt_transfer.planner import TopUpPlanner, fetch_balances, plan_top_up
from xudt_transfer.selection import collect_capacity_inputs, collect_token_inputs
from xudt_transfer.tx_builder import XudtTransferBuilder

__all__ = [
    "AmountOverflowError",
    "AssemblerConfig",
    "Cell",
    "ChangeBelowMinimumError",
    "DecodedAmount",
    "FeeEstimator",
    "InsufficientCapacityError",
    "InsufficientTokenBalanceError",
    "InvalidAddressError",
    "InvalidReceiverError",
    "MalformedAmountError",
    "NegativeChangeError",
    "NoLiveCellError",
    "NoXudtLiveCellError",
    "Script",
    "SelectionResult",
    "Settings",
    "TopUpPlanner",
    "TransferReceiver",
    "TransferResult",
    "UnsignedTransaction",
    "XudtTransferBuilder",
    "XudtTransferError",
    "apply_fee",
    "calculate_transaction_fee",
    "collect_capacity_inputs",
    "collect_token_inputs",
    "decode_amount",
    "encode_amount",
    "fetch_balances",
    "occupied_capacity",
    "plan_top_up",
    "xudt_cell_capacity",
]
