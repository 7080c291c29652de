"""
CKB and xUDT constants.

Well-known script code hashes and cell deps for each network, plus the
defaults used by the transfer assembler. The assembler defaults are only
defaults: every one of them can be overridden through AssemblerConfig.
"""

from __future__ import annotations

from enum import Enum

# 1 CKB = 10^8 shannons
CKB_UNIT = 100_000_000

# xUDT amounts are u128 little-endian in the first 16 bytes of cell data
XUDT_AMOUNT_SIZE = 16
MAX_XUDT_AMOUNT = 2**128 - 1

# Pure-capacity secp256k1 cell: 8 (capacity) + 32 (code_hash) + 1 (hash_type) + 20 (args)
MIN_CAPACITY = 61 * CKB_UNIT

# Upper bound reserved for the fee while selecting capacity inputs (0.2 CKB)
MAX_FEE = 20_000_000

# Default fee rate in shannons per 1000 bytes (node min_fee_rate is 1000)
DEFAULT_FEE_RATE = 1100

# Signature bytes that replace the empty witness lock placeholder
SECP256K1_WITNESS_LOCK_SIZE = 65

# Extra byte the reference SDK adds on top of an xUDT cell's occupied size
XUDT_CELL_EXTRA_BYTES = 1

# Token decimals used by the RGB++ xUDT test tokens
DEFAULT_TOKEN_DECIMALS = 8

# Transactions are stored in a block's dynvec, costing one extra offset
TRANSACTION_SIZE_OFFSET = 4


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


ADDRESS_PREFIXES: dict[NetworkType, str] = {
    NetworkType.MAINNET: "ckb",
    NetworkType.TESTNET: "ckt",
}

# Same code hashes on both networks (genesis system scripts)
SECP256K1_BLAKE160_CODE_HASH = "0x9bd7e06f3ecf4be0f2fcd2188b23f1b9fcc88e5d4b65a8637b17723bbda3cce8"
SECP256K1_MULTISIG_CODE_HASH = "0x5c5069eb0857efc65e1bca0c07df34c31663b3622fd3876c876320fc9634e2a8"

SECP256K1_DEP_GROUP_TX_HASH: dict[NetworkType, str] = {
    NetworkType.MAINNET: "0x71a7ba8fc96349fea0ed3a5c47992e3b4084b031a42264a018e0072e8172e46c",
    NetworkType.TESTNET: "0xf8de3bb47d055cdf460d93a2a6e1b05f7432f9777c8c474abf4eec1d4aee5d37",
}

XUDT_CODE_HASH: dict[NetworkType, str] = {
    NetworkType.MAINNET: "0x50bd8d6680b8b9cf98b73f3c08faf8b2a21914311954118ad6609be6e78a1b95",
    NetworkType.TESTNET: "0x25c29dc317811a6f6f3985a7a9ebc4838bd388d19d0feeecf0bcd60f6c0975bb",
}

XUDT_CODE_TX_HASH: dict[NetworkType, str] = {
    NetworkType.MAINNET: "0xc07844ce21b38e4b071dd0e1ee3b0e27afd8d7532491327f39b786343f558ab7",
    NetworkType.TESTNET: "0xbf6fb538763efec2a70a6a3dcb7242787087e1030c4e7d86585bc63a9d337f5f",
}
