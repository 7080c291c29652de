"""
Configuration for xUDT transfers.

AssemblerConfig carries the values threaded into the capacity model, the
input selector and the fee estimator. Settings reads the same values (and
the connection details) from the environment or a .env file.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from xudt_transfer.constants import (
    DEFAULT_FEE_RATE,
    DEFAULT_TOKEN_DECIMALS,
    MAX_FEE,
    MIN_CAPACITY,
    SECP256K1_DEP_GROUP_TX_HASH,
    SECP256K1_WITNESS_LOCK_SIZE,
    XUDT_CELL_EXTRA_BYTES,
    XUDT_CODE_HASH,
    XUDT_CODE_TX_HASH,
    NetworkType,
)
from xudt_transfer.models import CellDep, DepType, HashType, OutPoint, Script, from_hex

DEFAULT_RPC_URLS: dict[NetworkType, str] = {
    NetworkType.MAINNET: "https://mainnet.ckb.dev/rpc",
    NetworkType.TESTNET: "https://testnet.ckb.dev/rpc",
}


class AssemblerConfig(BaseModel):
    """Fee and capacity policy for the transfer assembler."""

    fee_rate: int = Field(
        default=DEFAULT_FEE_RATE, ge=1000, description="Fee rate in shannons per 1000 bytes"
    )
    max_fee: int = Field(
        default=MAX_FEE, ge=0, description="Fee reserved while selecting capacity inputs"
    )
    min_change_capacity: int = Field(
        default=MIN_CAPACITY, ge=0, description="Minimum capacity of the change cell"
    )
    witness_lock_size: int = Field(
        default=SECP256K1_WITNESS_LOCK_SIZE, ge=0, description="Signature size in bytes"
    )
    xudt_cell_extra_bytes: int = Field(
        default=XUDT_CELL_EXTRA_BYTES, ge=0, description="Extra bytes reserved per xUDT cell"
    )


def get_xudt_type_script(network: NetworkType, args: str | bytes) -> Script:
    """Build the xUDT type script for a token on the given network."""
    if isinstance(args, str):
        args = from_hex(args)
    return Script(
        code_hash=from_hex(XUDT_CODE_HASH[network]),
        hash_type=HashType.TYPE,
        args=args,
    )


def get_default_cell_deps(network: NetworkType) -> tuple[CellDep, ...]:
    """secp256k1 dep group first, then the xUDT code cell."""
    return (
        CellDep(
            out_point=OutPoint(from_hex(SECP256K1_DEP_GROUP_TX_HASH[network]), 0),
            dep_type=DepType.DEP_GROUP,
        ),
        CellDep(
            out_point=OutPoint(from_hex(XUDT_CODE_TX_HASH[network]), 0),
            dep_type=DepType.CODE,
        ),
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    network: NetworkType = NetworkType.TESTNET
    ckb_rpc_url: str = ""
    rpc_timeout: float = Field(default=30.0, gt=0)

    sender_address: str = ""
    xudt_type_args: str = ""
    token_decimals: int = Field(default=DEFAULT_TOKEN_DECIMALS, ge=0, le=38)

    fee_rate: int = Field(default=DEFAULT_FEE_RATE, ge=1000)
    max_fee: int = Field(default=MAX_FEE, ge=0)
    min_change_capacity: int = Field(default=MIN_CAPACITY, ge=0)
    witness_lock_size: int = Field(default=SECP256K1_WITNESS_LOCK_SIZE, ge=0)
    xudt_cell_extra_bytes: int = Field(default=XUDT_CELL_EXTRA_BYTES, ge=0)

    log_level: str = "INFO"

    def get_rpc_url(self) -> str:
        return self.ckb_rpc_url or DEFAULT_RPC_URLS[self.network]

    def assembler_config(self) -> AssemblerConfig:
        return AssemblerConfig(
            fee_rate=self.fee_rate,
            max_fee=self.max_fee,
            min_change_capacity=self.min_change_capacity,
            witness_lock_size=self.witness_lock_size,
            xudt_cell_extra_bytes=self.xudt_cell_extra_bytes,
        )


def get_settings() -> Settings:
    return Settings()
