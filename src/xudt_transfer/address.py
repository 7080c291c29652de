"""
CKB address decoding.

Turns a CKB address into its lock script. Address formats (RFC 0021):
- 0x00 full: bech32m, code_hash + hash_type + args
- 0x01 short: bech32, code hash index + args
- 0x02/0x04 deprecated full: bech32, code_hash + args (data/type hash type)

Only decoding is supported; the bech32 checksum and bit conversion come from
the bech32 library. Its own bech32_decode caps addresses at 90 characters,
which full CKB addresses exceed, so the checksum helpers are used directly.
"""

from __future__ import annotations

import bech32

from xudt_transfer.constants import (
    ADDRESS_PREFIXES,
    SECP256K1_BLAKE160_CODE_HASH,
    SECP256K1_MULTISIG_CODE_HASH,
    NetworkType,
)
from xudt_transfer.errors import InvalidAddressError
from xudt_transfer.models import HashType, Script, from_hex

FORMAT_FULL = 0x00
FORMAT_SHORT = 0x01
FORMAT_FULL_DATA = 0x02
FORMAT_FULL_TYPE = 0x04

SHORT_CODE_HASHES: dict[int, str] = {
    0x00: SECP256K1_BLAKE160_CODE_HASH,
    0x01: SECP256K1_MULTISIG_CODE_HASH,
}

CHECKSUM_LENGTH = 6


def _decode_payload(address: str, network: NetworkType) -> tuple[bytes, bech32.Encoding]:
    if address.lower() != address and address.upper() != address:
        raise InvalidAddressError(f"Mixed-case address: {address}")
    address = address.lower()

    separator = address.rfind("1")
    if separator < 1 or separator + CHECKSUM_LENGTH + 1 > len(address):
        raise InvalidAddressError(f"Malformed address: {address}")

    hrp = address[:separator]
    expected_hrp = ADDRESS_PREFIXES[network]
    if hrp != expected_hrp:
        raise InvalidAddressError(
            f"Address prefix {hrp!r} does not match {network.value} ({expected_hrp!r})"
        )

    data = [bech32.CHARSET.find(char) for char in address[separator + 1 :]]
    if -1 in data:
        raise InvalidAddressError(f"Invalid character in address: {address}")

    encoding = bech32.bech32_verify_checksum(hrp, data)
    if encoding is None:
        raise InvalidAddressError(f"Invalid address checksum: {address}")

    payload = bech32.convertbits(data[:-CHECKSUM_LENGTH], 5, 8, False)
    if not payload:
        raise InvalidAddressError(f"Invalid address payload: {address}")

    return bytes(payload), encoding


def script_from_address(address: str, network: NetworkType = NetworkType.TESTNET) -> Script:
    """
    Decode a CKB address into its lock script.

    Raises:
        InvalidAddressError: On a wrong network prefix, bad checksum or unknown format
    """
    payload, encoding = _decode_payload(address, network)
    address_format = payload[0]

    try:
        if address_format == FORMAT_FULL:
            if encoding != bech32.Encoding.BECH32M:
                raise InvalidAddressError("Full format address must use bech32m")
            return Script(
                code_hash=payload[1:33],
                hash_type=HashType(payload[33]),
                args=payload[34:],
            )

        if encoding != bech32.Encoding.BECH32:
            raise InvalidAddressError("Short and deprecated addresses must use bech32")

        if address_format == FORMAT_SHORT:
            code_hash = SHORT_CODE_HASHES.get(payload[1])
            if code_hash is None:
                raise InvalidAddressError(f"Unsupported short address code hash index {payload[1]}")
            return Script(code_hash=from_hex(code_hash), hash_type=HashType.TYPE, args=payload[2:])

        if address_format in (FORMAT_FULL_DATA, FORMAT_FULL_TYPE):
            hash_type = HashType.DATA if address_format == FORMAT_FULL_DATA else HashType.TYPE
            return Script(code_hash=payload[1:33], hash_type=hash_type, args=payload[33:])
    except (IndexError, ValueError) as e:
        raise InvalidAddressError(f"Invalid address payload: {address}") from e

    raise InvalidAddressError(f"Unknown address format 0x{address_format:02x}")
