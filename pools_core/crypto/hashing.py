"""
Crypto - Hashing Utilities
Keccak-256 domain hashing and fixed-width hex encoding for field elements.

This module provides:
- Keccak-256 over raw bytes (pycryptodome)
- Solidity-style tightly packed encoding (abi.encodePacked)
- hash_mod: packed Keccak-256 reduced into the scalar field
- 32-byte hex encoding/decoding with 0x prefix

Determinism Notes:
- Always hash raw bytes exactly as encoded
- Packed encoding follows the Solidity rules for the supported types
"""
from __future__ import annotations

from typing import Any, Sequence

from Crypto.Hash import keccak as _keccak_mod

from pools_core.schemas.errors import InvalidInputException


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 digest of raw bytes.

    This is the original Keccak padding used by Ethereum, not NIST SHA3-256.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte digest

    Example:
        >>> keccak256(b"").hex()[:16]
        'c5d2460186f7233c'
    """
    h = _keccak_mod.new(digest_bits=256)
    h.update(data)
    return h.digest()


def _encode_packed_value(solidity_type: str, value: Any) -> bytes:
    """Encode a single value the way abi.encodePacked does."""
    if solidity_type == "string":
        return str(value).encode("utf-8")

    if solidity_type == "bytes":
        return bytes(value)

    if solidity_type == "bool":
        return b"\x01" if value else b"\x00"

    if solidity_type == "address":
        raw = from_hex(value) if isinstance(value, str) else bytes(value)
        if len(raw) != 20:
            raise InvalidInputException(
                f"Address must be 20 bytes, got {len(raw)}",
                details={"type": solidity_type},
            )
        return raw

    if solidity_type.startswith("uint"):
        bits = int(solidity_type[4:] or 256)
        number = int(value)
        if number < 0 or number >= 1 << bits:
            raise InvalidInputException(
                f"Value {number} does not fit in {solidity_type}",
                details={"type": solidity_type},
            )
        return number.to_bytes(bits // 8, "big")

    if solidity_type.startswith("bytes"):
        size = int(solidity_type[5:])
        raw = from_hex(value) if isinstance(value, str) else bytes(value)
        if len(raw) != size:
            raise InvalidInputException(
                f"{solidity_type} value must be {size} bytes, got {len(raw)}",
                details={"type": solidity_type},
            )
        return raw

    raise InvalidInputException(
        f"Unsupported packed type: {solidity_type}",
        details={"type": solidity_type},
    )


def encode_packed(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    Tightly pack values following Solidity's abi.encodePacked rules.

    Supported types: string, bytes, bool, address, uintN, bytesN.

    Args:
        types: Solidity type names, one per value
        values: Values to encode

    Returns:
        Concatenated packed encoding

    Raises:
        InvalidInputException: If lengths differ or a type is unsupported
    """
    if len(types) != len(values):
        raise InvalidInputException(
            f"Got {len(types)} types for {len(values)} values",
            details={"types": list(types)},
        )
    return b"".join(_encode_packed_value(t, v) for t, v in zip(types, values))


def solidity_keccak(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """Keccak-256 of the packed encoding, as Solidity's keccak256(abi.encodePacked(...))."""
    return keccak256(encode_packed(types, values))


def to_hex32(value: int) -> str:
    """
    Render a non-negative integer as a 0x-prefixed, 32-byte hex string.

    Example:
        >>> to_hex32(255)
        '0x00000000000000000000000000000000000000000000000000000000000000ff'
    """
    return "0x" + int(value).to_bytes(32, "big").hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        InvalidInputException: If string doesn't start with 0x, has odd length,
                               or contains invalid hex characters
    """
    if not isinstance(hex_string, str) or not hex_string.startswith("0x"):
        raise InvalidInputException(
            f"Hex string must start with '0x' prefix, got: {str(hex_string)[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise InvalidInputException(
            f"Hex string must have even length after 0x prefix, got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise InvalidInputException(f"Invalid hex characters in string: {e}") from e


def hex_to_int(value: str | int) -> int:
    """Parse a 0x-prefixed hex string (or pass an int through)."""
    if isinstance(value, bool):
        raise InvalidInputException(f"Expected hex string or int, got {value!r}")
    if isinstance(value, int):
        return value
    return int.from_bytes(from_hex(value), "big")


__all__ = [
    "keccak256",
    "encode_packed",
    "solidity_keccak",
    "to_hex32",
    "from_hex",
    "hex_to_int",
]
