"""
Core cryptographic utilities.

Field arithmetic, Keccak-256 domain hashing and Poseidon.
"""
from .field import (
    P,
    ZERO,
    FieldElement,
    to_fe,
    hash_mod,
    string_hash,
)
from .hashing import (
    keccak256,
    encode_packed,
    solidity_keccak,
    to_hex32,
    from_hex,
    hex_to_int,
)
from .poseidon_hash import poseidon, hash_pair


def __getattr__(name: str) -> int:
    if name in ("ALLOWED", "BLOCKED", "EMPTY"):
        from . import field
        return getattr(field, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "P",
    "ZERO",
    "ALLOWED",
    "BLOCKED",
    "EMPTY",
    "FieldElement",
    "to_fe",
    "hash_mod",
    "string_hash",
    "keccak256",
    "encode_packed",
    "solidity_keccak",
    "to_hex32",
    "from_hex",
    "hex_to_int",
    "poseidon",
    "hash_pair",
]
