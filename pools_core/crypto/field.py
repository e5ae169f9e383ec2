"""
Crypto - Field Arithmetic
Scalar field helpers and domain-separated constants.

All values handled by the tree, the access list and the key chain are
elements of the BN254 scalar field. Anything outside [0, P) is reduced on
ingestion.

The sentinel constants ALLOWED, BLOCKED and EMPTY are the Keccak-256 hash
of a fixed literal reduced mod P. They are computed on first access and
shared for the lifetime of the process.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Sequence

from pools_core.crypto.hashing import solidity_keccak
from pools_core.schemas.errors import InvalidInputException


P: int = 21888242871839275222246405745257275088548364400416034343698204186575808495617

ZERO: int = 0

FieldElement = int


def to_fe(value: Any) -> FieldElement:
    """
    Reduce a value into the scalar field.

    Accepts ints and 0x-prefixed hex strings.

    Raises:
        InvalidInputException: If the value is not an integer-like input
    """
    if isinstance(value, bool):
        raise InvalidInputException(f"Expected a field element, got {value!r}")
    if isinstance(value, int):
        return value % P
    if isinstance(value, str):
        try:
            return int(value, 16 if value.startswith("0x") else 10) % P
        except ValueError as e:
            raise InvalidInputException(f"Invalid field element string: {value!r}") from e
    raise InvalidInputException(
        f"Expected a field element, got {type(value).__name__}",
        details={"type": type(value).__name__},
    )


def hash_mod(types: Sequence[str], values: Sequence[Any]) -> FieldElement:
    """Packed Keccak-256 of (types, values) reduced mod P."""
    return int.from_bytes(solidity_keccak(types, values), "big") % P


@lru_cache(maxsize=256)
def string_hash(value: str) -> FieldElement:
    """Keccak-256 of a UTF-8 string reduced mod P."""
    return hash_mod(["string"], [value])


_DOMAIN_LABELS = {
    "ALLOWED": "allowed",
    "BLOCKED": "blocked",
    "EMPTY": "empty",
}


def __getattr__(name: str) -> FieldElement:
    # Sentinels are hashed on first access
    if name in _DOMAIN_LABELS:
        return string_hash(_DOMAIN_LABELS[name])
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
]
