"""
Crypto - Poseidon
Poseidon hashing over the BN254 scalar field, compatible with circomlib.

The permutation itself comes from the `poseidon-hash` package, fed with
circomlib's round counts, round constants and MDS matrices (see
`poseidon_params`). This module fixes the sponge convention used
throughout the package:

    state = [0, *inputs]  ->  permute  ->  outputs = state[:num_outputs]

Arity 2 is the Merkle pair hash, arity 2 with three outputs derives key
chain nodes, and arity 4 derives nullifiers.

A `poseidon_lib.Poseidon` keeps the permuted state on the instance, so each
cached permutation is paired with a lock held across run and read.
"""
from __future__ import annotations

import logging
import threading
from typing import Sequence

import poseidon as poseidon_lib

from pools_core.crypto.field import P, FieldElement, to_fe
from pools_core.crypto.poseidon_params import poseidon_params
from pools_core.schemas.errors import InvalidInputException

logger = logging.getLogger(__name__)

SECURITY_LEVEL = 128
SBOX_ALPHA = 5
MAX_ARITY = 16

_permutations: dict[int, tuple["poseidon_lib.Poseidon", threading.Lock]] = {}
_permutations_lock = threading.Lock()


def _permutation(width: int) -> tuple["poseidon_lib.Poseidon", threading.Lock]:
    entry = _permutations.get(width)
    if entry is not None:
        return entry

    with _permutations_lock:
        entry = _permutations.get(width)
        if entry is None:
            logger.debug(f"Initializing Poseidon permutation of width {width}")
            params = poseidon_params(width)
            hasher = poseidon_lib.Poseidon(
                P,
                SECURITY_LEVEL,
                SBOX_ALPHA,
                width - 1,
                width,
                full_round=params.full_rounds,
                partial_round=params.partial_rounds,
                mds_matrix=params.mds_hex(),
                rc_list=params.rc_hex(),
            )
            entry = (hasher, threading.Lock())
            _permutations[width] = entry
    return entry


def poseidon(
    inputs: Sequence[int],
    num_outputs: int | None = None,
) -> FieldElement | list[FieldElement]:
    """
    Hash field elements with Poseidon.

    Args:
        inputs: 1 to 16 field elements (reduced mod P on ingestion)
        num_outputs: Number of state words to return. None or 1 returns a
            single field element, larger values return a list.

    Returns:
        One field element, or a list of `num_outputs` field elements

    Raises:
        InvalidInputException: If the arity or output count is unsupported

    Example:
        >>> poseidon([1, 2]) == poseidon([1, 2])
        True
    """
    arity = len(inputs)
    if arity < 1 or arity > MAX_ARITY:
        raise InvalidInputException(
            f"Poseidon supports 1 to {MAX_ARITY} inputs, got {arity}",
            details={"arity": arity},
        )
    width = arity + 1
    if num_outputs is not None and not 1 <= num_outputs <= width:
        raise InvalidInputException(
            f"Cannot squeeze {num_outputs} outputs from a state of width {width}",
            details={"num_outputs": num_outputs, "width": width},
        )

    hasher, lock = _permutation(width)
    words = [0] + [to_fe(x) for x in inputs]
    with lock:
        hasher.run_hash(words)
        state = [int(word) for word in hasher.state]

    if num_outputs is None or num_outputs == 1:
        return state[0]
    return state[:num_outputs]


def hash_pair(left: int, right: int) -> FieldElement:
    """
    Compute the parent of two Merkle nodes.

    Args:
        left: Left child
        right: Right child

    Returns:
        poseidon([left, right])
    """
    return poseidon([left, right])


__all__ = [
    "poseidon",
    "hash_pair",
]
