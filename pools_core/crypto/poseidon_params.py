"""
Crypto - Poseidon parameters
Round constants and MDS matrices matching circomlib's Poseidon over BN254.

circomlib uses 8 full rounds for every width and a per-width partial round
count. Both the round constants and the Cauchy MDS matrix are drawn from the
Grain LFSR of the Poseidon paper, seeded with

    field = 1 (prime field), S-box = 0 (x^alpha), n = 254, t, R_F, R_P

Round constants are 254-bit draws rejected while >= P. The matrix is built
from the next 2t draws reduced mod P: M[i][j] = 1 / (x_i + y_j).
"""
from __future__ import annotations

import logging
from collections import deque
from functools import lru_cache
from typing import NamedTuple

from pools_core.crypto.field import P

logger = logging.getLogger(__name__)

FIELD_BITS = 254
FULL_ROUNDS = 8
# Indexed by width - 2, for widths 2..17
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)
MIN_WIDTH = 2
MAX_WIDTH = MIN_WIDTH + len(PARTIAL_ROUNDS) - 1

_GRAIN_DISCARD = 160


class PoseidonParams(NamedTuple):
    """One Poseidon instance: round counts, constants and MDS matrix."""
    width: int
    full_rounds: int
    partial_rounds: int
    round_constants: tuple[int, ...]
    mds_matrix: tuple[tuple[int, ...], ...]

    def rc_hex(self) -> list[str]:
        return [hex(c) for c in self.round_constants]

    def mds_hex(self) -> list[list[str]]:
        return [[hex(c) for c in row] for row in self.mds_matrix]


class _Grain:
    """Grain LFSR in self-shrinking mode."""

    def __init__(self, width: int, full_rounds: int, partial_rounds: int):
        seed: list[int] = []
        for value, size in (
            (1, 2),
            (0, 4),
            (FIELD_BITS, 12),
            (width, 12),
            (full_rounds, 10),
            (partial_rounds, 10),
        ):
            seed.extend(int(b) for b in format(value, f"0{size}b"))
        seed.extend([1] * 30)
        self._state = deque(seed, maxlen=80)

        for _ in range(_GRAIN_DISCARD):
            self._clock()

    def _clock(self) -> int:
        s = self._state
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.append(bit)
        return bit

    def random_bits(self, count: int) -> int:
        """Next `count` shrunk bits as a big-endian integer."""
        value = 0
        produced = 0
        while produced < count:
            first = self._clock()
            second = self._clock()
            if first:
                value = (value << 1) | second
                produced += 1
        return value


def _cauchy_matrix(grain: _Grain, width: int) -> tuple[tuple[int, ...], ...]:
    while True:
        draws = [grain.random_bits(FIELD_BITS) % P for _ in range(2 * width)]
        if len(set(draws)) != len(draws):
            continue
        xs, ys = draws[:width], draws[width:]
        if any((x + y) % P == 0 for x in xs for y in ys):
            continue
        return tuple(
            tuple(pow(x + y, -1, P) for y in ys)
            for x in xs
        )


@lru_cache(maxsize=None)
def poseidon_params(width: int) -> PoseidonParams:
    """
    Generate circomlib's Poseidon parameters for a state width.

    Args:
        width: State width t (number of inputs + 1), 2 to 17

    Returns:
        PoseidonParams for that width

    Raises:
        ValueError: If the width has no circomlib instance
    """
    if not MIN_WIDTH <= width <= MAX_WIDTH:
        raise ValueError(f"No Poseidon instance for width {width}")

    partial_rounds = PARTIAL_ROUNDS[width - MIN_WIDTH]
    logger.debug(
        f"Generating Poseidon parameters: t={width}, "
        f"R_F={FULL_ROUNDS}, R_P={partial_rounds}"
    )
    grain = _Grain(width, FULL_ROUNDS, partial_rounds)

    count = width * (FULL_ROUNDS + partial_rounds)
    constants: list[int] = []
    while len(constants) < count:
        candidate = grain.random_bits(FIELD_BITS)
        if candidate < P:
            constants.append(candidate)

    return PoseidonParams(
        width=width,
        full_rounds=FULL_ROUNDS,
        partial_rounds=partial_rounds,
        round_constants=tuple(constants),
        mds_matrix=_cauchy_matrix(grain, width),
    )


__all__ = [
    "PoseidonParams",
    "poseidon_params",
    "FULL_ROUNDS",
    "PARTIAL_ROUNDS",
]
