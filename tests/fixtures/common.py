"""
Base factories shared by all test modules.
"""

import random

# BIP-39 reference vectors, both pass checksum validation
VALID_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
OTHER_MNEMONIC = (
    "legal winner thank year wave sausage "
    "worth useful legal winner thank yellow"
)


def make_leaves(count: int, offset: int = 1) -> list[int]:
    """Distinct small field elements."""
    return [offset + i * 7 for i in range(count)]


def make_bits(count: int, seed: int = 0) -> list[int]:
    """Deterministic pseudo-random bit list."""
    rng = random.Random(seed)
    return [rng.randint(0, 1) for _ in range(count)]
