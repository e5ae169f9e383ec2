"""
Test fixtures package for the pool primitive tests.

This package provides factory functions for creating test data.

Usage:
    from fixtures import make_bits, make_leaves

    def test_something():
        bits = make_bits(33, seed=1)
"""

from .common import (
    OTHER_MNEMONIC,
    VALID_MNEMONIC,
    make_bits,
    make_leaves,
)

__all__ = [
    "OTHER_MNEMONIC",
    "VALID_MNEMONIC",
    "make_bits",
    "make_leaves",
]
