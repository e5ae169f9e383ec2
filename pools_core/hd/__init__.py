"""
Hierarchical deterministic secret generation.

Usage:
    from pools_core.hd import HDSecretGenerator

    generator = HDSecretGenerator(mnemonic, password="", num_keys=10)
    secret, commitment = generator.keys_at(3)
    code = HDSecretGenerator.get_contract_code("0x" + "11" * 20, 1)
    nullifier = generator.nullifier_at(3, code)
"""
from .secrets import (
    ExtendedSeed,
    HDNode,
    HDSecretGenerator,
    KeyPair,
    Seed,
    derive_node,
)

__all__ = [
    "ExtendedSeed",
    "HDNode",
    "HDSecretGenerator",
    "KeyPair",
    "Seed",
    "derive_node",
]
