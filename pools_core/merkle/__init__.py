"""
Merkle Tree and Commitments
Incremental Poseidon Merkle tree + proof generation/verification.

This module provides:
- MerkleTree: Layered tree with insert/update, proofs and snapshots
- MerkleProof: Dataclass representing an inclusion proof
- verify_merkle_proof: Verify a proof against its claimed root
- compute_zero_values: Empty-subtree values per level

Usage:
    from pools_core.merkle import MerkleTree, verify_merkle_proof

    tree = MerkleTree([42, 69, 420], levels=20)
    proof = tree.generate_proof(1)
    assert verify_merkle_proof(proof)
"""
from .merkle_tree import (
    MerkleProof,
    MerkleTree,
    compute_zero_values,
    verify_merkle_proof,
)


__all__ = [
    "MerkleProof",
    "MerkleTree",
    "compute_zero_values",
    "verify_merkle_proof",
]
