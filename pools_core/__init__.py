"""
Client-side bookkeeping primitives for a shielded-pool style protocol.

- pools_core.merkle:  incremental Poseidon Merkle tree with proofs
- pools_core.access:  allow/block lists committed to the tree
- pools_core.subsets: bit list <-> byte-packed <-> word-packed codec
- pools_core.hd:      deterministic secrets, commitments and nullifiers
"""
from .access import AccessList, AccessType
from .crypto import P, ZERO, hash_mod, poseidon, string_hash, to_fe
from .hd import HDSecretGenerator
from .merkle import MerkleProof, MerkleTree, verify_merkle_proof
from .schemas import BytesData, PackedData, PoolsException
from .subsets import (
    bytes_to_subset_data,
    pack_subset_data,
    subset_data_to_bytes,
    unpack_subset_data,
)

__version__ = "0.1.0"

__all__ = [
    "AccessList",
    "AccessType",
    "BytesData",
    "HDSecretGenerator",
    "MerkleProof",
    "MerkleTree",
    "P",
    "PackedData",
    "PoolsException",
    "ZERO",
    "bytes_to_subset_data",
    "hash_mod",
    "pack_subset_data",
    "poseidon",
    "string_hash",
    "subset_data_to_bytes",
    "to_fe",
    "unpack_subset_data",
    "verify_merkle_proof",
]
