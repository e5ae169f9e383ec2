"""
Access Lists

Allow/block sets over a Poseidon Merkle tree with windowed read/modify.

Usage:
    from pools_core.access import AccessList

    allowlist = AccessList("allowlist", subset_data=[1, 0, 1])
    allowlist.set_window(0, 2, [0, 1])
    proof = allowlist.generate_proof(1)
    assert allowlist.verify_proof(proof)
"""
from .access_list import AccessList, AccessType, resolve_sentinels

__all__ = [
    "AccessList",
    "AccessType",
    "resolve_sentinels",
]
