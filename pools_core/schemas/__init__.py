"""
Schemas & Canonicalization

Error taxonomy, wire models for the packed encodings and snapshots, and
canonical JSON serialization.
"""

from .canonical import dumps_canonical, loads_canonical
from .errors import (
    CanonicalizationException,
    CapacityExceededException,
    EmptyChainException,
    ErrorCodes,
    IndexOutOfBoundsException,
    InvalidAccessTypeException,
    InvalidBinaryValueException,
    InvalidInputException,
    InvalidMnemonicException,
    InvalidRangeException,
    LengthMismatchException,
    PoolsError,
    PoolsException,
    ShapeMismatchException,
    SnapshotIntegrityException,
)
from .wire import (
    AccessListJSON,
    BytesData,
    MerkleTreeJSON,
    PackedData,
    SubsetData,
    SubsetSource,
)

__all__ = [
    # Serialization
    "dumps_canonical",
    "loads_canonical",
    # Wire models
    "AccessListJSON",
    "BytesData",
    "MerkleTreeJSON",
    "PackedData",
    "SubsetData",
    "SubsetSource",
    # Errors
    "ErrorCodes",
    "PoolsError",
    "PoolsException",
    "CanonicalizationException",
    "CapacityExceededException",
    "EmptyChainException",
    "IndexOutOfBoundsException",
    "InvalidAccessTypeException",
    "InvalidBinaryValueException",
    "InvalidInputException",
    "InvalidMnemonicException",
    "InvalidRangeException",
    "LengthMismatchException",
    "ShapeMismatchException",
    "SnapshotIntegrityException",
]
