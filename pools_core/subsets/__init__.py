"""
Subset Codec

Conversions between SubsetData (bit lists), BytesData (8 bits per byte) and
PackedData (256 bits per word).

Usage:
    from pools_core.subsets import subset_data_to_bytes, bytes_to_subset_data

    packed = subset_data_to_bytes([1, 0, 1])
    assert bytes_to_subset_data(packed) == [1, 0, 1]
"""
from .codec import (
    BITS_PER_BYTE,
    BITS_PER_WORD,
    is_binary,
    is_subset_data,
    is_bytes_data,
    is_packed_data,
    validate_subset_data,
    subset_data_to_bytes,
    bytes_to_subset_data,
    pack_subset_data,
    unpack_subset_data,
    to_subset_data,
)

__all__ = [
    "BITS_PER_BYTE",
    "BITS_PER_WORD",
    "is_binary",
    "is_subset_data",
    "is_bytes_data",
    "is_packed_data",
    "validate_subset_data",
    "subset_data_to_bytes",
    "bytes_to_subset_data",
    "pack_subset_data",
    "unpack_subset_data",
    "to_subset_data",
]
