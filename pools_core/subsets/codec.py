"""
Subset Codec
Lossless conversion between a binary-decision sequence and its packed forms.

Bit ordering is the same for both packed forms: bit i of the sequence is
stored MSB first, i.e. at position (width - 1 - i % width) of container
element i // width. A trailing partial byte/word keeps its bits in the high
positions and its low positions are written as zero.

    SubsetData [1,0,1,1,0,0,0,0, 1]  (bitLength 9)
    BytesData  data=b"\\xb0\\x80"    (bitLength 9)
"""
from __future__ import annotations

from typing import Any, Sequence

from pydantic import ValidationError

from pools_core.schemas.errors import (
    InvalidBinaryValueException,
    InvalidInputException,
    ShapeMismatchException,
)
from pools_core.schemas.wire import BytesData, PackedData, SubsetData


BITS_PER_BYTE = 8
BITS_PER_WORD = 256
WORD_LIMIT = 1 << BITS_PER_WORD


def is_binary(value: Any) -> bool:
    """True for the ints 0 and 1 (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and value in (0, 1)


def validate_subset_data(subset_data: Any) -> SubsetData:
    """
    Check that every element is 0 or 1 and return an owned copy.

    Raises:
        InvalidInputException: If the container is not a list or tuple
        InvalidBinaryValueException: At the first non-binary element
    """
    if not is_subset_data(subset_data):
        raise InvalidInputException(
            f"Expected a list of bits, received {type(subset_data).__name__}",
            details={"type": type(subset_data).__name__},
        )
    for position, value in enumerate(subset_data):
        if not is_binary(value):
            raise InvalidBinaryValueException(value, position)
    return list(subset_data)


def is_subset_data(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_bytes_data(value: Any) -> bool:
    return isinstance(value, BytesData)


def is_packed_data(value: Any) -> bool:
    return isinstance(value, PackedData)


def _container_count(bit_length: int, width: int) -> int:
    return -(-bit_length // width)


def _pack_bits(subset_data: Sequence[int], width: int) -> list[int]:
    words = [0] * _container_count(len(subset_data), width)
    for i, bit in enumerate(subset_data):
        if not is_binary(bit):
            raise InvalidBinaryValueException(bit, i)
        if bit:
            words[i // width] |= 1 << (width - 1 - i % width)
    return words


def _unpack_bits(words: Sequence[int], bit_length: int, width: int) -> SubsetData:
    return [
        (words[i // width] >> (width - 1 - i % width)) & 1
        for i in range(bit_length)
    ]


def subset_data_to_bytes(subset_data: SubsetData) -> BytesData:
    """
    Pack bits 8 per byte, most significant bit first.

    Args:
        subset_data: Sequence of 0/1 ints

    Returns:
        BytesData with bit_length == len(subset_data)

    Raises:
        InvalidInputException: If the input is not a list of bits
        InvalidBinaryValueException: At the first non-binary element
    """
    if not is_subset_data(subset_data):
        raise InvalidInputException(
            f"Expected a list of bits, received {type(subset_data).__name__}"
        )
    packed = _pack_bits(subset_data, BITS_PER_BYTE)
    return BytesData(bit_length=len(subset_data), data=bytes(packed))


def bytes_to_subset_data(bytes_data: BytesData | dict) -> SubsetData:
    """
    Unpack a BytesData into a list of bits.

    Raises:
        InvalidInputException: If the payload is not a BytesData shape
        ShapeMismatchException: If len(data) disagrees with bit_length
    """
    bytes_data = _coerce(bytes_data, BytesData)
    expected = _container_count(bytes_data.bit_length, BITS_PER_BYTE)
    if len(bytes_data.data) != expected:
        raise ShapeMismatchException(
            f"Expected {expected} bytes for {bytes_data.bit_length} bits, got {len(bytes_data.data)}",
            bit_length=bytes_data.bit_length,
            container_size=len(bytes_data.data),
        )
    return _unpack_bits(bytes_data.data, bytes_data.bit_length, BITS_PER_BYTE)


def pack_subset_data(subset_data: SubsetData) -> PackedData:
    """
    Pack bits 256 per word, most significant bit first.

    Raises:
        InvalidInputException: If the input is not a list of bits
        InvalidBinaryValueException: At the first non-binary element
    """
    if not is_subset_data(subset_data):
        raise InvalidInputException(
            f"Expected a list of bits, received {type(subset_data).__name__}"
        )
    words = _pack_bits(subset_data, BITS_PER_WORD)
    return PackedData(bit_length=len(subset_data), data=words)


def unpack_subset_data(packed_data: PackedData | dict) -> SubsetData:
    """
    Unpack a PackedData into a list of bits.

    Raises:
        InvalidInputException: If the payload is not a PackedData shape
        ShapeMismatchException: If the word count disagrees with bit_length
            or a word does not fit in 256 bits
    """
    packed_data = _coerce(packed_data, PackedData)
    expected = _container_count(packed_data.bit_length, BITS_PER_WORD)
    if len(packed_data.data) != expected:
        raise ShapeMismatchException(
            f"Expected {expected} words for {packed_data.bit_length} bits, got {len(packed_data.data)}",
            bit_length=packed_data.bit_length,
            container_size=len(packed_data.data),
        )
    for position, word in enumerate(packed_data.data):
        if word < 0 or word >= WORD_LIMIT:
            raise ShapeMismatchException(
                f"Word {position} does not fit in {BITS_PER_WORD} bits",
                bit_length=packed_data.bit_length,
                details={"position": position},
            )
    return _unpack_bits(packed_data.data, packed_data.bit_length, BITS_PER_WORD)


def _coerce(payload: Any, model: type[BytesData] | type[PackedData]):
    if isinstance(payload, model):
        return payload
    if isinstance(payload, dict):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InvalidInputException(
                f"Invalid {model.__name__} payload: {e.error_count()} validation error(s)",
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e
    raise InvalidInputException(
        f"Expected {model.__name__}, received {type(payload).__name__}",
        details={"type": type(payload).__name__},
    )


def to_subset_data(source: Any) -> SubsetData:
    """
    Normalize any of the three encodings to a validated list of bits.

    None normalizes to the empty sequence.
    """
    if source is None:
        return []
    if is_subset_data(source):
        return validate_subset_data(source)
    if is_bytes_data(source):
        return bytes_to_subset_data(source)
    if is_packed_data(source):
        return unpack_subset_data(source)
    raise InvalidInputException(
        f"Unrecognized subset encoding: {type(source).__name__}",
        details={"type": type(source).__name__},
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
