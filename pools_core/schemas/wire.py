"""
Schemas & Canonicalization
File: wire.py

Purpose: Wire and snapshot schemas shared by the codec, the Merkle tree
and the access list.

The three encodings of a binary-decision sequence form a closed union:
    - SubsetData: a plain list of 0/1 ints
    - BytesData:  8 bits per byte, MSB first, explicit bitLength
    - PackedData: 256 bits per word, MSB first, explicit bitLength
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


SubsetData = list[int]


class BytesData(BaseModel):
    """
    Byte-packed binary-decision sequence.

    `bit_length` is the number of meaningful bits, independent of
    `len(data)`, so a partial trailing byte is unambiguous.

    On the wire `data` is a 0x hex string; a list of byte values is also
    accepted.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    bit_length: int = Field(..., alias="bitLength", ge=0, description="Number of meaningful bits")
    data: bytes = Field(default=b"", description="Packed bytes, MSB first")

    @field_validator("data", mode="before")
    @classmethod
    def _parse_hex_bytes(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.startswith("0x"):
                raise ValueError("byte data must be a 0x-prefixed hex string")
            return bytes.fromhex(value[2:])
        if isinstance(value, (list, tuple)):
            if not all(
                isinstance(b, int) and not isinstance(b, bool) and 0 <= b < 256
                for b in value
            ):
                raise ValueError("byte data lists must hold ints in [0, 256)")
            return bytes(value)
        return value

    @field_serializer("data", when_used="json")
    def _hex_bytes(self, value: bytes) -> str:
        return "0x" + value.hex()


class PackedData(BaseModel):
    """
    Word-packed binary-decision sequence (256-bit words).

    Words may be supplied as ints or as 0x-prefixed hex strings.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    bit_length: int = Field(..., alias="bitLength", ge=0, description="Number of meaningful bits")
    data: list[int] = Field(default_factory=list, description="256-bit words, MSB first")

    @field_validator("data", mode="before")
    @classmethod
    def _parse_hex_words(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [
                int(word, 16) if isinstance(word, str) and word.startswith("0x") else word
                for word in value
            ]
        return value


SubsetSource = Union[SubsetData, BytesData, PackedData]


class MerkleTreeJSON(BaseModel):
    """Serialized Merkle tree: the zero leaf and every committed layer."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    zero: str = Field(..., description="Level-0 empty leaf as 32-byte hex")
    layers: list[list[str]] = Field(
        ...,
        min_length=1,
        description="layers[0] are the leaves, layers[-1] holds the root",
    )


class AccessListJSON(BaseModel):
    """Serialized access list: polarity, bit mirror and the backing tree."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    access_type: str = Field(..., alias="accessType")
    subset_data: list[int] = Field(default_factory=list, alias="subsetData")
    tree: MerkleTreeJSON
