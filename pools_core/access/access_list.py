"""
Access List
Allow/block set committed to a Poseidon Merkle tree.

Every leaf is one of two sentinel field elements chosen by the list's
polarity, and a parallel bit array mirrors the leaves:

    access type   bit 0     bit 1
    allowlist     BLOCKED   ALLOWED
    blocklist     ALLOWED   BLOCKED

Invariants:
- subset_data[i] is 0 or 1 and tree.leaves[i] == (one if subset_data[i] else zero)
- len(subset_data) == tree.length
- The list never shrinks
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import ValidationError

from pools_core.crypto.field import ALLOWED, BLOCKED, FieldElement
from pools_core.merkle.merkle_tree import MerkleProof, MerkleTree
from pools_core.schemas.canonical import dumps_canonical, loads_canonical
from pools_core.schemas.errors import (
    CapacityExceededException,
    InvalidAccessTypeException,
    InvalidBinaryValueException,
    InvalidInputException,
    InvalidRangeException,
    LengthMismatchException,
    ShapeMismatchException,
    SnapshotIntegrityException,
)
from pools_core.schemas.wire import AccessListJSON, BytesData, PackedData, SubsetData
from pools_core.subsets.codec import (
    bytes_to_subset_data,
    is_binary,
    is_subset_data,
    to_subset_data,
    unpack_subset_data,
    validate_subset_data,
)

logger = logging.getLogger(__name__)


class AccessType(str, Enum):
    """Polarity of an access list."""
    ALLOWLIST = "allowlist"
    BLOCKLIST = "blocklist"


def resolve_sentinels(access_type: Any) -> tuple[AccessType, FieldElement, FieldElement]:
    """
    Map an access type to its (type, zero, one) sentinel pair.

    Raises:
        InvalidAccessTypeException: For anything but allowlist/blocklist
    """
    try:
        resolved = AccessType(access_type)
    except ValueError as e:
        raise InvalidAccessTypeException(access_type) from e
    if resolved is AccessType.ALLOWLIST:
        return resolved, BLOCKED, ALLOWED
    return resolved, ALLOWED, BLOCKED


def _is_non_negative_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class AccessList:
    """
    Allow/block list backed by a Merkle tree of sentinel leaves.

    Build it from exactly one of three equivalent encodings, or from
    nothing for an empty list:

        AccessList("allowlist", subset_data=[1, 0, 1])
        AccessList("allowlist", bytes_data=BytesData(bit_length=3, data=b"\\xa0"))
        AccessList("allowlist", packed_data=PackedData(bit_length=3, data=[5 << 253]))

    All three produce the same root, bits and snapshot.
    """

    def __init__(
        self,
        access_type: AccessType | str,
        *,
        subset_data: SubsetData | None = None,
        bytes_data: BytesData | dict | None = None,
        packed_data: PackedData | dict | None = None,
        levels: int | None = None,
    ) -> None:
        """
        Raises:
            InvalidAccessTypeException: If access_type is not allowlist/blocklist
            InvalidInputException: If more than one encoding is supplied or
                an encoding has an unrecognized shape
            InvalidBinaryValueException: If a resolved bit is not 0 or 1
            CapacityExceededException: If the list does not fit the tree
        """
        self._access_type, self._zero, self._one = resolve_sentinels(access_type)

        supplied = [
            name
            for name, value in (
                ("subset_data", subset_data),
                ("bytes_data", bytes_data),
                ("packed_data", packed_data),
            )
            if value is not None
        ]
        if len(supplied) > 1:
            raise InvalidInputException(
                f"Expected at most one of subset_data, bytes_data, packed_data; got {supplied}",
                details={"supplied": supplied},
            )

        if subset_data is not None:
            bits = validate_subset_data(subset_data)
        elif bytes_data is not None:
            bits = bytes_to_subset_data(bytes_data)
        elif packed_data is not None:
            bits = unpack_subset_data(packed_data)
        else:
            bits = []

        self._subset_data: SubsetData = bits
        self._tree = MerkleTree(
            [self._one if bit else self._zero for bit in bits],
            zero=self._zero,
            levels=levels,
        )
        logger.debug(f"Built {self._access_type.value} with {len(bits)} entries")

    @classmethod
    def from_source(
        cls,
        access_type: AccessType | str,
        source: SubsetData | BytesData | PackedData | None,
        levels: int | None = None,
    ) -> "AccessList":
        """Build a list from any one of the three encodings (or None)."""
        return cls(access_type, subset_data=to_subset_data(source), levels=levels)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def access_type(self) -> str:
        return self._access_type.value

    @property
    def zero(self) -> FieldElement:
        return self._zero

    @property
    def one(self) -> FieldElement:
        return self._one

    @property
    def root(self) -> FieldElement:
        return self._tree.root

    @property
    def length(self) -> int:
        return self._tree.length

    def __len__(self) -> int:
        return self.length

    @property
    def subset_data(self) -> SubsetData:
        return list(self._subset_data)

    @property
    def leaves(self) -> list[FieldElement]:
        return self._tree.leaves

    @property
    def zero_values(self) -> list[FieldElement]:
        return self._tree.zero_values

    @property
    def levels(self) -> int:
        return self._tree.levels

    @property
    def capacity(self) -> int:
        return self._tree.capacity

    def _leaf_for(self, bit: int) -> FieldElement:
        return self._one if bit else self._zero

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, value: int) -> int:
        """Append one bit; returns its index."""
        if not is_binary(value):
            raise InvalidBinaryValueException(value)
        index = self._tree.insert(self._leaf_for(value))
        self._subset_data.append(value)
        return index

    def update(self, index: int, value: int) -> None:
        """Overwrite the bit at index."""
        if not is_binary(value):
            raise InvalidBinaryValueException(value)
        self._tree.update(index, self._leaf_for(value))
        self._subset_data[index] = value

    def get_window(self, start: int, end: int) -> SubsetData:
        """Return a copy of the bits in [start, end) with plain slice semantics."""
        return self._subset_data[start:end]

    def set_window(self, start: int, end: int, new_subset_data: SubsetData) -> None:
        """
        Replace the bits in [start, end).

        Everything is validated before the first leaf is touched.

        Raises:
            InvalidRangeException: If bounds are not non-negative ints,
                start > end, or end exceeds the length or capacity
            InvalidInputException: If new_subset_data is not a list of bits
            LengthMismatchException: If len(new_subset_data) != end - start
            InvalidBinaryValueException: If any new value is not 0 or 1
        """
        if not (_is_non_negative_int(start) and _is_non_negative_int(end)):
            raise InvalidRangeException(
                start, end, message="Invalid start or end, expected non-negative integers"
            )
        if start > end or end > self.capacity or end > self.length:
            raise InvalidRangeException(
                start, end, message="Invalid slice, must be within bounds and use positive index only"
            )
        if not is_subset_data(new_subset_data):
            raise InvalidInputException(
                f"Invalid replacement data, expected a list of bits, got {type(new_subset_data).__name__}"
            )
        if len(new_subset_data) != end - start:
            raise LengthMismatchException(end - start, len(new_subset_data))
        bits = validate_subset_data(new_subset_data)

        for offset, bit in enumerate(bits):
            self.update(start + offset, bit)

    def extend(self, new_length: int) -> None:
        """
        Grow the list to new_length by appending zero bits.

        Shorter or equal lengths are a no-op.

        Raises:
            InvalidInputException: If new_length is not an integer
            CapacityExceededException: If new_length > capacity
        """
        if isinstance(new_length, bool) or not isinstance(new_length, int):
            raise InvalidInputException(f"Invalid length: {new_length!r}")
        if new_length > self.capacity:
            raise CapacityExceededException(
                new_length,
                self.capacity,
                message="New length exceeds the maximum capacity of the tree",
            )
        while self.length < new_length:
            self.insert(0)

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    def generate_proof(self, index: int) -> MerkleProof:
        return self._tree.generate_proof(index)

    def verify_proof(self, proof: MerkleProof) -> bool:
        return self._tree.verify_proof(proof)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> AccessListJSON:
        return AccessListJSON(
            access_type=self.access_type,
            subset_data=self.subset_data,
            tree=self._tree.to_json(),
        )

    def to_string(self) -> str:
        return dumps_canonical(self.to_json())

    @classmethod
    def from_json(
        cls,
        data: AccessListJSON | dict[str, Any],
        verify: bool = False,
    ) -> "AccessList":
        """
        Restore a list from a snapshot.

        The tree layers are trusted verbatim unless verify is set, in which
        case the tree is recomputed and every leaf is checked against the
        bit mirror.

        Raises:
            InvalidInputException: If the snapshot is malformed
            ShapeMismatchException: If the bit mirror and tree lengths differ
            SnapshotIntegrityException: If verify is set and the snapshot is
                inconsistent
        """
        if not isinstance(data, AccessListJSON):
            try:
                data = AccessListJSON.model_validate(data)
            except ValidationError as e:
                raise InvalidInputException(
                    f"Invalid access list snapshot: {e.error_count()} validation error(s)",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                ) from e

        access_list = cls(data.access_type, levels=len(data.tree.layers) - 1)
        tree = MerkleTree.from_json(data.tree, verify=verify)
        bits = validate_subset_data(data.subset_data)
        if len(bits) != tree.length:
            raise ShapeMismatchException(
                f"Snapshot holds {len(bits)} bits for a tree of {tree.length} leaves",
                bit_length=len(bits),
                container_size=tree.length,
            )

        if verify:
            if tree.zero != access_list.zero:
                raise SnapshotIntegrityException(
                    f"Snapshot tree zero does not match the {access_list.access_type} polarity",
                    level=0,
                )
            for index, (bit, leaf) in enumerate(zip(bits, tree.leaves)):
                if leaf != access_list._leaf_for(bit):
                    logger.warning(f"Snapshot leaf {index} disagrees with its bit")
                    raise SnapshotIntegrityException(
                        f"Leaf {index} does not match bit {bit}",
                        level=0,
                        details={"index": index},
                    )

        access_list._tree = tree
        access_list._subset_data = bits
        return access_list

    @classmethod
    def from_string(cls, json_string: str, verify: bool = False) -> "AccessList":
        return cls.from_json(loads_canonical(json_string), verify=verify)

    # ------------------------------------------------------------------
    # Bulk construction
    # ------------------------------------------------------------------

    @classmethod
    def full_empty(
        cls,
        subset_length: int,
        access_type: AccessType | str,
        levels: int | None = None,
    ) -> "AccessList":
        """
        Build a list of subset_length zero bits in O(levels) hashes.

        The result is indistinguishable from subset_length sequential
        insert(0) calls on an empty list.
        """
        access_list = cls(access_type, levels=levels)
        access_list._tree = MerkleTree.full_empty(
            subset_length,
            zero=access_list.zero,
            levels=access_list.levels,
        )
        access_list._subset_data = [0] * subset_length
        return access_list


__all__ = [
    "AccessList",
    "AccessType",
    "resolve_sentinels",
]
