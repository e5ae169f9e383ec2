"""
Merkle Tree
Incremental fixed-depth Poseidon Merkle tree over scalar field elements.

This module provides:
- Layered tree construction from an initial leaf sequence
- O(levels) append and point update
- Inclusion proof generation and verification
- O(levels) construction of an all-empty tree of any logical length
- Snapshot export/restore (optionally verified)

Commitment Rules (Hard Contracts):
1. Parent hashing: parent = poseidon([left, right])
2. Empty subtrees: zero_values[0] = zero,
   zero_values[i + 1] = poseidon([zero_values[i], zero_values[i]])
3. Padding rule: a layer of odd width pairs its last node with
   zero_values[level of that layer], never with a duplicate of itself
4. Empty tree: root = zero_values[levels]
5. Only populated nodes are stored; layers[i] has ceil(length / 2**i) entries

Example (levels=2, leaves [a, b, c]):
    layers[0] = [a, b, c]
    layers[1] = [H(a, b), H(c, z0)]
    layers[2] = [H(H(a, b), H(c, z0))]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from pools_core.config import get_default_config
from pools_core.crypto.field import FieldElement, string_hash, to_fe
from pools_core.crypto.hashing import hex_to_int, to_hex32
from pools_core.crypto.poseidon_hash import hash_pair
from pools_core.schemas.canonical import dumps_canonical, loads_canonical
from pools_core.schemas.errors import (
    CapacityExceededException,
    IndexOutOfBoundsException,
    InvalidInputException,
    SnapshotIntegrityException,
)
from pools_core.schemas.wire import MerkleTreeJSON

logger = logging.getLogger(__name__)

MAX_LEVELS = 64


@dataclass(frozen=True)
class MerkleProof:
    """
    Inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf value being proven
        root: The root this proof was generated against
        path: The leaf index; bit i tells whether the node at level i is a
              right child (1) or a left child (0)
        siblings: One sibling per level, bottom to top
    """
    leaf: int
    root: int
    path: int
    siblings: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "siblings", tuple(self.siblings))
        if self.path < 0:
            raise InvalidInputException(
                f"Proof path must be non-negative, got {self.path}",
                details={"path": self.path},
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "leaf": to_hex32(self.leaf),
            "root": to_hex32(self.root),
            "path": self.path,
            "siblings": [to_hex32(s) for s in self.siblings],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MerkleProof":
        return cls(
            leaf=hex_to_int(data["leaf"]),
            root=hex_to_int(data["root"]),
            path=int(data["path"]),
            siblings=tuple(hex_to_int(s) for s in data["siblings"]),
        )


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """
    Verify a Merkle proof against its own claimed root.

    Algorithm:
    1. Start with the leaf
    2. For each sibling (bottom-up), read bit i of the path:
       - bit 1: current node is a right child, acc = H(sibling, acc)
       - bit 0: current node is a left child,  acc = H(acc, sibling)
    3. Check the folded value equals proof.root

    Args:
        proof: MerkleProof to verify

    Returns:
        True if the proof is valid, False otherwise
    """
    current = proof.leaf
    for i, sibling in enumerate(proof.siblings):
        if (proof.path >> i) & 1:
            current = hash_pair(sibling, current)
        else:
            current = hash_pair(current, sibling)
    return current == proof.root


@lru_cache(maxsize=128)
def compute_zero_values(zero: int, levels: int) -> tuple[int, ...]:
    """
    Compute the empty-subtree value for every level.

    Args:
        zero: Level-0 empty leaf
        levels: Tree depth

    Returns:
        Tuple of levels + 1 values, zero_values[levels] is the empty root
    """
    values = [zero]
    for _ in range(levels):
        values.append(hash_pair(values[-1], values[-1]))
    return tuple(values)


def _require_int(value: Any, name: str = "index") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputException(
            f"Invalid value for {name}: {value!r}",
            details={name: repr(value)},
        )
    return value


class MerkleTree:
    """
    Incremental Poseidon Merkle tree of fixed depth.

    Features:
    - Leaves are reduced into the scalar field on ingestion
    - Mutations recompute only the path from the touched leaf to the root
    - Accessors return copies; internal layers are never exposed
    """

    def __init__(
        self,
        leaves: Iterable[Any] = (),
        zero: Any = None,
        zero_label: str | None = None,
        levels: int | None = None,
    ) -> None:
        """
        Build a tree from an initial leaf sequence.

        Args:
            leaves: Initial leaves (ints or 0x-hex strings)
            zero: Empty-leaf value; takes precedence over zero_label
            zero_label: String hashed into the empty-leaf value when no
                zero is given (defaults to the configured label, "empty")
            levels: Tree depth (defaults to the configured depth, 20)

        Raises:
            InvalidInputException: If levels or leaves are malformed
            CapacityExceededException: If len(leaves) >= 2**levels
        """
        tree_config = get_default_config().tree
        if levels is None:
            levels = tree_config.levels
        if isinstance(levels, bool) or not isinstance(levels, int) or not 1 <= levels <= MAX_LEVELS:
            raise InvalidInputException(
                f"Tree depth must be an integer in [1, {MAX_LEVELS}], got {levels!r}",
                details={"levels": repr(levels)},
            )

        self.levels: int = levels
        self.capacity: int = 1 << levels

        if zero is not None:
            zero_value = to_fe(zero)
        else:
            label = tree_config.zero_label if zero_label is None else zero_label
            if not isinstance(label, str):
                raise InvalidInputException(f"Invalid zero label, expected a string, got {label!r}")
            zero_value = string_hash(label)
        self._zero_values: list[int] = list(compute_zero_values(zero_value, levels))

        if isinstance(leaves, (str, bytes)):
            raise InvalidInputException("Invalid leaves, expected a sequence of field elements")
        leaf_values = [to_fe(leaf) for leaf in leaves]
        if len(leaf_values) >= self.capacity:
            raise CapacityExceededException(
                len(leaf_values),
                self.capacity,
                message="Leaves length exceeds the maximum capacity of the tree",
            )

        self._layers: list[list[int]] = self._build_layers(leaf_values)
        logger.debug(f"Built tree with {len(leaf_values)} leaves at depth {levels}")

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def zero(self) -> FieldElement:
        return self._zero_values[0]

    @property
    def root(self) -> FieldElement:
        top = self._layers[self.levels]
        return top[0] if top else self._zero_values[self.levels]

    @property
    def length(self) -> int:
        return len(self._layers[0])

    def __len__(self) -> int:
        return self.length

    @property
    def leaves(self) -> list[FieldElement]:
        return list(self._layers[0])

    @property
    def zero_values(self) -> list[FieldElement]:
        return list(self._zero_values)

    @property
    def layers(self) -> list[list[FieldElement]]:
        return [list(layer) for layer in self._layers]

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _build_layers(self, leaves: list[int]) -> list[list[int]]:
        layers = [leaves]
        for i in range(1, self.levels + 1):
            below = layers[i - 1]
            width = len(below)
            layer = [hash_pair(below[2 * j], below[2 * j + 1]) for j in range(width // 2)]
            if width % 2 == 1:
                # Odd tail pairs with the empty subtree of the layer below
                layer.append(hash_pair(below[width - 1], self._zero_values[i - 1]))
            layers.append(layer)
        return layers

    def _update_path(self, index: int) -> None:
        for i in range(1, self.levels + 1):
            below = self._layers[i - 1]
            n = index >> (i - 1)
            parent = n >> 1
            if n & 1:
                value = hash_pair(below[n - 1], below[n])
            elif n + 1 < len(below):
                value = hash_pair(below[n], below[n + 1])
            else:
                value = hash_pair(below[n], self._zero_values[i - 1])

            layer = self._layers[i]
            if parent == len(layer):
                layer.append(value)
            else:
                layer[parent] = value

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, leaf: Any) -> int:
        """
        Append a leaf.

        Returns:
            Index of the inserted leaf

        Raises:
            CapacityExceededException: If the tree is full
        """
        index = self.length
        if index >= self.capacity:
            raise CapacityExceededException(
                index + 1,
                self.capacity,
                message="The tree is at capacity. No more leaves can be inserted",
            )
        value = to_fe(leaf)
        self._layers[0].append(value)
        self._update_path(index)
        return index

    def update(self, index: int, leaf: Any) -> None:
        """
        Overwrite an existing leaf.

        Unchanged values are skipped without rehashing.

        Raises:
            InvalidInputException: If index is not an integer
            IndexOutOfBoundsException: If index is outside [0, length)
        """
        _require_int(index)
        if index < 0 or index >= self.length:
            raise IndexOutOfBoundsException(index, self.length)
        value = to_fe(leaf)
        if self._layers[0][index] == value:
            return
        self._layers[0][index] = value
        self._update_path(index)

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    def generate_proof(self, index: int) -> MerkleProof:
        """
        Generate an inclusion proof for the leaf at index.

        Raises:
            InvalidInputException: If index is not an integer
            IndexOutOfBoundsException: If the tree is empty or index is
                outside [0, length)
        """
        _require_int(index)
        if self.length == 0 or index < 0 or index >= self.length:
            raise IndexOutOfBoundsException(index, self.length)

        siblings: list[int] = []
        for i in range(self.levels):
            layer = self._layers[i]
            position = index >> i
            if position & 1:
                siblings.append(layer[position - 1])
            elif position + 1 < len(layer):
                siblings.append(layer[position + 1])
            else:
                siblings.append(self._zero_values[i])

        return MerkleProof(
            leaf=self._layers[0][index],
            root=self.root,
            path=index,
            siblings=tuple(siblings),
        )

    def verify_proof(self, proof: MerkleProof) -> bool:
        """
        Verify a proof against this tree's current root.

        Stricter than verify_merkle_proof: the proof must target this
        tree's root and carry exactly one sibling per level.
        """
        return (
            proof.root == self.root
            and len(proof.siblings) == self.levels
            and verify_merkle_proof(proof)
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> MerkleTreeJSON:
        return MerkleTreeJSON(
            zero=to_hex32(self.zero),
            layers=[[to_hex32(value) for value in layer] for layer in self._layers],
        )

    def to_string(self) -> str:
        return dumps_canonical(self.to_json())

    @classmethod
    def from_json(
        cls,
        data: MerkleTreeJSON | dict[str, Any],
        verify: bool = False,
    ) -> "MerkleTree":
        """
        Restore a tree from a snapshot.

        The depth is the number of layers minus one. Layers are trusted
        verbatim unless verify is set, in which case every layer is
        recomputed from the leaves and compared.

        Raises:
            InvalidInputException: If the snapshot is malformed
            SnapshotIntegrityException: If verify is set and a layer differs
        """
        if not isinstance(data, MerkleTreeJSON):
            try:
                data = MerkleTreeJSON.model_validate(data)
            except ValidationError as e:
                raise InvalidInputException(
                    f"Invalid tree snapshot: {e.error_count()} validation error(s)",
                    details={"errors": e.errors(include_url=False, include_context=False)},
                ) from e

        layers = [[hex_to_int(value) for value in layer] for layer in data.layers]
        tree = cls(zero=hex_to_int(data.zero), levels=len(layers) - 1)
        tree._layers = layers

        if verify:
            logger.info(f"Verifying restored tree with {tree.length} leaves")
            expected = tree._build_layers(list(layers[0]))
            for level, (actual, recomputed) in enumerate(zip(layers, expected)):
                if actual != recomputed:
                    logger.warning(f"Snapshot layer {level} does not match its recomputation")
                    raise SnapshotIntegrityException(
                        f"Snapshot layer {level} is inconsistent with the leaves",
                        level=level,
                    )
        return tree

    @classmethod
    def from_string(cls, json_string: str, verify: bool = False) -> "MerkleTree":
        return cls.from_json(loads_canonical(json_string), verify=verify)

    # ------------------------------------------------------------------
    # Bulk construction
    # ------------------------------------------------------------------

    @classmethod
    def full_empty(
        cls,
        tree_length: int,
        zero: Any = None,
        zero_label: str | None = None,
        levels: int | None = None,
    ) -> "MerkleTree":
        """
        Build a tree of tree_length empty leaves in O(levels) hashes.

        Layer i holds ceil(tree_length / 2**i) copies of zero_values[i],
        which is exactly what the leaf-by-leaf constructor produces for
        [zero] * tree_length.

        Raises:
            InvalidInputException: If tree_length is not a non-negative int
            CapacityExceededException: If tree_length >= 2**levels
        """
        tree = cls(zero=zero, zero_label=zero_label, levels=levels)
        _require_int(tree_length, "tree_length")
        if tree_length < 0:
            raise InvalidInputException(
                f"Tree length must be non-negative, got {tree_length}",
                details={"tree_length": tree_length},
            )
        if tree_length >= tree.capacity:
            raise CapacityExceededException(tree_length, tree.capacity)

        tree._layers = [
            [tree._zero_values[i]] * -(-tree_length >> i)
            for i in range(tree.levels + 1)
        ]
        logger.debug(f"Built empty tree of length {tree_length} at depth {tree.levels}")
        return tree


__all__ = [
    "MerkleProof",
    "MerkleTree",
    "compute_zero_values",
    "verify_merkle_proof",
]
