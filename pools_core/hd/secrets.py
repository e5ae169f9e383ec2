"""
Hierarchical Deterministic Secrets
Deterministic chain of secrets, commitments and nullifiers from a mnemonic.

Derivation (all arithmetic in the scalar field, H = Poseidon):

    seed            = BIP-39 seed of (mnemonic, password), 64 bytes
    main_seed       = (int(seed[0:32]) mod P, int(seed[32:64]) mod P)

    extended_seed_0 = H(main_seed[0], main_seed[1]; 3 outputs)
    extended_seed_n = H(extended_seed_{n-1}[0], extended_seed_{n-1}[1]; 3 outputs)

    secret_n        = H(extended_seed_n[0], extended_seed_n[2])
    commitment_n    = H(0, secret_n)

Nullifiers bind a secret to its position and to one deployment:

    contract_code   = keccak256(abi.encodePacked(address, uint256 chain_id)) mod P
    nullifier_n     = H(0, secret_n, n, contract_code)

The same commitment can therefore be reused across deployments and chains
without its nullifiers colliding.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, NamedTuple

from mnemonic import Mnemonic

from pools_core.config import get_default_config
from pools_core.crypto.field import P, FieldElement, hash_mod, to_fe
from pools_core.crypto.poseidon_hash import poseidon
from pools_core.schemas.errors import (
    EmptyChainException,
    IndexOutOfBoundsException,
    InvalidInputException,
    InvalidMnemonicException,
)

logger = logging.getLogger(__name__)

MNEMONIC_LANGUAGE = "english"


class Seed(NamedTuple):
    presecret: FieldElement
    chain_code: FieldElement


class ExtendedSeed(NamedTuple):
    presecret: FieldElement
    chain_code: FieldElement
    randomness: FieldElement


class KeyPair(NamedTuple):
    """A private secret and the public commitment derived from it."""
    secret: FieldElement
    commitment: FieldElement


@dataclass(frozen=True)
class HDNode:
    """One link of the derivation chain."""
    extended_seed: ExtendedSeed
    key_pair: KeyPair


def derive_node(parent_seed: Seed | ExtendedSeed) -> HDNode:
    """
    Derive the next node from a parent's (presecret, chain_code).

    Pure function: the same parent always yields the same node.
    """
    extended_seed = ExtendedSeed(*poseidon([parent_seed[0], parent_seed[1]], 3))
    secret = poseidon([extended_seed.presecret, extended_seed.randomness])
    commitment = poseidon([0, secret])
    return HDNode(extended_seed=extended_seed, key_pair=KeyPair(secret, commitment))


def _require_index(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputException(
            f"Invalid value for {name}: {value!r}",
            details={name: repr(value)},
        )
    return value


class HDSecretGenerator:
    """
    Lazily-grown chain of key pairs, similar to the address list of a wallet.

    Nodes are derived on demand and cached in an append-only list, so
    asking for the same index twice never re-derives anything.
    """

    def __init__(
        self,
        mnemonic: str,
        password: str = "",
        num_keys: int | None = None,
        max_keys: int | None = None,
    ) -> None:
        """
        Args:
            mnemonic: BIP-39 English seed phrase
            password: Optional BIP-39 passphrase
            num_keys: Nodes derived eagerly (default from config, 10)
            max_keys: Ceiling on derivable nodes (default from config, 1024)

        Raises:
            InvalidMnemonicException: If the phrase fails checksum validation
            InvalidInputException: If num_keys exceeds max_keys
        """
        hd_config = get_default_config().hd
        self.max_keys: int = hd_config.max_keys if max_keys is None else _require_index(max_keys, "max_keys")
        num_keys = hd_config.num_keys if num_keys is None else _require_index(num_keys, "num_keys")
        if num_keys < 0 or num_keys > self.max_keys:
            raise InvalidInputException(
                f"num_keys must be within [0, {self.max_keys}], got {num_keys}",
                details={"num_keys": num_keys, "max_keys": self.max_keys},
            )

        if not isinstance(mnemonic, str) or not Mnemonic(MNEMONIC_LANGUAGE).check(mnemonic):
            raise InvalidMnemonicException()

        seed = Mnemonic.to_seed(mnemonic, passphrase=password)
        self._main_seed = Seed(
            int.from_bytes(seed[:32], "big") % P,
            int.from_bytes(seed[32:64], "big") % P,
        )
        self._nodes: list[HDNode] = []

        self._derive_through(num_keys - 1)
        logger.debug(f"Derived {len(self._nodes)} initial keys")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def main_seed(self) -> Seed:
        return self._main_seed

    @property
    def nodes(self) -> list[HDNode]:
        return list(self._nodes)

    @property
    def key_ring(self) -> list[KeyPair]:
        return [node.key_pair for node in self._nodes]

    @property
    def commitments(self) -> list[FieldElement]:
        return [node.key_pair.commitment for node in self._nodes]

    @property
    def secrets(self) -> list[FieldElement]:
        return [node.key_pair.secret for node in self._nodes]

    @property
    def latest_node(self) -> HDNode:
        if not self._nodes:
            raise EmptyChainException()
        return self._nodes[-1]

    @property
    def latest_keys(self) -> KeyPair:
        return self.latest_node.key_pair

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _next_node(self) -> HDNode:
        parent = self._nodes[-1].extended_seed if self._nodes else self._main_seed
        node = derive_node(parent)
        self._nodes.append(node)
        return node

    def _derive_through(self, index: int) -> None:
        if index >= self.max_keys:
            raise IndexOutOfBoundsException(
                index,
                self.max_keys,
                message=f"Index {index} exceeds the key limit of {self.max_keys}",
            )
        while len(self._nodes) <= index:
            self._next_node()

    def keys_at(self, index: int) -> KeyPair:
        """
        Key pair at index, deriving intermediate nodes as needed.

        Raises:
            IndexOutOfBoundsException: If index < 0 or index >= max_keys
        """
        _require_index(index, "index")
        if index < 0:
            raise IndexOutOfBoundsException(index, len(self._nodes))
        self._derive_through(index)
        return self._nodes[index].key_pair

    def keys_at_range(self, start: int, end: int) -> list[KeyPair]:
        """Key pairs for [start, end)."""
        _require_index(start, "start")
        _require_index(end, "end")
        if start < 0 or end < start:
            raise IndexOutOfBoundsException(start, len(self._nodes), message=f"Invalid range [{start}, {end})")
        self._derive_through(end - 1)
        return [node.key_pair for node in self._nodes[start:end]]

    # ------------------------------------------------------------------
    # Nullifiers
    # ------------------------------------------------------------------

    def nullifier_at(self, index: int, contract_code: Any) -> FieldElement:
        """
        Nullifier of the secret at index for one deployment.

        Args:
            index: Position of the secret in the chain
            contract_code: Deployment binding, see get_contract_code
        """
        secret, _ = self.keys_at(index)
        return poseidon([0, secret, index, to_fe(contract_code)])

    def nullifiers_at(self, index: int, num_nullifiers: int, contract_code: Any) -> list[FieldElement]:
        """num_nullifiers consecutive nullifiers starting at index."""
        return self.nullifiers_at_range(index, index + num_nullifiers, contract_code)

    def nullifiers_at_range(self, start: int, end: int, contract_code: Any) -> list[FieldElement]:
        """Nullifiers for [start, end)."""
        code = to_fe(contract_code)
        return [self.nullifier_at(i, code) for i in range(start, end)]

    @staticmethod
    def get_contract_code(address: str, chain_id: int) -> FieldElement:
        """keccak256(abi.encodePacked(address, uint256 chain_id)) mod P."""
        return hash_mod(["address", "uint256"], [address, chain_id])


__all__ = [
    "ExtendedSeed",
    "HDNode",
    "HDSecretGenerator",
    "KeyPair",
    "Seed",
    "derive_node",
]
