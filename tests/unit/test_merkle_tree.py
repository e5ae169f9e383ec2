"""
Merkle Tree Unit Tests
Tests for pools_core/merkle/merkle_tree.py

Tests:
- Layer construction and the odd-tail padding rule
- Incremental insert/update against fresh construction
- O(levels) empty-tree construction
- Proof generation, verification and staleness
- Snapshot export/restore
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import FrozenInstanceError

import pytest

from pools_core.crypto import ALLOWED, EMPTY, hash_pair, to_hex32
from pools_core.merkle import MerkleProof, MerkleTree, compute_zero_values, verify_merkle_proof
from pools_core.schemas import (
    CapacityExceededException,
    IndexOutOfBoundsException,
    InvalidInputException,
    MerkleTreeJSON,
    SnapshotIntegrityException,
)
from fixtures.common import make_leaves


class TestZeroValues:
    """Tests for compute_zero_values()."""

    def test_self_pairing_chain(self):
        zv = compute_zero_values(7, 3)

        assert len(zv) == 4
        assert zv[0] == 7
        assert zv[1] == hash_pair(7, 7)
        assert zv[3] == hash_pair(zv[2], zv[2])

    def test_tree_exposes_copy(self):
        tree = MerkleTree(levels=3)
        zv = tree.zero_values
        zv[0] = 123

        assert tree.zero_values[0] == EMPTY


class TestConstruction:
    """Tests for MerkleTree.__init__()."""

    def test_defaults(self):
        """Default depth and empty label come from the runtime config."""
        tree = MerkleTree()

        assert tree.levels == 20
        assert tree.zero == EMPTY
        assert tree.length == 0

    def test_empty_root_is_top_zero_value(self):
        tree = MerkleTree(levels=4)

        assert tree.root == tree.zero_values[4]
        assert tree.layers == [[] for _ in range(5)]

    def test_depth_20_allowed_root(self):
        """An empty depth-20 tree over ALLOWED has the 20-fold self-paired root."""
        expected = ALLOWED
        for _ in range(20):
            expected = hash_pair(expected, expected)

        tree = MerkleTree(zero=ALLOWED, levels=20)

        assert tree.root == expected

    def test_zero_label(self):
        tree = MerkleTree(zero_label="allowed", levels=2)

        assert tree.zero == ALLOWED

    def test_three_leaves_layers(self):
        """The odd tail pairs with the empty subtree of its level."""
        a, b, c = 11, 22, 33
        tree = MerkleTree([a, b, c], zero=0, levels=2)
        z0 = 0
        z1 = hash_pair(0, 0)

        assert tree.layers[0] == [a, b, c]
        assert tree.layers[1] == [hash_pair(a, b), hash_pair(c, z0)]
        assert tree.root == hash_pair(hash_pair(a, b), hash_pair(c, z0))
        assert tree.root != hash_pair(hash_pair(a, b), z1)

    def test_odd_tail_at_upper_level(self):
        leaves = make_leaves(5)
        tree = MerkleTree(leaves, zero=0, levels=3)
        zv = tree.zero_values
        layer1 = [hash_pair(leaves[0], leaves[1]), hash_pair(leaves[2], leaves[3]), hash_pair(leaves[4], zv[0])]
        layer2 = [hash_pair(layer1[0], layer1[1]), hash_pair(layer1[2], zv[1])]

        assert tree.layers[1] == layer1
        assert tree.layers[2] == layer2
        assert tree.root == hash_pair(layer2[0], layer2[1])

    def test_layer_widths(self):
        tree = MerkleTree(make_leaves(9), levels=5)

        assert [len(layer) for layer in tree.layers] == [9, 5, 3, 2, 1, 1]

    def test_leaves_reduced_and_hex_accepted(self):
        tree = MerkleTree(["0x0a", 10], levels=2)

        assert tree.leaves == [10, 10]

    def test_rejects_full_initial_sequence(self):
        with pytest.raises(CapacityExceededException):
            MerkleTree(make_leaves(16), levels=4)

    def test_accepts_one_below_capacity(self):
        tree = MerkleTree(make_leaves(15), levels=4)

        assert tree.length == 15

    @pytest.mark.parametrize("levels", [0, 65, "4", True])
    def test_rejects_bad_depth(self, levels):
        with pytest.raises(InvalidInputException):
            MerkleTree(levels=levels)

    def test_rejects_bad_leaf(self):
        with pytest.raises(InvalidInputException):
            MerkleTree([1, None], levels=2)


class TestMutation:
    """Tests for insert() / update()."""

    def test_insert_matches_construction(self, small_levels):
        leaves = make_leaves(11)
        tree = MerkleTree(levels=small_levels)
        for i, leaf in enumerate(leaves):
            assert tree.insert(leaf) == i

        assert tree.layers == MerkleTree(leaves, levels=small_levels).layers
        assert tree.to_string() == MerkleTree(leaves, levels=small_levels).to_string()

    def test_insert_then_update_matches_construction(self):
        """Inserting 42, 69, 420 and then setting index 0 to 216 commits [216, 69, 420]."""
        tree = MerkleTree(zero_label="allowed", levels=20)
        for leaf in (42, 69, 420):
            tree.insert(leaf)
        tree.update(0, 216)

        assert tree.root == MerkleTree([216, 69, 420], zero_label="allowed", levels=20).root
        assert tree.leaves == [216, 69, 420]

    def test_update_changes_root(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        before = tree.root
        tree.update(2, 4)

        assert tree.root != before
        assert tree.root == MerkleTree([1, 2, 4], levels=3).root

    def test_update_same_value_is_noop(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        before = tree.layers
        tree.update(1, 2)

        assert tree.layers == before

    def test_insert_up_to_capacity(self):
        tree = MerkleTree(make_leaves(3), levels=2)
        tree.insert(99)

        assert tree.length == 4
        assert tree.root == hash_pair(
            hash_pair(tree.leaves[0], tree.leaves[1]),
            hash_pair(tree.leaves[2], 99),
        )
        with pytest.raises(CapacityExceededException):
            tree.insert(100)

    def test_update_out_of_bounds(self):
        tree = MerkleTree([1, 2], levels=2)

        with pytest.raises(IndexOutOfBoundsException):
            tree.update(2, 5)
        with pytest.raises(IndexOutOfBoundsException):
            tree.update(-1, 5)

    def test_update_rejects_non_int_index(self):
        tree = MerkleTree([1, 2], levels=2)

        with pytest.raises(InvalidInputException):
            tree.update("0", 5)

    def test_accessors_return_copies(self):
        tree = MerkleTree([1, 2], levels=2)
        tree.leaves.append(3)
        tree.layers[0].append(3)

        assert tree.length == 2


class TestFullEmpty:
    """Tests for MerkleTree.full_empty()."""

    @pytest.mark.parametrize("length", [0, 1, 2, 5, 8, 13])
    def test_matches_explicit_construction(self, length):
        fast = MerkleTree.full_empty(length, zero=ALLOWED, levels=4)
        slow = MerkleTree([ALLOWED] * length, zero=ALLOWED, levels=4)

        assert fast.layers == slow.layers
        assert fast.root == slow.root

    @pytest.mark.parametrize("length", [256, 257])
    def test_matches_explicit_construction_at_power_of_two(self, length):
        fast = MerkleTree.full_empty(length, zero=0, levels=10)
        slow = MerkleTree([0] * length, zero=0, levels=10)

        assert fast.to_string() == slow.to_string()

    def test_layer_shape(self):
        tree = MerkleTree.full_empty(5, levels=4)
        zv = tree.zero_values

        assert tree.layers[0] == [zv[0]] * 5
        assert tree.layers[1] == [zv[1]] * 3
        assert tree.layers[2] == [zv[2]] * 2
        assert tree.layers[3] == [zv[3]]
        assert tree.layers[4] == [zv[4]]

    def test_root_of_any_length_is_empty_root(self):
        tree = MerkleTree.full_empty(7, levels=4)

        assert tree.root == tree.zero_values[4]

    def test_mutation_after_full_empty(self):
        tree = MerkleTree.full_empty(6, zero=0, levels=4)
        tree.update(3, 1)
        tree.insert(2)

        assert tree.root == MerkleTree([0, 0, 0, 1, 0, 0, 2], zero=0, levels=4).root

    def test_rejects_capacity(self):
        with pytest.raises(CapacityExceededException):
            MerkleTree.full_empty(16, levels=4)

    def test_rejects_negative_length(self):
        with pytest.raises(InvalidInputException):
            MerkleTree.full_empty(-1, levels=4)

    def test_rejects_non_int_length(self):
        with pytest.raises(InvalidInputException):
            MerkleTree.full_empty(2.0, levels=4)


class TestProofs:
    """Tests for generate_proof() / verify_proof()."""

    def test_every_leaf_verifies(self, small_levels):
        tree = MerkleTree(make_leaves(7), levels=small_levels)

        for i in range(tree.length):
            proof = tree.generate_proof(i)
            assert proof.path == i
            assert proof.leaf == tree.leaves[i]
            assert len(proof.siblings) == small_levels
            assert tree.verify_proof(proof)
            assert verify_merkle_proof(proof)

    def test_tail_sibling_is_zero_value(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        proof = tree.generate_proof(2)

        assert proof.siblings[0] == tree.zero_values[0]
        assert proof.siblings[1] == hash_pair(1, 2)
        assert proof.siblings[2] == tree.zero_values[2]

    def test_single_leaf_proof(self):
        tree = MerkleTree([5], levels=3)
        proof = tree.generate_proof(0)

        assert proof.siblings == tuple(tree.zero_values[:3])
        assert tree.verify_proof(proof)

    def test_proof_goes_stale_after_update(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        proof = tree.generate_proof(0)
        tree.update(1, 9)

        assert not tree.verify_proof(proof)
        assert verify_merkle_proof(proof)
        assert tree.verify_proof(tree.generate_proof(0))

    def test_tampered_leaf_fails(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        proof = tree.generate_proof(1)
        forged = MerkleProof(leaf=3, root=proof.root, path=proof.path, siblings=proof.siblings)

        assert not tree.verify_proof(forged)

    def test_wrong_sibling_count_fails(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        proof = tree.generate_proof(1)
        truncated = MerkleProof(leaf=proof.leaf, root=proof.root, path=proof.path, siblings=proof.siblings[:2])

        assert not tree.verify_proof(truncated)

    def test_empty_tree_has_no_proofs(self):
        with pytest.raises(IndexOutOfBoundsException):
            MerkleTree(levels=3).generate_proof(0)

    def test_out_of_range_index(self):
        tree = MerkleTree([1, 2], levels=3)

        with pytest.raises(IndexOutOfBoundsException):
            tree.generate_proof(2)

    def test_negative_path_rejected(self):
        with pytest.raises(InvalidInputException):
            MerkleProof(leaf=1, root=1, path=-1, siblings=())

    def test_proof_dict_round_trip(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        proof = tree.generate_proof(2)
        restored = MerkleProof.from_dict(proof.to_dict())

        assert restored == proof
        assert proof.to_dict()["leaf"] == to_hex32(3)

    def test_siblings_are_immutable(self):
        """A proof cannot be altered through its siblings."""
        tree = MerkleTree([1, 2, 3], levels=3)
        proof = tree.generate_proof(0)

        assert isinstance(proof.siblings, tuple)
        with pytest.raises((AttributeError, TypeError)):
            proof.siblings.append(0)
        with pytest.raises(FrozenInstanceError):
            proof.siblings = ()
        assert hash(proof) == hash(tree.generate_proof(0))

    def test_list_siblings_stored_as_tuple(self):
        proof = MerkleProof(leaf=1, root=2, path=0, siblings=[3, 4])

        assert proof.siblings == (3, 4)

    def test_verify_from_several_threads(self, small_levels):
        """Concurrent verification agrees with serial verification."""
        tree = MerkleTree(make_leaves(5), levels=small_levels)
        proofs = [tree.generate_proof(i) for i in range(tree.length)]
        forged = MerkleProof(leaf=0, root=tree.root, path=1, siblings=proofs[1].siblings)

        def worker(_):
            outcomes = []
            for _ in range(10):
                outcomes.extend(tree.verify_proof(p) for p in proofs)
                outcomes.append(not tree.verify_proof(forged))
            return outcomes

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(worker, range(6)))

        assert all(all(batch) for batch in results)


class TestSerialization:
    """Tests for to_json() / from_json()."""

    def test_snapshot_shape(self):
        tree = MerkleTree([1, 2, 3], zero=0, levels=2)
        snapshot = tree.to_json()

        assert isinstance(snapshot, MerkleTreeJSON)
        assert snapshot.zero == to_hex32(0)
        assert len(snapshot.layers) == 3
        assert snapshot.layers[0] == [to_hex32(1), to_hex32(2), to_hex32(3)]

    def test_round_trip(self):
        tree = MerkleTree(make_leaves(6), levels=4)
        restored = MerkleTree.from_json(tree.to_json())

        assert restored.levels == 4
        assert restored.root == tree.root
        assert restored.layers == tree.layers
        assert restored.zero_values == tree.zero_values

    def test_string_round_trip(self):
        tree = MerkleTree(make_leaves(3), levels=3)
        restored = MerkleTree.from_string(tree.to_string())

        assert restored.layers == tree.layers

    def test_restored_tree_is_mutable(self):
        tree = MerkleTree([1, 2, 3], levels=3)
        restored = MerkleTree.from_json(tree.to_json())
        restored.insert(4)
        tree.insert(4)

        assert restored.root == tree.root

    def test_restore_trusts_layers_by_default(self):
        snapshot = MerkleTree([1, 2], levels=2).to_json().model_dump()
        snapshot["layers"][1][0] = to_hex32(77)

        restored = MerkleTree.from_json(snapshot)

        assert restored.layers[1] == [77]

    def test_verified_restore_detects_tampering(self):
        snapshot = MerkleTree([1, 2], levels=2).to_json().model_dump()
        snapshot["layers"][1][0] = to_hex32(77)

        with pytest.raises(SnapshotIntegrityException) as exc_info:
            MerkleTree.from_json(snapshot, verify=True)

        assert exc_info.value.details["level"] == 1

    def test_verified_restore_accepts_consistent_snapshot(self):
        tree = MerkleTree(make_leaves(5), levels=3)

        assert MerkleTree.from_json(tree.to_json(), verify=True).root == tree.root

    def test_malformed_snapshot(self):
        with pytest.raises(InvalidInputException):
            MerkleTree.from_json({"zero": "0x00", "layers": []})
