"""
Merkle tree over the Expand client's per-round commitments.
Uses SHA-256 with domain separation for leaf/node hashing.
"""

import hashlib
from typing import Dict, List, Sequence, Tuple

from .config import DOMAIN_SEPARATORS, MERKLE_HASH_BYTES
from .snark.constraint_system import ConstraintSystem
from .snark.gadgets import Boolean, UInt8, native_bytes, select

Path = List[Tuple[bytes, bool]]


def hash_leaf(leaf_data: bytes) -> bytes:
    """
    Hash a Merkle tree leaf with domain separation.

    Args:
        leaf_data: Leaf content (a serialized commitment)

    Returns:
        32-byte SHA-256 hash
    """
    return hashlib.sha256(DOMAIN_SEPARATORS["merkle_leaf"] + leaf_data).digest()


def hash_node(left: bytes, right: bytes) -> bytes:
    """
    Hash two Merkle node hashes.

    Note:
        Uses fixed left||right ordering (no sorting).
    """
    return hashlib.sha256(DOMAIN_SEPARATORS["merkle_node"] + left + right).digest()


def build_tree(leaves: List[bytes]) -> Tuple[bytes, Dict[int, Path]]:
    """
    Build a Merkle tree and generate authentication paths.

    Args:
        leaves: List of leaf hashes (each 32 bytes)

    Returns:
        (root_hash, auth_paths)
        - root_hash: 32-byte Merkle root
        - auth_paths: Dict mapping leaf_index -> [(sibling, is_left), ...]

    Works for any leaf count. ClientMerkleTree only passes powers of
    two, so the duplicate-last-node case arises only for direct callers.

    Algorithm:
        - If odd number of leaves at any level, duplicate the last node
        - Build tree bottom-up
        - Track sibling positions for authentication paths
    """
    if not leaves:
        raise ValueError("Cannot build tree with zero leaves")

    auth_paths: Dict[int, Path] = {i: [] for i in range(len(leaves))}
    current_level: List[Tuple[bytes, List[int]]] = [
        (leaf, [i]) for i, leaf in enumerate(leaves)
    ]

    while len(current_level) > 1:
        next_level: List[Tuple[bytes, List[int]]] = []

        for i in range(0, len(current_level), 2):
            left_hash, left_indices = current_level[i]
            if i + 1 < len(current_level):
                right_hash, right_indices = current_level[i + 1]
            else:
                right_hash, right_indices = left_hash, []

            # sibling on the right for left children, on the left for right children
            for leaf_idx in left_indices:
                auth_paths[leaf_idx].append((right_hash, False))
            for leaf_idx in right_indices:
                auth_paths[leaf_idx].append((left_hash, True))

            next_level.append((hash_node(left_hash, right_hash), left_indices + right_indices))

        current_level = next_level

    return current_level[0][0], auth_paths


def verify_path(leaf_hash: bytes, path: Path, root: bytes) -> bool:
    """Verify a Merkle authentication path."""
    current = leaf_hash
    for sibling, is_left in path:
        if is_left:
            current = hash_node(sibling, current)
        else:
            current = hash_node(current, sibling)
    return current == root


class ClientMerkleTree:
    """
    Complete binary tree of 2^(depth - 1) commitment leaves.

    For leaf i, the k-th path entry has is_left equal to bit k of i.

    Example:
        >>> tree = ClientMerkleTree([c0, c1, c2, c3])
        >>> verify_path(hash_leaf(c2), tree.path(2), tree.root())
        True
    """

    def __init__(self, leaves: Sequence[bytes]):
        count = len(leaves)
        if count == 0 or count & (count - 1):
            raise ValueError(f"leaf count must be a power of two, got {count}")
        self.leaves = [bytes(leaf) for leaf in leaves]
        self._root, self._paths = build_tree([hash_leaf(leaf) for leaf in self.leaves])

    @property
    def num_leaves(self) -> int:
        return len(self.leaves)

    @property
    def depth(self) -> int:
        return self.num_leaves.bit_length()

    def root(self) -> bytes:
        return self._root

    def path(self, index: int) -> Path:
        if not 0 <= index < self.num_leaves:
            raise IndexError(f"leaf index {index} out of range")
        return list(self._paths[index])

    def siblings(self, index: int) -> List[bytes]:
        return [sibling for sibling, _ in self.path(index)]


# ============================================================================
# IN-CIRCUIT PATH CHECK
# ============================================================================


def _select_bytes(
    cs: ConstraintSystem, cond: Boolean, a: Sequence[UInt8], b: Sequence[UInt8]
) -> List:
    return [select(cs, cond, x.lc, y.lc) for x, y in zip(a, b)]


def root_gadget(
    cs: ConstraintSystem,
    leaf_data: Sequence[UInt8],
    siblings: Sequence[Sequence[UInt8]],
    direction_bits: Sequence[Boolean],
) -> List[UInt8]:
    """
    Recompute the root from a leaf and its siblings.

    direction_bits[k] is 1 when the running node is a right child at level
    k (the sibling sits on the left).
    """
    if len(siblings) != len(direction_bits):
        raise ValueError("one direction bit per sibling is required")

    def node(data: bytes) -> bytes:
        if len(data) != 2 * MERKLE_HASH_BYTES:
            raise ValueError("node input must be two hashes")
        return hash_node(data[:MERKLE_HASH_BYTES], data[MERKLE_HASH_BYTES:])

    current = native_bytes(cs, "merkle_leaf", hash_leaf, leaf_data, MERKLE_HASH_BYTES)
    for sibling, is_right in zip(siblings, direction_bits):
        left = _select_bytes(cs, is_right, sibling, current)
        right = _select_bytes(cs, is_right, current, sibling)
        current = native_bytes(cs, "merkle_node", node, left + right, MERKLE_HASH_BYTES)
    return current
