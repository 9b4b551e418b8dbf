"""Merkle tree over byte-string leaves.

Trees with a leaf count that is not a power of two are padded with empty
leaves: a tree over three leaves equals one over four whose last leaf is
``b""``. Labels separate leaf hashes from inner-node hashes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from alpenglow.hashing import hash_all

LEAF_LABEL = b"\x00ALPENGLOW-MERKLE-TREE"
LEFT_LABEL = b"\x01ALPENGLOW-MERKLE-TREE"
RIGHT_LABEL = b"\x02ALPENGLOW-MERKLE-TREE"


def hash_leaf(data: bytes) -> bytes:
    """Hash leaf data together with the leaf label."""
    return hash_all((LEAF_LABEL, data))


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Hash two child hashes into their parent node."""
    return hash_all((LEFT_LABEL, left, RIGHT_LABEL, right))


class MerkleTree:
    """A complete binary Merkle tree stored level by level, leaves first."""

    def __init__(self, leaves: Iterable[bytes]) -> None:
        nodes = [hash_leaf(bytes(leaf)) for leaf in leaves]

        width = 1
        while width < len(nodes):
            width *= 2
        nodes.extend([hash_leaf(b"")] * (width - len(nodes)))

        height = 0
        level = nodes
        while len(level) > 1:
            level = [hash_pair(left, right) for left, right in zip(level[0::2], level[1::2])]
            nodes.extend(level)
            height += 1

        self._nodes = nodes
        self.height = height

    def __len__(self) -> int:
        """Number of nodes in the tree, padding leaves included."""
        return len(self._nodes)

    def root(self) -> bytes:
        """Return the root hash."""
        return self._nodes[-1]

    def create_proof(self, index: int) -> list[bytes]:
        """Return the Merkle path from leaf ``index`` up to the root."""
        width = 1 << self.height
        if not 0 <= index < width:
            raise IndexError(f"leaf index {index} out of range for {width} leaves")
        proof = []
        start = 0
        position = index
        while width > 1:
            proof.append(self._nodes[start + (position ^ 1)])
            start += width
            width //= 2
            position //= 2
        return proof


def check_hash_proof(
    leaf_hash: bytes, index: int, root: bytes, proof: Sequence[bytes]
) -> bool:
    """Return True iff ``proof`` leads from ``leaf_hash`` at ``index`` to ``root``."""
    node = leaf_hash
    position = index
    for sibling in proof:
        node = hash_pair(node, sibling) if position % 2 == 0 else hash_pair(sibling, node)
        position //= 2
    return node == root


def check_proof(data: bytes, index: int, root: bytes, proof: Sequence[bytes]) -> bool:
    """Return True iff ``proof`` is a valid path for leaf ``data`` at ``index``."""
    return check_hash_proof(hash_leaf(data), index, root, proof)