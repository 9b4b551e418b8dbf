"""Stake-weighted shuffling backed by a 16-ary tree of subtree sums."""

from __future__ import annotations

import random
from collections.abc import Iterable, Iterator

# Node i has children (i << BIT_SHIFT) + 1 ..= (i << BIT_SHIFT) + FANOUT;
# a node's parent is (i - 1) >> BIT_SHIFT, and its subtree weight is stored
# at offset (i - 1) & BIT_MASK of that parent.
BIT_SHIFT = 4
FANOUT = 1 << BIT_SHIFT
BIT_MASK = FANOUT - 1

_MAX_STAKE = 2**64 - 1


def _num_nodes_and_tree_size(count: int) -> tuple[int, int]:
    size = 0
    nodes = 1
    while nodes * FANOUT < count:
        size += nodes
        nodes *= FANOUT
    return size + nodes, size + -(-count // FANOUT)


class WeightedShuffle:
    """Shuffles indices so heavier weights tend to come first.

    Every index in ``range(len(weights))`` is produced exactly once. Indices
    whose weight is zero (or negative, or would overflow the 64-bit total)
    come last, in uniformly random order.
    """

    def __init__(self, weights: Iterable[int]) -> None:
        weights = list(weights)
        self._num_nodes, size = _num_nodes_and_tree_size(len(weights))
        self._tree = [[0] * FANOUT for _ in range(size)]
        self._weight = 0
        self._zeros: list[int] = []
        for k, weight in enumerate(weights):
            if weight <= 0 or self._weight + weight > _MAX_STAKE:
                self._zeros.append(k)
                continue
            self._weight += weight
            self._adjust(k, weight)

    def _adjust(self, k: int, delta: int) -> None:
        index = self._num_nodes + k
        while index != 0:
            offset = (index - 1) & BIT_MASK
            index = (index - 1) >> BIT_SHIFT
            self._tree[index][offset] += delta

    def _search(self, val: int) -> tuple[int, int]:
        """Return the smallest index whose prefix weight sum exceeds ``val``."""
        index = 0
        while True:
            for offset, node in enumerate(self._tree[index]):
                if val < node:
                    break
                val -= node
            index = (index << BIT_SHIFT) + offset + 1
            if len(self._tree) <= index:
                return index - self._num_nodes, node

    def shuffle(self, rng: random.Random) -> Iterator[int]:
        """Yield the remaining indices in weighted random order.

        The shuffle consumes this instance's state as it goes.
        """
        while self._weight > 0:
            sample = rng.randrange(self._weight)
            index, weight = self._search(sample)
            self._weight -= weight
            self._adjust(index, -weight)
            yield index
        while self._zeros:
            i = rng.randrange(len(self._zeros))
            self._zeros[i], self._zeros[-1] = self._zeros[-1], self._zeros[i]
            yield self._zeros.pop()