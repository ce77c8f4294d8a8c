"""
Cell shuffling for Latin Hypercube blocks.

A shuffle is a (D, N) integer matrix whose rows are independent uniform
permutations of 0..N-1: row d assigns each of the N samples of a block to one
of the N equal-probability strata of dimension d, each stratum exactly once.
"""

from __future__ import annotations

import numpy as np

from lhs.errors import InvalidConfigurationError


class CellShuffler:
    """
    Draws a fresh stratum assignment for every block.

    The shuffler holds no random state of its own; every call draws from the
    generator it is given, so blocks are independent of each other.
    """

    def __init__(self, dimension: int) -> None:
        dimension = int(dimension)
        if dimension < 1:
            raise InvalidConfigurationError(f"dimension must be >= 1, got {dimension}")
        self.dimension = dimension

    def shuffle(self, dimension: int, block_size: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw one (dimension, block_size) shuffle matrix.

        Args:
            dimension: Number of rows; must match the bound marginal dimension.
            block_size: Number of strata per dimension (samples per block).
            rng: Random source of the run.

        Returns:
            Integer matrix, each row a permutation of range(block_size).

        Raises:
            InvalidConfigurationError: On a dimension mismatch or block_size < 1.
        """
        dimension = int(dimension)
        block_size = int(block_size)
        if dimension != self.dimension:
            raise InvalidConfigurationError(
                f"shuffle dimension {dimension} does not match marginal dimension "
                f"{self.dimension}"
            )
        if block_size < 1:
            raise InvalidConfigurationError(f"block_size must be >= 1, got {block_size}")

        out = np.empty((dimension, block_size), dtype=np.int64)
        for d in range(dimension):
            # Generator.permutation is a Fisher-Yates shuffle.
            out[d] = rng.permutation(block_size)
        return out


def is_valid_shuffle(shuffle: np.ndarray, block_size: int) -> bool:
    """Return True iff every row of `shuffle` is a permutation of range(block_size)."""
    shuffle = np.asarray(shuffle)
    if shuffle.ndim != 2 or shuffle.shape[1] != int(block_size):
        return False
    expected = np.arange(int(block_size))
    return all(np.array_equal(np.sort(row), expected) for row in shuffle)
