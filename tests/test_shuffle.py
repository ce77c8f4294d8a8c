"""
Unit tests for Latin Hypercube cell shuffling.
"""

import numpy as np
import pytest

from lhs.errors import InvalidConfigurationError
from lhs.shuffle import CellShuffler, is_valid_shuffle


@pytest.mark.parametrize("dimension,block_size", [(1, 1), (1, 7), (3, 1), (4, 50), (10, 13)])
def test_every_row_is_a_permutation(dimension: int, block_size: int) -> None:
    """Each row covers 0..N-1 exactly once."""
    rng = np.random.default_rng(7)
    shuffler = CellShuffler(dimension)
    s = shuffler.shuffle(dimension, block_size, rng)
    assert s.shape == (dimension, block_size)
    assert np.issubdtype(s.dtype, np.integer)
    for row in s:
        assert sorted(row.tolist()) == list(range(block_size))
    assert is_valid_shuffle(s, block_size)


def test_successive_shuffles_differ() -> None:
    """A new assignment is drawn for every block."""
    rng = np.random.default_rng(0)
    shuffler = CellShuffler(3)
    first = shuffler.shuffle(3, 40, rng)
    second = shuffler.shuffle(3, 40, rng)
    assert not np.array_equal(first, second)


def test_same_seed_same_shuffle() -> None:
    a = CellShuffler(2).shuffle(2, 25, np.random.default_rng(11))
    b = CellShuffler(2).shuffle(2, 25, np.random.default_rng(11))
    assert np.array_equal(a, b)


def test_invalid_arguments() -> None:
    """Dimension mismatches and empty blocks are configuration errors."""
    rng = np.random.default_rng(0)
    with pytest.raises(InvalidConfigurationError):
        CellShuffler(0)
    shuffler = CellShuffler(2)
    with pytest.raises(InvalidConfigurationError):
        shuffler.shuffle(3, 10, rng)
    with pytest.raises(InvalidConfigurationError):
        shuffler.shuffle(2, 0, rng)


def test_is_valid_shuffle_detects_repeats() -> None:
    assert not is_valid_shuffle(np.array([[0, 0, 2]]), 3)
    assert not is_valid_shuffle(np.array([[0, 1]]), 3)
    assert is_valid_shuffle(np.array([[2, 0, 1], [1, 2, 0]]), 3)
