"""
Latin Hypercube block sampling.

`DesignSampler` turns a shuffle matrix into a physical-space block: sample i
of dimension d is placed in stratum s = shuffle[d, i], at probability
p = (s + u) / N with u a uniform jitter in [0, 1) (or 0.5 for the
midpoint variant), then mapped through the marginal quantile function.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np

from lhs.errors import InvalidConfigurationError
from lhs.marginals import MarginalSet
from lhs.shuffle import CellShuffler

JITTER_POLICIES = ("uniform", "center")

_P_MIN = float(np.nextafter(0.0, 1.0))
_P_MAX = float(np.nextafter(1.0, 0.0))


class BlockSampler(Protocol):
    """
    Capability injected into the simulation loop: produce one block per call.
    """

    @property
    def dimension(self) -> int: ...

    def next_block(
        self, block_size: int, rng: np.random.Generator
    ) -> Tuple[np.ndarray, Optional[np.ndarray]]:
        """Return `(block, shuffle)`; `shuffle` may be None for unstratified designs."""
        ...


@dataclass(frozen=True)
class DesignSampler:
    """
    Latin Hypercube design over a `MarginalSet`.

    Attributes:
        marginals: Independent input distributions, one per dimension.
        jitter: "uniform" (random position inside each stratum, the default)
            or "center" (stratum midpoint).
    """

    marginals: MarginalSet
    jitter: str = "uniform"

    def __post_init__(self) -> None:
        if not isinstance(self.marginals, MarginalSet):
            raise InvalidConfigurationError("marginals must be a MarginalSet")
        jitter = str(self.jitter).strip().lower()
        if jitter not in JITTER_POLICIES:
            raise InvalidConfigurationError(
                f"Unknown jitter policy: {self.jitter!r} (expected one of {JITTER_POLICIES})"
            )
        object.__setattr__(self, "jitter", jitter)
        object.__setattr__(self, "_shuffler", CellShuffler(self.marginals.dimension))

    @property
    def dimension(self) -> int:
        return self.marginals.dimension

    @property
    def shuffler(self) -> CellShuffler:
        return self._shuffler

    def stratified_probabilities(
        self, shuffle: np.ndarray, rng: Optional[np.random.Generator] = None
    ) -> np.ndarray:
        """
        Place every sample inside its stratum in probability space.

        Returns:
            (N, D) matrix of probabilities; column d visits each interval
            [k/N, (k+1)/N) exactly once.
        """
        shuffle = np.asarray(shuffle)
        if shuffle.ndim != 2 or shuffle.shape[0] != self.dimension:
            raise InvalidConfigurationError(
                f"shuffle must have shape ({self.dimension}, N), got {shuffle.shape}"
            )
        block_size = int(shuffle.shape[1])
        if block_size < 1:
            raise InvalidConfigurationError("shuffle has no columns")

        if self.jitter == "uniform":
            if rng is None:
                raise InvalidConfigurationError("uniform jitter requires a random generator")
            offsets = rng.random((block_size, self.dimension))
        else:
            offsets = np.full((block_size, self.dimension), 0.5)
        u = (shuffle.T.astype(float) + offsets) / float(block_size)
        # Keep p strictly inside (0, 1) so unbounded supports stay finite.
        return np.clip(u, _P_MIN, _P_MAX)

    def sample(self, shuffle: np.ndarray, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """
        Build the (N, D) physical-space block for a given shuffle.

        Raises:
            NumericalInstabilityError: If a quantile is not finite.
        """
        u = self.stratified_probabilities(shuffle, rng)
        return self.marginals.transform(u, strata=np.asarray(shuffle))

    def next_block(
        self, block_size: int, rng: np.random.Generator
    ) -> Tuple[np.ndarray, np.ndarray]:
        shuffle = self.shuffler.shuffle(self.dimension, block_size, rng)
        return self.sample(shuffle, rng), shuffle
