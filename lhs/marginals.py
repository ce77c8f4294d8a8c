"""
Independent marginal distributions and their inverse-CDF transforms.

A `MarginalSet` is the ordered list of one-dimensional input distributions of
a run. Any object exposing `ppf(p)` (every frozen `scipy.stats` distribution),
an object exposing `quantile(p)`, or a plain callable `p -> x` is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

import numpy as np

from lhs.errors import InvalidConfigurationError, NumericalInstabilityError

QuantileFunction = Callable[[np.ndarray], np.ndarray]


def quantile_function(distribution: Any) -> QuantileFunction:
    """
    Resolve the inverse-CDF operation of a distribution-like object.

    Raises:
        InvalidConfigurationError: If the object has no usable quantile.
    """
    ppf = getattr(distribution, "ppf", None)
    if callable(ppf):
        return ppf
    quantile = getattr(distribution, "quantile", None)
    if callable(quantile):
        return quantile
    if callable(distribution):
        return distribution
    raise InvalidConfigurationError(
        f"{type(distribution).__name__} exposes no quantile function "
        "(expected .ppf, .quantile or a callable)"
    )


@dataclass(frozen=True)
class MarginalSet:
    """
    Ordered, immutable collection of independent marginal distributions.

    Safe to share read-only between concurrent runs.
    """

    distributions: Tuple[Any, ...]
    names: Tuple[str, ...]

    def __init__(
        self,
        distributions: Sequence[Any],
        names: Optional[Sequence[str]] = None,
    ) -> None:
        dists = tuple(distributions)
        if not dists:
            raise InvalidConfigurationError("MarginalSet needs at least one distribution")
        # Resolved eagerly so a bad marginal fails at construction.
        quantiles = tuple(quantile_function(d) for d in dists)
        if names is None:
            labels = tuple(f"X{i}" for i in range(len(dists)))
        else:
            labels = tuple(str(n) for n in names)
        if len(labels) != len(dists):
            raise InvalidConfigurationError("names length must match distributions length")
        if len(set(labels)) != len(labels):
            raise InvalidConfigurationError("marginal names must be unique")
        object.__setattr__(self, "distributions", dists)
        object.__setattr__(self, "names", labels)
        object.__setattr__(self, "_quantiles", quantiles)

    @property
    def dimension(self) -> int:
        return len(self.distributions)

    def __len__(self) -> int:
        return self.dimension

    def __getitem__(self, d: int) -> Any:
        return self.distributions[d]

    def quantile(self, d: int, p: np.ndarray) -> np.ndarray:
        """
        Map probabilities to the physical space of dimension `d`.

        No finiteness check is done here; see `transform`.
        """
        if d < 0 or d >= self.dimension:
            raise InvalidConfigurationError(
                f"dimension index {d} out of range for {self.dimension} marginals"
            )
        p = np.asarray(p, dtype=float)
        values = np.asarray(self._quantiles[d](p), dtype=float)
        if values.size != p.size:
            raise NumericalInstabilityError(
                f"marginal {self.names[d]!r} returned {values.size} quantiles for {p.size} "
                f"probabilities (dimension {d}); degenerate distribution",
                dimension=d,
            )
        return values.reshape(p.shape)

    def transform(self, u: np.ndarray, strata: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Transform an (N, D) matrix of probabilities column by column.

        Args:
            u: Probabilities in (0, 1), shape (N, D).
            strata: Optional (D, N) stratum indices, reported on failure.

        Returns:
            Physical-space sample of shape (N, D).

        Raises:
            NumericalInstabilityError: If any quantile is NaN or infinite.
        """
        u = np.asarray(u, dtype=float)
        if u.ndim != 2 or u.shape[1] != self.dimension:
            raise InvalidConfigurationError(
                f"expected a (N, {self.dimension}) probability matrix, got shape {u.shape}"
            )
        out = np.empty_like(u)
        for d in range(self.dimension):
            column = self.quantile(d, u[:, d])
            bad = np.flatnonzero(~np.isfinite(column))
            if bad.size:
                i = int(bad[0])
                stratum = int(strata[d, i]) if strata is not None else None
                raise NumericalInstabilityError(
                    f"non-finite quantile {column[i]!r} for marginal {self.names[d]!r} "
                    f"(dimension {d}, stratum {stratum}) at p={u[i, d]!r}",
                    dimension=d,
                    stratum=stratum,
                    probability=float(u[i, d]),
                )
            out[:, d] = column
        return out
