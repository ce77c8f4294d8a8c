"""
Running statistics of the failure indicator and the estimates derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from math import inf, sqrt
from typing import Dict, List, Mapping, Tuple

import numpy as np
from scipy.stats import norm

from lhs.errors import InvalidConfigurationError, NumericalInstabilityError


@dataclass
class RunningStatistics:
    """
    Cumulative count, sum and sum of squares of indicator values.

    Owned by exactly one simulation run; never shared.
    """

    count: int = 0
    total: float = 0.0
    total_sq: float = 0.0

    def update(self, indicators: np.ndarray) -> None:
        """
        Fold one fully evaluated block into the statistics.

        Raises:
            NumericalInstabilityError: If an indicator is not finite. Nothing
                is counted in that case.
        """
        values = np.asarray(indicators, dtype=float).ravel()
        if not np.all(np.isfinite(values)):
            raise NumericalInstabilityError("event model returned non-finite indicator values")
        self.count += int(values.size)
        self.total += float(values.sum())
        self.total_sq += float(np.dot(values, values))

    def copy(self) -> "RunningStatistics":
        return RunningStatistics(count=self.count, total=self.total, total_sq=self.total_sq)

    def to_dict(self) -> Dict[str, float]:
        return {"count": int(self.count), "total": float(self.total), "total_sq": float(self.total_sq)}

    @staticmethod
    def from_dict(data: Mapping[str, float]) -> "RunningStatistics":
        count = int(data["count"])
        if count < 0:
            raise InvalidConfigurationError("count must be non-negative")
        return RunningStatistics(
            count=count, total=float(data["total"]), total_sq=float(data["total_sq"])
        )


def z_value(level: float) -> float:
    """Two-sided standard normal quantile for a confidence level in (0, 1)."""
    level = float(level)
    if not (0.0 < level < 1.0):
        raise ValueError(f"level must be in (0, 1), got {level}")
    return float(norm.ppf(0.5 + 0.5 * level))


class ResultAccumulator:
    """
    Probability estimate, its standard error and coefficient of variation.

    The estimate is the sample mean of the indicators. Its standard deviation
    is the square root of the unbiased sample variance divided by the count.
    With fewer than two samples the standard deviation is infinite.
    """

    def __init__(self, statistics: RunningStatistics) -> None:
        self.statistics = statistics

    @property
    def sample_count(self) -> int:
        return int(self.statistics.count)

    @property
    def probability(self) -> float:
        n = self.statistics.count
        if n == 0:
            return 0.0
        return float(self.statistics.total / n)

    @property
    def variance(self) -> float:
        """Variance of the probability estimate."""
        n = self.statistics.count
        if n < 2:
            return inf
        s = self.statistics
        sample_variance = (s.total_sq - s.total * s.total / n) / (n - 1)
        # Rounding may push an all-equal sample slightly negative.
        return max(float(sample_variance), 0.0) / n

    @property
    def standard_deviation(self) -> float:
        return sqrt(self.variance)

    @property
    def coefficient_of_variation(self) -> float:
        """Standard deviation over probability; infinite while the probability is 0."""
        p = self.probability
        if p <= 0.0:
            return inf
        return self.standard_deviation / p

    def estimate(self) -> Tuple[float, float, int]:
        """Return `(probability, standard_deviation, sample_count)`."""
        return self.probability, self.standard_deviation, self.sample_count

    def confidence_interval(self, level: float = 0.95) -> Tuple[float, float]:
        """Normal-approximation interval `p ± z * sd`, clipped to [0, 1]."""
        p = self.probability
        half = z_value(level) * self.standard_deviation
        return max(0.0, p - half), min(1.0, p + half)


@dataclass
class ConvergenceHistory:
    """
    Running probability estimate and its variance after every block.
    """

    probabilities: List[float] = field(default_factory=list)
    variances: List[float] = field(default_factory=list)
    sample_counts: List[int] = field(default_factory=list)

    def record(self, accumulator: ResultAccumulator) -> None:
        self.probabilities.append(accumulator.probability)
        self.variances.append(accumulator.variance)
        self.sample_counts.append(accumulator.sample_count)

    def __len__(self) -> int:
        return len(self.probabilities)

    def standard_deviations(self) -> np.ndarray:
        return np.sqrt(np.asarray(self.variances, dtype=float))

    def confidence_band(self, level: float = 0.95) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper confidence bounds along the history."""
        p = np.asarray(self.probabilities, dtype=float)
        half = z_value(level) * self.standard_deviations()
        return np.clip(p - half, 0.0, 1.0), np.clip(p + half, 0.0, 1.0)

    def copy(self) -> "ConvergenceHistory":
        return ConvergenceHistory(
            probabilities=list(self.probabilities),
            variances=list(self.variances),
            sample_counts=list(self.sample_counts),
        )
