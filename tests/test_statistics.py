"""
Unit tests for running statistics and the probability estimate.
"""

from math import inf, sqrt

import numpy as np
import pytest

from lhs.errors import NumericalInstabilityError
from lhs.statistics import ConvergenceHistory, ResultAccumulator, RunningStatistics


class TestRunningStatistics:
    """Test suite for RunningStatistics."""

    def test_update_accumulates(self) -> None:
        stats = RunningStatistics()
        stats.update(np.array([True, False, False, True]))
        stats.update(np.array([0.0, 1.0]))
        assert stats.count == 6
        assert stats.total == 3.0
        assert stats.total_sq == 3.0

    def test_weighted_indicators_keep_sum_of_squares(self) -> None:
        """Non-binary indicators are supported."""
        stats = RunningStatistics()
        stats.update(np.array([0.5, 2.0]))
        assert stats.total == 2.5
        assert stats.total_sq == 4.25

    def test_non_finite_block_is_not_counted(self) -> None:
        stats = RunningStatistics()
        stats.update(np.ones(3))
        with pytest.raises(NumericalInstabilityError):
            stats.update(np.array([1.0, np.nan]))
        assert stats.count == 3
        assert stats.total == 3.0


class TestResultAccumulator:
    """Test suite for ResultAccumulator."""

    def test_estimate(self) -> None:
        """Unbiased sample variance divided by the count."""
        stats = RunningStatistics()
        stats.update(np.array([1, 0, 0, 1]))
        acc = ResultAccumulator(stats)

        p, sd, n = acc.estimate()
        assert p == 0.5
        assert n == 4
        assert sd == pytest.approx(sqrt((1.0 / 3.0) / 4.0))
        assert acc.coefficient_of_variation == pytest.approx(sd / 0.5)

    def test_zero_probability_has_infinite_cov(self) -> None:
        stats = RunningStatistics()
        stats.update(np.zeros(50))
        acc = ResultAccumulator(stats)
        assert acc.probability == 0.0
        assert acc.standard_deviation == 0.0
        assert acc.coefficient_of_variation == inf

    def test_fewer_than_two_samples(self) -> None:
        acc = ResultAccumulator(RunningStatistics())
        assert acc.estimate() == (0.0, inf, 0)
        acc.statistics.update(np.array([1.0]))
        assert acc.standard_deviation == inf

    def test_constant_indicators_give_zero_variance(self) -> None:
        stats = RunningStatistics()
        stats.update(np.ones(1000))
        assert ResultAccumulator(stats).variance == 0.0

    def test_confidence_interval(self) -> None:
        """Normal interval around the estimate, clipped to [0, 1]."""
        stats = RunningStatistics()
        stats.update(np.array([1] * 20 + [0] * 80))
        acc = ResultAccumulator(stats)
        lower, upper = acc.confidence_interval(level=0.95)
        half = 1.959963984540054 * acc.standard_deviation
        assert lower == pytest.approx(0.2 - half)
        assert upper == pytest.approx(0.2 + half)

        stats = RunningStatistics()
        stats.update(np.array([1, 0, 0, 0]))
        lower, _ = ResultAccumulator(stats).confidence_interval(level=0.99)
        assert lower == 0.0

        with pytest.raises(ValueError):
            acc.confidence_interval(level=1.0)


def test_convergence_history_records_each_update() -> None:
    stats = RunningStatistics()
    acc = ResultAccumulator(stats)
    history = ConvergenceHistory()
    for block in ([0, 1, 0, 0], [0, 0, 0, 0]):
        stats.update(np.array(block))
        history.record(acc)

    assert len(history) == 2
    assert history.sample_counts == [4, 8]
    assert history.probabilities == [0.25, 0.125]
    lower, upper = history.confidence_band(0.95)
    assert np.all(lower <= np.asarray(history.probabilities))
    assert np.all(upper >= np.asarray(history.probabilities))
