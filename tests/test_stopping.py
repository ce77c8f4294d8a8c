"""
Unit tests for stopping rules.
"""

import pytest

from lhs.errors import InvalidConfigurationError
from lhs.stopping import StoppingConfig


class TestStoppingConfig:
    """Test suite for StoppingConfig."""

    def test_requires_a_bound(self) -> None:
        """A config that could never stop is rejected."""
        with pytest.raises(InvalidConfigurationError):
            StoppingConfig()
        StoppingConfig(max_elapsed_time=1.0)
        StoppingConfig(max_coefficient_of_variation=0.1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_outer_iterations": 0},
            {"max_outer_iterations": 2.5},
            {"max_coefficient_of_variation": 0.0},
            {"max_standard_deviation": -1.0},
            {"max_elapsed_time": 0.0},
            {"max_outer_iterations": 10, "min_sample_count": 1},
        ],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(InvalidConfigurationError):
            StoppingConfig(**kwargs)

    def test_min_sample_count_beyond_budget(self) -> None:
        """min_sample_count unreachable within the block budget is contradictory."""
        cfg = StoppingConfig(max_outer_iterations=2, max_coefficient_of_variation=0.1, min_sample_count=500)
        cfg.validate_for_block_size(250)
        with pytest.raises(InvalidConfigurationError):
            cfg.validate_for_block_size(100)
        # Without a precision target the minimum never matters.
        StoppingConfig(max_outer_iterations=2, min_sample_count=500).validate_for_block_size(10)

    def test_precision_met(self) -> None:
        cfg = StoppingConfig(max_coefficient_of_variation=0.1, max_standard_deviation=0.01, min_sample_count=100)
        assert not cfg.precision_met(0.05, 1.0, 99)
        assert cfg.precision_met(0.05, 1.0, 100)
        assert cfg.precision_met(0.5, 0.005, 100)
        # No failure observed yet: zero variance must not count as precision.
        assert not cfg.precision_met(float("inf"), 0.0, 1000)
        assert not cfg.precision_met(float("inf"), 0.02, 1000)

    def test_budget_exhausted(self) -> None:
        cfg = StoppingConfig(max_outer_iterations=5, max_elapsed_time=10.0)
        assert not cfg.budget_exhausted(4, 9.9)
        assert cfg.budget_exhausted(5, 0.0)
        assert cfg.budget_exhausted(1, 10.0)

    def test_from_mapping_accepts_both_spellings(self) -> None:
        cfg = StoppingConfig.from_mapping(
            {"maxOuterIterations": 1000, "maxCoefficientOfVariation": 0.1, "max_elapsed_time": 60}
        )
        assert cfg.max_outer_iterations == 1000
        assert cfg.max_coefficient_of_variation == 0.1
        assert cfg.max_elapsed_time == 60.0
        assert cfg.to_dict()["min_sample_count"] == 2

    def test_from_mapping_rejects_unknown_and_duplicate_keys(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            StoppingConfig.from_mapping({"maxIterations": 3})
        with pytest.raises(InvalidConfigurationError):
            StoppingConfig.from_mapping({"maxOuterIterations": 3, "max_outer_iterations": 4})
