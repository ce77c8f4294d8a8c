"""
Stopping rules of the block-wise simulation loop.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from math import inf
from typing import Any, Dict, Mapping, Optional

from lhs.errors import InvalidConfigurationError

# Option names as they appear in run configuration files.
_CAMEL_CASE_KEYS = {
    "maxOuterIterations": "max_outer_iterations",
    "maxCoefficientOfVariation": "max_coefficient_of_variation",
    "maxStandardDeviation": "max_standard_deviation",
    "maxElapsedTime": "max_elapsed_time",
    "minSampleCount": "min_sample_count",
}


@dataclass(frozen=True)
class StoppingConfig:
    """
    Bounds on a simulation run. Any one triggered condition halts the loop.

    Attributes:
        max_outer_iterations: Cap on the number of blocks.
        max_coefficient_of_variation: Target relative precision of the estimate.
        max_standard_deviation: Target absolute precision of the estimate.
        max_elapsed_time: Wall-clock budget in seconds, checked between blocks.
        min_sample_count: Samples required before a precision target may
            declare convergence.
    """

    max_outer_iterations: Optional[int] = None
    max_coefficient_of_variation: Optional[float] = None
    max_standard_deviation: Optional[float] = None
    max_elapsed_time: Optional[float] = None
    min_sample_count: int = 2

    def __post_init__(self) -> None:
        if self.max_outer_iterations is not None:
            if int(self.max_outer_iterations) != self.max_outer_iterations:
                raise InvalidConfigurationError("max_outer_iterations must be an integer")
            object.__setattr__(self, "max_outer_iterations", int(self.max_outer_iterations))
            if self.max_outer_iterations < 1:
                raise InvalidConfigurationError("max_outer_iterations must be >= 1")
        for name in ("max_coefficient_of_variation", "max_standard_deviation", "max_elapsed_time"):
            value = getattr(self, name)
            if value is None:
                continue
            value = float(value)
            if not value > 0.0:
                raise InvalidConfigurationError(f"{name} must be positive, got {value}")
            object.__setattr__(self, name, value)
        object.__setattr__(self, "min_sample_count", int(self.min_sample_count))
        if self.min_sample_count < 2:
            raise InvalidConfigurationError("min_sample_count must be >= 2")
        if self.max_outer_iterations is None and self.max_elapsed_time is None and not self.has_precision_target:
            raise InvalidConfigurationError("StoppingConfig sets no bound; the run could never end")

    @property
    def has_precision_target(self) -> bool:
        return self.max_coefficient_of_variation is not None or self.max_standard_deviation is not None

    def validate_for_block_size(self, block_size: int) -> None:
        """
        Reject thresholds that contradict each other for a given block size.

        Raises:
            InvalidConfigurationError: If a precision target is set but the
                minimum sample count lies beyond the block budget.
        """
        if not self.has_precision_target or self.max_outer_iterations is None:
            return
        budget = int(self.max_outer_iterations) * int(block_size)
        if self.min_sample_count > budget:
            raise InvalidConfigurationError(
                f"min_sample_count={self.min_sample_count} can never be reached within "
                f"{self.max_outer_iterations} blocks of {block_size} samples"
            )

    def precision_met(self, coefficient_of_variation: float, standard_deviation: float, sample_count: int) -> bool:
        """
        True iff a precision target is satisfied and enough samples were drawn.

        Neither target can be met while the coefficient of variation is
        infinite, i.e. while no failure has been observed.
        """
        if sample_count < self.min_sample_count:
            return False
        # A zero estimate has zero variance; only the budget may end the run.
        if coefficient_of_variation == inf:
            return False
        if (
            self.max_coefficient_of_variation is not None
            and coefficient_of_variation <= self.max_coefficient_of_variation
        ):
            return True
        if self.max_standard_deviation is not None and standard_deviation <= self.max_standard_deviation:
            return True
        return False

    def budget_exhausted(self, blocks: int, elapsed: float) -> bool:
        if self.max_outer_iterations is not None and blocks >= self.max_outer_iterations:
            return True
        if self.max_elapsed_time is not None and elapsed >= self.max_elapsed_time:
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @staticmethod
    def from_mapping(options: Mapping[str, Any]) -> "StoppingConfig":
        """
        Build a config from snake_case or camelCase option names.

        Raises:
            InvalidConfigurationError: On unknown or duplicated options.
        """
        known = {f.name for f in fields(StoppingConfig)}
        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            name = _CAMEL_CASE_KEYS.get(str(key), str(key))
            if name not in known:
                raise InvalidConfigurationError(f"Unknown stopping option: {key!r}")
            if name in kwargs:
                raise InvalidConfigurationError(f"Stopping option given twice: {name!r}")
            kwargs[name] = value
        return StoppingConfig(**kwargs)
