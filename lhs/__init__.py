"""
Stratified Monte Carlo estimation of rare-event probabilities.

Successive Latin Hypercube blocks over independent marginal distributions are
evaluated against a failure event until the estimate reaches a precision
target or the sampling budget runs out.
"""

from lhs.design import BlockSampler, DesignSampler
from lhs.errors import InvalidConfigurationError, LHSError, NumericalInstabilityError
from lhs.events import ComparisonOperator, ThresholdEvent
from lhs.marginals import MarginalSet
from lhs.shuffle import CellShuffler
from lhs.simulation import LHSSimulation, SimulationResult, SimulationSnapshot, SimulationState
from lhs.statistics import ConvergenceHistory, ResultAccumulator, RunningStatistics
from lhs.stopping import StoppingConfig

__version__ = "1.0.0"

__all__ = [
    "BlockSampler",
    "CellShuffler",
    "ComparisonOperator",
    "ConvergenceHistory",
    "DesignSampler",
    "InvalidConfigurationError",
    "LHSError",
    "LHSSimulation",
    "MarginalSet",
    "NumericalInstabilityError",
    "ResultAccumulator",
    "RunningStatistics",
    "SimulationResult",
    "SimulationSnapshot",
    "SimulationState",
    "StoppingConfig",
    "ThresholdEvent",
]
