"""
Rare-event probability with block-wise Latin Hypercube sampling.

The `lhs` package is demonstrated on a small structural-reliability problem:
  - a resistance R ~ LogNormal and a load S ~ Gumbel are defined as marginals,
  - failure is the event g(R, S) = R - S < 0,
  - successive Latin Hypercube blocks are run until the coefficient of
    variation of the estimate falls below 5%,
  - the convergence of the estimate is plotted.
"""

from __future__ import annotations

import logging
import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from scipy import stats

from lhs import LHSSimulation, MarginalSet, StoppingConfig, ThresholdEvent
from lhs.visualization import ConvergenceVisualizer


def _limit_state(block: np.ndarray) -> np.ndarray:
    resistance = block[:, 0]
    load = block[:, 1]
    return resistance - load


def _get_results_dir() -> str:
    """Determine the results directory path."""
    results_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'results')
    os.makedirs(results_dir, exist_ok=True)
    return results_dir


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    marginals = MarginalSet(
        [
            stats.lognorm(s=0.1, scale=10.0),
            stats.gumbel_r(loc=6.0, scale=0.6),
        ],
        names=["R", "S"],
    )
    event = ThresholdEvent(_limit_state, "<", 0.0)

    sim = LHSSimulation(
        marginals,
        event,
        block_size=200,
        stopping=StoppingConfig(
            max_coefficient_of_variation=0.05,
            max_outer_iterations=5000,
            max_elapsed_time=120.0,
            min_sample_count=1000,
        ),
        seed=123,
    )
    result = sim.run()

    lower, upper = result.confidence_interval(0.95)
    print(f"State                 = {result.state.value}")
    print(f"P(failure)            = {result.probability:.4e}")
    print(f"Standard deviation    = {result.standard_deviation:.4e}")
    print(f"Coefficient of var.   = {result.coefficient_of_variation:.4f}")
    print(f"95% interval          = [{lower:.4e}, {upper:.4e}]")
    print(f"Samples / blocks      = {result.sample_count} / {result.outer_iterations}")

    ax = ConvergenceVisualizer.plot_probability_convergence(result, level=0.95, log_scale=True)
    plot_path = os.path.join(_get_results_dir(), "example_rare_event_lhs_convergence.png")
    ax.figure.savefig(plot_path, dpi=150, bbox_inches="tight")
    plt.close(ax.figure)
    print(f"Convergence plot saved to {plot_path}")


if __name__ == "__main__":
    main()
