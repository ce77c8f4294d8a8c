"""
Visualization of simulation convergence.
"""

from __future__ import annotations

from typing import Optional, Union

import matplotlib.pyplot as plt
import numpy as np

from lhs.simulation import SimulationResult
from lhs.statistics import ConvergenceHistory


class ConvergenceVisualizer:
    """
    Plots of the running probability estimate.
    """

    @staticmethod
    def plot_probability_convergence(
        history: Union[ConvergenceHistory, SimulationResult],
        level: float = 0.95,
        ax: Optional[plt.Axes] = None,
        title: str = "Probability estimate convergence",
        log_scale: bool = False,
    ) -> plt.Axes:
        """
        Plot the running estimate against sample count, with its confidence band.

        Args:
            history: Convergence history, or a result carrying one.
            level: Confidence level of the band.
            ax: Matplotlib axes to plot on. If None, creates new figure.
            log_scale: Use a logarithmic sample-count axis.

        Returns:
            Matplotlib axes object.

        Raises:
            ValueError: If the history is empty.
        """
        if isinstance(history, SimulationResult):
            history = history.history
        if len(history) == 0:
            raise ValueError("Nothing to plot: convergence history is empty")

        if ax is None:
            _, ax = plt.subplots(figsize=(10, 4))

        n = np.asarray(history.sample_counts, dtype=float)
        p = np.asarray(history.probabilities, dtype=float)
        lower, upper = history.confidence_band(level)

        ax.plot(n, p, color="tab:red", label="estimate")
        ax.fill_between(n, lower, upper, color="tab:green", alpha=0.25, label=f"{level:.0%} bounds")
        if log_scale:
            ax.set_xscale("log")
        ax.set_xlabel("Sample count")
        ax.set_ylabel("P(event)")
        ax.set_title(title)
        ax.legend(loc="best")
        return ax
