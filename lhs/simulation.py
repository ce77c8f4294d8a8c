"""
Sequential block-wise Latin Hypercube simulation of a failure probability.

Each iteration draws a fresh Latin Hypercube block, evaluates the event on it,
folds the indicators into the running statistics and checks the stopping rule:

    Idle -> Running -> {Converged, Exhausted, Aborted}

A block only counts after it has been evaluated in full. Errors raised by the
sampler or the event model move the run to Aborted and propagate unchanged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

import numpy as np

from lhs.design import BlockSampler, DesignSampler
from lhs.errors import InvalidConfigurationError
from lhs.events import EventModel, as_indicator_function
from lhs.marginals import MarginalSet
from lhs.statistics import ConvergenceHistory, ResultAccumulator, RunningStatistics, z_value
from lhs.stopping import StoppingConfig

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
StopCallback = Callable[[], bool]


class SimulationState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    ABORTED = "aborted"


@dataclass(frozen=True)
class SimulationSnapshot:
    """
    Everything needed to resume a run exactly where it stopped.
    """

    dimension: int
    block_size: int
    blocks_done: int
    statistics: RunningStatistics
    last_shuffle: Optional[np.ndarray]
    random_state: Dict[str, Any]
    elapsed: float = 0.0
    history: ConvergenceHistory = field(default_factory=ConvergenceHistory)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimension": int(self.dimension),
            "block_size": int(self.block_size),
            "blocks_done": int(self.blocks_done),
            "statistics": self.statistics.to_dict(),
            "last_shuffle": None if self.last_shuffle is None else self.last_shuffle.tolist(),
            "random_state": self.random_state,
            "elapsed": float(self.elapsed),
            "history": {
                "probabilities": list(self.history.probabilities),
                "variances": list(self.history.variances),
                "sample_counts": list(self.history.sample_counts),
            },
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SimulationSnapshot":
        shuffle = data.get("last_shuffle")
        hist = data.get("history") or {}
        return SimulationSnapshot(
            dimension=int(data["dimension"]),
            block_size=int(data["block_size"]),
            blocks_done=int(data["blocks_done"]),
            statistics=RunningStatistics.from_dict(data["statistics"]),
            last_shuffle=None if shuffle is None else np.asarray(shuffle, dtype=np.int64),
            random_state=dict(data["random_state"]),
            elapsed=float(data.get("elapsed", 0.0)),
            history=ConvergenceHistory(
                probabilities=[float(x) for x in hist.get("probabilities", [])],
                variances=[float(x) for x in hist.get("variances", [])],
                sample_counts=[int(x) for x in hist.get("sample_counts", [])],
            ),
        )


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of a terminated run (Converged or Exhausted).
    """

    probability: float
    standard_deviation: float
    variance: float
    coefficient_of_variation: float
    sample_count: int
    outer_iterations: int
    block_size: int
    state: SimulationState
    precision_met: bool
    cancelled: bool
    elapsed: float
    history: ConvergenceHistory
    last_shuffle: Optional[np.ndarray]
    statistics: RunningStatistics

    def confidence_interval(self, level: float = 0.95) -> Tuple[float, float]:
        """`probability ± z * standard_deviation`, clipped to [0, 1]."""
        return ResultAccumulator(self.statistics).confidence_interval(level)

    def confidence_length(self, level: float = 0.95) -> float:
        """Width `2 * z * standard_deviation` of the unclipped interval."""
        return 2.0 * z_value(level) * self.standard_deviation


@dataclass
class _RunState:
    rng: np.random.Generator
    statistics: RunningStatistics
    history: ConvergenceHistory
    blocks_done: int = 0
    last_shuffle: Optional[np.ndarray] = None
    elapsed_offset: float = 0.0
    started_at: float = 0.0


class LHSSimulation:
    """
    Estimate P(event) with successive Latin Hypercube blocks.

    Args:
        sampler: Block sampler, or a `MarginalSet` wrapped in a `DesignSampler`.
        event: Object with `evaluate(block) -> indicators`, or a plain callable.
        block_size: Samples per block; each block is one complete design.
        stopping: Stopping rule; a mapping is read with `StoppingConfig.from_mapping`.
        seed: Seed of the run's random generator. Every call to `run` starts
            from a fresh generator seeded with it.
        jitter: Jitter policy used when `sampler` is a `MarginalSet`.
        progress_callback: Called after every block with a percentage.
        stop_callback: Polled after every block; returning True cancels the run.
        clock: Monotonic clock in seconds, for the elapsed-time budget.

    A single instance runs one simulation at a time. Independent runs in
    separate threads need separate instances; a `MarginalSet` may be shared.
    """

    def __init__(
        self,
        sampler: Union[BlockSampler, MarginalSet],
        event: Union[EventModel, Callable[[np.ndarray], Any]],
        *,
        block_size: int,
        stopping: Union[StoppingConfig, Dict[str, Any]],
        seed: Optional[int] = None,
        jitter: str = "uniform",
        progress_callback: Optional[ProgressCallback] = None,
        stop_callback: Optional[StopCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(sampler, MarginalSet):
            sampler = DesignSampler(sampler, jitter=jitter)
        if not callable(getattr(sampler, "next_block", None)):
            raise InvalidConfigurationError("sampler must provide next_block(block_size, rng)")
        if int(block_size) != block_size or int(block_size) < 1:
            raise InvalidConfigurationError(f"block_size must be a positive integer, got {block_size!r}")
        if not isinstance(stopping, StoppingConfig):
            stopping = StoppingConfig.from_mapping(stopping)
        stopping.validate_for_block_size(int(block_size))

        self.sampler = sampler
        self.evaluate = as_indicator_function(event)
        self.block_size = int(block_size)
        self.stopping = stopping
        self.seed = seed
        self.progress_callback = progress_callback
        self.stop_callback = stop_callback
        self.clock = clock
        self._state = SimulationState.IDLE
        self._run: Optional[_RunState] = None

    @property
    def dimension(self) -> int:
        return int(self.sampler.dimension)

    @property
    def state(self) -> SimulationState:
        return self._state

    def _elapsed(self, run: _RunState) -> float:
        return run.elapsed_offset + (self.clock() - run.started_at)

    def _start(self, resume_from: Optional[SimulationSnapshot]) -> _RunState:
        rng = np.random.default_rng(self.seed)
        if resume_from is None:
            return _RunState(rng=rng, statistics=RunningStatistics(), history=ConvergenceHistory())

        if resume_from.dimension != self.dimension:
            raise InvalidConfigurationError(
                f"snapshot dimension {resume_from.dimension} does not match sampler dimension {self.dimension}"
            )
        if resume_from.block_size != self.block_size:
            raise InvalidConfigurationError(
                f"snapshot block size {resume_from.block_size} does not match block_size {self.block_size}"
            )
        rng.bit_generator.state = resume_from.random_state
        return _RunState(
            rng=rng,
            statistics=resume_from.statistics.copy(),
            history=resume_from.history.copy(),
            blocks_done=int(resume_from.blocks_done),
            last_shuffle=None if resume_from.last_shuffle is None else resume_from.last_shuffle.copy(),
            elapsed_offset=float(resume_from.elapsed),
        )

    def snapshot(self) -> SimulationSnapshot:
        """
        Copy of the current run's state; valid between blocks and after the run.

        Raises:
            RuntimeError: If no run has been started.
        """
        run = self._run
        if run is None:
            raise RuntimeError("No simulation run to snapshot; call run() first")
        return SimulationSnapshot(
            dimension=self.dimension,
            block_size=self.block_size,
            blocks_done=run.blocks_done,
            statistics=run.statistics.copy(),
            last_shuffle=None if run.last_shuffle is None else run.last_shuffle.copy(),
            random_state=run.rng.bit_generator.state,
            elapsed=self._elapsed(run),
            history=run.history.copy(),
        )

    def _progress(self, run: _RunState, elapsed: float) -> Optional[float]:
        fractions = []
        if self.stopping.max_outer_iterations is not None:
            fractions.append(run.blocks_done / self.stopping.max_outer_iterations)
        if self.stopping.max_elapsed_time is not None:
            fractions.append(elapsed / self.stopping.max_elapsed_time)
        if not fractions:
            return None
        return 100.0 * min(1.0, max(fractions))

    def _evaluate_block(self, block: np.ndarray) -> np.ndarray:
        indicators = np.asarray(self.evaluate(block), dtype=float).reshape(-1)
        if indicators.shape[0] != self.block_size:
            raise InvalidConfigurationError(
                f"event model returned {indicators.shape[0]} indicators for a block of {self.block_size}"
            )
        return indicators

    def _check_termination(self, run: _RunState, accumulator: ResultAccumulator) -> Optional[SimulationState]:
        stopping = self.stopping
        if stopping.precision_met(
            accumulator.coefficient_of_variation,
            accumulator.standard_deviation,
            accumulator.sample_count,
        ):
            return SimulationState.CONVERGED
        if stopping.budget_exhausted(run.blocks_done, self._elapsed(run)):
            return SimulationState.EXHAUSTED
        return None

    def run(self, resume_from: Optional[SimulationSnapshot] = None) -> SimulationResult:
        """
        Run the simulation until a stopping condition holds.

        Args:
            resume_from: Optional snapshot of an earlier run to continue.

        Returns:
            Result in state Converged or Exhausted.

        Raises:
            NumericalInstabilityError: If the sampler or indicators turn non-finite.
            InvalidConfigurationError: If the event model returns a block of the wrong size.
            Exception: Any error of the event model, unchanged.
        """
        run = self._start(resume_from)
        self._run = run
        self._state = SimulationState.RUNNING
        run.started_at = self.clock()
        accumulator = ResultAccumulator(run.statistics)
        cancelled = False

        terminal = self._check_termination(run, accumulator) if run.blocks_done else None
        try:
            while terminal is None:
                block, shuffle = self.sampler.next_block(self.block_size, run.rng)
                indicators = self._evaluate_block(block)
                run.statistics.update(indicators)
                run.blocks_done += 1
                run.last_shuffle = shuffle
                run.history.record(accumulator)

                elapsed = self._elapsed(run)
                logger.debug(
                    "block %d: p=%.6g sd=%.3g cov=%.3g n=%d",
                    run.blocks_done,
                    accumulator.probability,
                    accumulator.standard_deviation,
                    accumulator.coefficient_of_variation,
                    accumulator.sample_count,
                )
                if self.progress_callback is not None:
                    percent = self._progress(run, elapsed)
                    if percent is not None:
                        self.progress_callback(percent)

                terminal = self._check_termination(run, accumulator)
                if terminal is None and self.stop_callback is not None and self.stop_callback():
                    logger.info("simulation cancelled after %d blocks", run.blocks_done)
                    cancelled = True
                    terminal = SimulationState.EXHAUSTED
        except BaseException:
            self._state = SimulationState.ABORTED
            logger.warning("simulation aborted after %d blocks", run.blocks_done, exc_info=True)
            raise

        self._state = terminal
        result = SimulationResult(
            probability=accumulator.probability,
            standard_deviation=accumulator.standard_deviation,
            variance=accumulator.variance,
            coefficient_of_variation=accumulator.coefficient_of_variation,
            sample_count=accumulator.sample_count,
            outer_iterations=run.blocks_done,
            block_size=self.block_size,
            state=terminal,
            precision_met=terminal is SimulationState.CONVERGED,
            cancelled=cancelled,
            elapsed=self._elapsed(run),
            history=run.history.copy(),
            last_shuffle=None if run.last_shuffle is None else run.last_shuffle.copy(),
            statistics=run.statistics.copy(),
        )
        logger.info(
            "simulation %s after %d blocks: p=%.6g sd=%.3g n=%d",
            terminal.value,
            result.outer_iterations,
            result.probability,
            result.standard_deviation,
            result.sample_count,
        )
        return result
