"""
Failure events: model output compared against a threshold.

The performance model itself is external. A `ThresholdEvent` wraps a
vectorised model `block -> outputs` and turns it into an indicator vector,
which is what the simulation loop consumes.
"""

from __future__ import annotations

import operator
from enum import Enum
from typing import Any, Callable, Protocol, Union

import numpy as np

from lhs.errors import InvalidConfigurationError


class EventModel(Protocol):
    def evaluate(self, block: np.ndarray) -> np.ndarray: ...


class ComparisonOperator(str, Enum):
    LESS = "<"
    LESS_OR_EQUAL = "<="
    GREATER = ">"
    GREATER_OR_EQUAL = ">="

    def compare(self, values: np.ndarray, threshold: float) -> np.ndarray:
        return _OPERATORS[self](values, threshold)


_OPERATORS = {
    ComparisonOperator.LESS: operator.lt,
    ComparisonOperator.LESS_OR_EQUAL: operator.le,
    ComparisonOperator.GREATER: operator.gt,
    ComparisonOperator.GREATER_OR_EQUAL: operator.ge,
}


class ThresholdEvent:
    """
    Event `model(x) <op> threshold` over a block of input samples.

    Args:
        model: Callable mapping an (N, D) block to N scalar outputs.
        comparison: Operator as a `ComparisonOperator` or its symbol.
        threshold: Threshold compared against the model output.
    """

    def __init__(
        self,
        model: Callable[[np.ndarray], Any],
        comparison: Union[ComparisonOperator, str],
        threshold: float,
    ) -> None:
        if not callable(model):
            raise InvalidConfigurationError("model must be callable")
        try:
            self.comparison = ComparisonOperator(comparison)
        except ValueError as exc:
            raise InvalidConfigurationError(f"Unknown comparison operator: {comparison!r}") from exc
        self.model = model
        self.threshold = float(threshold)

    def evaluate(self, block: np.ndarray) -> np.ndarray:
        block = np.asarray(block, dtype=float)
        outputs = np.asarray(self.model(block), dtype=float).reshape(-1)
        if outputs.shape[0] != block.shape[0]:
            raise InvalidConfigurationError(
                f"model returned {outputs.shape[0]} outputs for a block of {block.shape[0]} samples"
            )
        return self.comparison.compare(outputs, self.threshold)

    def __repr__(self) -> str:
        return f"ThresholdEvent(model={self.model!r}, comparison={self.comparison.value!r}, threshold={self.threshold!r})"


def as_indicator_function(
    event: Union[EventModel, Callable[[np.ndarray], Any]],
) -> Callable[[np.ndarray], Any]:
    """Accept an object with `evaluate(block)` or a plain callable."""
    evaluate = getattr(event, "evaluate", None)
    if callable(evaluate):
        return evaluate
    if callable(event):
        return event
    raise InvalidConfigurationError(
        f"{type(event).__name__} is not an event model (expected .evaluate or a callable)"
    )
