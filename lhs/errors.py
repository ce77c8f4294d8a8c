"""
Exception types raised by the stratified-sampling engine.
"""

from __future__ import annotations

from typing import Optional


class LHSError(Exception):
    """Base class for all errors raised by `lhs`."""


class InvalidConfigurationError(LHSError, ValueError):
    """
    A run was configured in a way that cannot be executed.

    Raised at construction time (dimension mismatch, non-positive block size,
    contradictory stopping thresholds) and never retried.
    """


class NumericalInstabilityError(LHSError, ArithmeticError):
    """
    A quantile or indicator evaluation produced a non-finite value.

    The offending dimension and stratum are kept for diagnosis.
    """

    def __init__(
        self,
        message: str,
        *,
        dimension: Optional[int] = None,
        stratum: Optional[int] = None,
        probability: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.dimension = dimension
        self.stratum = stratum
        self.probability = probability
