"""Error kinds raised by the bootstrap engine and the statistics helpers."""

from __future__ import annotations


class FitstatsError(Exception):
    """Base class for all package errors."""


class InvalidInput(FitstatsError, ValueError):
    """Malformed dataset, iteration count, or unsupported input type."""


class InsufficientData(FitstatsError, ValueError):
    """Fewer than two usable values for a standard error, interval, or p-value."""

    def __init__(self, message: str, n_usable: int = 0):
        super().__init__(message)
        self.n_usable = int(n_usable)


class EstimatorFailure(FitstatsError, RuntimeError):
    """Estimator raised for one resample. Recorded as a missing replicate."""


class EstimatorTimeout(EstimatorFailure):
    """Estimator exceeded its per-call time limit."""


class RunCancelled(FitstatsError, RuntimeError):
    """A bootstrap run was cancelled before all iterations completed."""

    def __init__(self, message: str, completed: int, total: int):
        super().__init__(message)
        self.completed = int(completed)
        self.total = int(total)
