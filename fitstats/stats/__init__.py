"""
Bootstrap inference engine and supporting statistics.

All functions operate on arrays, DataFrames and caller-supplied estimator
callables; no model-fitting logic lives here.

Modules:
    resampling:
        Draws resamples of row indices with replacement and materializes the
        resampled rows.

    engine:
        Applies an estimator to every resample with failure isolation,
        progress reporting, cancellation, per-call timeouts and an optional
        thread pool. Produces a ReplicateSet.

    summary:
        Standard error, confidence interval and p-value of replicate series,
        singly or in batches.

    regression:
        Straight-line least squares with standard errors and t inference.
"""

from .engine import BootstrapConfig, BootstrapRun, ReplicateSet, run_bootstrap
from .regression import linear_regression
from .resampling import Resample, as_dataset, draw_resamples, materialize
from .summary import (
    boot_ci,
    boot_p,
    boot_se,
    confidence_interval,
    p_value,
    standard_error,
    summarize_replicates,
)

__all__ = [
    "BootstrapConfig",
    "BootstrapRun",
    "ReplicateSet",
    "run_bootstrap",
    "linear_regression",
    "Resample",
    "as_dataset",
    "draw_resamples",
    "materialize",
    "boot_ci",
    "boot_p",
    "boot_se",
    "confidence_interval",
    "p_value",
    "standard_error",
    "summarize_replicates",
]
