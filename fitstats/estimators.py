"""Named estimator factories for common bootstrap targets.

Each factory returns a callable ``f(frame) -> float | dict`` suitable for
:func:`fitstats.stats.engine.run_bootstrap`.
"""

from __future__ import annotations

from typing import Callable, Dict

import numpy as np
import pandas as pd

from .errors import InsufficientData, InvalidInput
from .mixed import ModelSpec, icc_estimator
from .stats.regression import linear_regression

ESTIMATOR_NAMES: tuple[str, ...] = ("mean", "median", "sd", "slope", "icc")


def _column(frame: pd.DataFrame, column: str) -> np.ndarray:
    values = pd.to_numeric(frame[column], errors="coerce").to_numpy(dtype=float)
    values = values[np.isfinite(values)]
    if len(values) == 0:
        raise InsufficientData(f"Column '{column}' has no finite values.")
    return values


def column_mean(column: str) -> Callable[[pd.DataFrame], float]:
    def estimator(frame: pd.DataFrame) -> float:
        return float(np.mean(_column(frame, column)))

    return estimator


def column_median(column: str) -> Callable[[pd.DataFrame], float]:
    def estimator(frame: pd.DataFrame) -> float:
        return float(np.median(_column(frame, column)))

    return estimator


def column_sd(column: str) -> Callable[[pd.DataFrame], float]:
    def estimator(frame: pd.DataFrame) -> float:
        values = _column(frame, column)
        if len(values) < 2:
            raise InsufficientData(f"Column '{column}' needs 2 values for an SD.")
        return float(np.std(values, ddof=1))

    return estimator


def regression_slope(x_col: str, y_col: str) -> Callable[[pd.DataFrame], Dict[str, float]]:
    """Slope and intercept of ``y_col ~ x_col`` on each resample."""

    def estimator(frame: pd.DataFrame) -> Dict[str, float]:
        fit = linear_regression(frame[x_col], frame[y_col])
        return {"slope": fit["m"], "intercept": fit["b"]}

    return estimator


def build_estimator(
    name: str,
    *,
    column: str | None = None,
    x_col: str | None = None,
    y_col: str | None = None,
    spec: ModelSpec | None = None,
) -> Callable[[pd.DataFrame], object]:
    """Look up a built-in estimator by name and bind its columns.

    Raises:
        InvalidInput: For unknown names or missing arguments.
    """
    if name in ("mean", "median", "sd"):
        if column is None:
            raise InvalidInput(f"Estimator '{name}' needs a column.")
        factory = {"mean": column_mean, "median": column_median, "sd": column_sd}[name]
        return factory(column)
    if name == "slope":
        if x_col is None or y_col is None:
            raise InvalidInput("Estimator 'slope' needs x and y columns.")
        return regression_slope(x_col, y_col)
    if name == "icc":
        if spec is None:
            raise InvalidInput("Estimator 'icc' needs a ModelSpec.")
        return icc_estimator(spec)
    raise InvalidInput(f"Unknown estimator '{name}'; choose from {ESTIMATOR_NAMES}.")
