"""Straight-line least-squares fit with standard errors and t-based inference.

Used directly as a built-in bootstrap estimator (the fitted slope) and as a
lightweight alternative to a full statsmodels fit when only ``y ~ x`` is
needed.
"""

from __future__ import annotations

import math
from typing import Dict

import numpy as np
from scipy.stats import t as student_t

from ..errors import InsufficientData
from .summary import DEFAULT_CONFIDENCE_LEVEL


def linear_regression(
    x: np.ndarray,
    y: np.ndarray,
    min_points: int = 3,
    level: float = DEFAULT_CONFIDENCE_LEVEL,
) -> Dict[str, float]:
    """Fit an ordinary least-squares straight line to finite data pairs.

    Args:
        x (numpy.ndarray): Independent variable.
        y (numpy.ndarray): Dependent variable.
        min_points (int, optional): Minimum number of finite paired
            observations required. Defaults to ``3``.
        level (float, optional): Confidence level for the half-widths
            ``ci_m`` and ``ci_b``. Defaults to ``0.95``.

    Returns:
        dict[str, float]: Keys ``m`` (slope), ``b`` (intercept), ``r2``,
        ``se_m``, ``se_b``, ``ci_m``, ``ci_b`` (interval half-widths),
        ``p_m`` (two-sided p-value for the slope), ``n`` and ``dof``.

    Raises:
        InsufficientData: If there are fewer than ``min_points`` finite pairs
            or no variance in ``x``.

    Note:
        Standard errors are NaN when ``n == 2`` (no residual degrees of
        freedom).
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    x_arr = x_arr[mask]
    y_arr = y_arr[mask]
    n = int(len(x_arr))
    if n < min_points:
        raise InsufficientData(
            f"Need at least {min_points} finite (x, y) pairs, got {n}.", n_usable=n
        )

    xbar = float(np.mean(x_arr))
    ssxx = float(np.sum((x_arr - xbar) ** 2))
    if ssxx <= 0:
        raise InsufficientData("No variance in x; slope is undefined.", n_usable=n)

    m, b = np.polyfit(x_arr, y_arr, 1)
    resid = y_arr - (m * x_arr + b)

    sse = float(np.sum(resid**2))
    sst = float(np.sum((y_arr - y_arr.mean()) ** 2))
    r2 = 1.0 - sse / sst if sst > 0 else math.nan

    dof = n - 2
    se_m = math.nan
    se_b = math.nan
    ci_m = math.nan
    ci_b = math.nan
    p_m = math.nan

    if dof > 0:
        mse = sse / dof
        se_m = float(np.sqrt(mse / ssxx))
        se_b = float(np.sqrt(mse * (1.0 / n + (xbar**2) / ssxx)))
        t_stat = abs(m) / se_m if se_m > 0 else math.inf
        p_m = float(2.0 * student_t.sf(t_stat, dof))
        t_crit = float(student_t.ppf((1.0 + float(level)) / 2.0, dof))
        ci_m = t_crit * se_m
        ci_b = t_crit * se_b

    return {
        "m": float(m),
        "b": float(b),
        "r2": float(r2),
        "se_m": se_m,
        "se_b": se_b,
        "ci_m": ci_m,
        "ci_b": ci_b,
        "p_m": p_m,
        "n": n,
        "dof": dof,
    }
