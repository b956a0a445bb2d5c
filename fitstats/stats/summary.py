"""Summarize bootstrap replicates into standard errors, intervals and p-values.

Scalar helpers (:func:`standard_error`, :func:`confidence_interval`,
:func:`p_value`) work on one numeric sequence and raise
:class:`~fitstats.errors.InsufficientData` when fewer than two usable values
remain after dropping NaNs. The batch helpers (:func:`boot_se`,
:func:`boot_ci`, :func:`boot_p`, :func:`summarize_replicates`) take several
named series at once and report that condition per series in a ``notes``
column, so one short series does not hide results for the others.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import t as student_t

from ..errors import InsufficientData, InvalidInput
from ..schema import SUMMARY_COLUMNS
from .engine import DEFAULT_SERIES_NAME, ReplicateSet

DEFAULT_CONFIDENCE_LEVEL = 0.95
CI_METHODS: tuple[str, ...] = ("t", "quantile")


def _usable(values: Any) -> np.ndarray:
    arr = np.asarray(values, dtype=float).reshape(-1)
    return arr[np.isfinite(arr)]


def _require_two(arr: np.ndarray, what: str) -> None:
    if len(arr) < 2:
        raise InsufficientData(
            f"Need at least 2 usable replicates for {what}, got {len(arr)}.",
            n_usable=len(arr),
        )


def _check_level(level: float) -> float:
    lvl = float(level)
    if not (0.0 < lvl < 1.0):
        raise InvalidInput(f"Confidence level must be in (0, 1), got {level!r}.")
    return lvl


def _mean_and_spread(arr: np.ndarray) -> Tuple[float, float]:
    # Constant replicates have exactly zero spread, whatever their binary form.
    if np.ptp(arr) == 0:
        return float(arr[0]), 0.0
    return float(np.mean(arr)), float(np.std(arr, ddof=1))


def standard_error(values: Sequence[float]) -> float:
    """Return the bootstrap standard error of a replicate sequence.

    The bootstrap standard error is the sample standard deviation of the
    replicates (``ddof=1``), not the standard error of their mean.

    Raises:
        InsufficientData: If fewer than two finite values are present.
    """
    arr = _usable(values)
    _require_two(arr, "a standard error")
    return _mean_and_spread(arr)[1]


def confidence_interval(
    values: Sequence[float],
    level: float = DEFAULT_CONFIDENCE_LEVEL,
    method: str = "t",
) -> Tuple[float, float]:
    """Return ``(lower, upper)`` bounds for a replicate sequence.

    Args:
        values: Bootstrap replicates; NaNs are dropped.
        level: Confidence level in ``(0, 1)``.
        method: ``"t"`` for ``mean ± t_{M-1} * se``; ``"quantile"`` for the
            percentile interval of the replicates.

    Raises:
        InsufficientData: If fewer than two finite values are present.
        InvalidInput: For a level outside ``(0, 1)`` or an unknown method.
    """
    lvl = _check_level(level)
    if method not in CI_METHODS:
        raise InvalidInput(f"method must be one of {CI_METHODS}, got {method!r}.")
    arr = _usable(values)
    _require_two(arr, "a confidence interval")

    if method == "quantile":
        alpha = 1.0 - lvl
        lower = float(np.quantile(arr, alpha / 2.0))
        upper = float(np.quantile(arr, 1.0 - alpha / 2.0))
        return lower, upper

    mean, se = _mean_and_spread(arr)
    t_crit = float(student_t.ppf((1.0 + lvl) / 2.0, len(arr) - 1))
    return mean - t_crit * se, mean + t_crit * se


def p_value(values: Sequence[float]) -> float:
    """Two-sided p-value for the null hypothesis that the true estimate is zero.

    Computed as ``2 * P(T > |mean / se|)`` with ``M - 1`` degrees of freedom.
    With zero spread the statistic is infinite (p = 0) unless the mean is
    also zero (p = 1).

    Raises:
        InsufficientData: If fewer than two finite values are present.
    """
    arr = _usable(values)
    _require_two(arr, "a p-value")
    mean, se = _mean_and_spread(arr)
    if se == 0.0:
        t_stat = 0.0 if mean == 0.0 else math.inf
    else:
        t_stat = abs(mean / se)
    return float(min(1.0, 2.0 * student_t.sf(t_stat, len(arr) - 1)))


def _named_series(data: Any, names: Sequence[str]) -> Dict[str, np.ndarray]:
    """Resolve the supported replicate containers into ``{name: values}``."""
    if isinstance(data, ReplicateSet):
        frame = data.estimates
    elif isinstance(data, pd.DataFrame):
        frame = data
    elif isinstance(data, pd.Series):
        frame = data.to_frame(
            name=data.name if data.name is not None else DEFAULT_SERIES_NAME
        )
    elif isinstance(data, Mapping):
        series = {str(k): np.asarray(v, dtype=float).reshape(-1) for k, v in data.items()}
        return _select(series, names)
    else:
        series = {DEFAULT_SERIES_NAME: np.asarray(data, dtype=float).reshape(-1)}
        return _select(series, names)

    series = {str(c): frame[c].to_numpy(dtype=float) for c in frame.columns}
    return _select(series, names)


def _select(series: Dict[str, np.ndarray], names: Sequence[str]) -> Dict[str, np.ndarray]:
    if not names:
        return series
    missing = [n for n in names if n not in series]
    if missing:
        raise InvalidInput(f"Unknown estimate series {missing}; have {list(series)}.")
    return {n: series[n] for n in names}


def _per_series(
    data: Any,
    names: Sequence[str],
    compute: Callable[[np.ndarray], Dict[str, float]],
    empty: Dict[str, float],
) -> pd.DataFrame:
    rows = []
    for name, values in _named_series(data, names).items():
        usable = _usable(values)
        row: Dict[str, Any] = {"term": name}
        try:
            row.update(compute(usable))
            note = ""
        except InsufficientData as exc:
            row.update(empty)
            note = str(exc)
        row["n_usable"] = int(len(usable))
        row["notes"] = note
        rows.append(row)
    columns = ["term", *empty.keys(), "n_usable", "notes"]
    return pd.DataFrame(rows, columns=columns)


def boot_se(data: Any, *names: str) -> pd.DataFrame:
    """Bootstrap standard error for each named replicate series.

    Returns:
        pandas.DataFrame: Columns ``term``, ``std_err``, ``n_usable``, ``notes``.
    """
    return _per_series(
        data,
        names,
        lambda v: {"std_err": standard_error(v)},
        {"std_err": math.nan},
    )


def boot_ci(
    data: Any,
    *names: str,
    level: float = DEFAULT_CONFIDENCE_LEVEL,
    method: str = "t",
) -> pd.DataFrame:
    """Bootstrap confidence interval for each named replicate series.

    Returns:
        pandas.DataFrame: Columns ``term``, ``conf_low``, ``conf_high``,
        ``n_usable``, ``notes``.
    """
    _check_level(level)

    def compute(v: np.ndarray) -> Dict[str, float]:
        lower, upper = confidence_interval(v, level=level, method=method)
        return {"conf_low": lower, "conf_high": upper}

    return _per_series(
        data, names, compute, {"conf_low": math.nan, "conf_high": math.nan}
    )


def boot_p(data: Any, *names: str) -> pd.DataFrame:
    """Bootstrap p-value for each named replicate series.

    Returns:
        pandas.DataFrame: Columns ``term``, ``p_value``, ``n_usable``, ``notes``.
    """
    return _per_series(
        data,
        names,
        lambda v: {"p_value": p_value(v)},
        {"p_value": math.nan},
    )


def summarize_replicates(
    data: Any,
    *names: str,
    level: float = DEFAULT_CONFIDENCE_LEVEL,
    method: str = "t",
) -> pd.DataFrame:
    """Build the one-row-per-series summary table for a replicate set.

    Args:
        data: A :class:`ReplicateSet`, DataFrame, mapping of names to
            sequences, or a single sequence.
        *names: Optional series to include, in output order. Defaults to
            every series in input order.
        level: Confidence level for the interval.
        method: Interval method, ``"t"`` or ``"quantile"``.

    Returns:
        pandas.DataFrame: Columns ``name``, ``estimate_mean``, ``std_error``,
        ``ci_lower``, ``ci_upper``, ``p_value``, ``n_usable``, ``notes``.
        Series with fewer than two usable replicates get NaN statistics and
        an explanatory note.
    """
    cols = SUMMARY_COLUMNS
    _check_level(level)

    def compute(v: np.ndarray) -> Dict[str, float]:
        lower, upper = confidence_interval(v, level=level, method=method)
        return {
            cols.mean: _mean_and_spread(v)[0],
            cols.std_error: standard_error(v),
            cols.ci_lower: lower,
            cols.ci_upper: upper,
            cols.p_value: p_value(v),
        }

    table = _per_series(
        data,
        names,
        compute,
        {
            cols.mean: math.nan,
            cols.std_error: math.nan,
            cols.ci_lower: math.nan,
            cols.ci_upper: math.nan,
            cols.p_value: math.nan,
        },
    )
    # Report the mean even when the spread is undefined.
    series = _named_series(data, names)
    for idx, name in enumerate(table["term"]):
        usable = _usable(series[name])
        if len(usable) == 1:
            table.loc[idx, cols.mean] = float(usable[0])
    table = table.rename(columns={"term": cols.name})
    return table[cols.ordered()]
