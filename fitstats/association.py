"""Chi-square goodness of fit and Cramer's V for categorical data."""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Sequence

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats

from .errors import InvalidInput


def _category_counts(x: Any) -> pd.Series:
    counts = pd.Series(x).dropna().value_counts(sort=False)
    try:
        return counts.sort_index()
    except TypeError:
        return counts


def chisq_gof(
    observed: Sequence[Any] | pd.Series,
    expected_probs: Sequence[float] | Mapping[Any, float] | None = None,
    counts: bool = False,
) -> Dict[str, float]:
    """Pearson chi-square goodness-of-fit test.

    Args:
        observed: Raw categorical observations, or category counts when
            ``counts`` is true. A Series of counts keeps its index as the
            category labels.
        expected_probs: Expected category probabilities, either aligned with
            the sorted categories or keyed by category. Rescaled to sum to
            one. Defaults to a uniform distribution.
        counts: Treat ``observed`` as counts instead of raw observations.

    Returns:
        dict[str, float]: ``chi2``, ``df``, ``p_value`` and ``n``.

    Raises:
        InvalidInput: If there are no observations, fewer than two
            categories, or the expected probabilities do not line up.
    """
    if counts:
        obs = pd.Series(observed, dtype=float)
    else:
        obs = _category_counts(observed).astype(float)
    if len(obs) < 2:
        raise InvalidInput("Goodness of fit needs at least two categories.")
    if np.any(obs.to_numpy() < 0) or not np.all(np.isfinite(obs.to_numpy())):
        raise InvalidInput("Counts must be finite and non-negative.")
    n = float(obs.sum())
    if n <= 0:
        raise InvalidInput("No observations for goodness of fit.")

    if expected_probs is None:
        probs = np.full(len(obs), 1.0 / len(obs))
    elif isinstance(expected_probs, Mapping):
        missing = [c for c in obs.index if c not in expected_probs]
        if missing:
            raise InvalidInput(f"No expected probability for categories {missing}.")
        probs = np.array([float(expected_probs[c]) for c in obs.index])
    else:
        probs = np.asarray(expected_probs, dtype=float)
        if len(probs) != len(obs):
            raise InvalidInput(
                f"Got {len(probs)} expected probabilities for {len(obs)} categories."
            )
    if np.any(probs <= 0) or not np.all(np.isfinite(probs)):
        raise InvalidInput("Expected probabilities must be finite and positive.")
    probs = probs / probs.sum()

    result = scipy_stats.chisquare(obs.to_numpy(), f_exp=probs * n)
    return {
        "chi2": float(result.statistic),
        "df": float(len(obs) - 1),
        "p_value": float(result.pvalue),
        "n": n,
    }


def cramers_v(x: Any, y: Any | None = None) -> float:
    """Cramer's V association between two categorical variables.

    Args:
        x: A contingency table (DataFrame or 2-D array) when ``y`` is
            omitted, otherwise the first categorical variable.
        y: Second categorical variable, same length as ``x``.

    Returns:
        float: ``sqrt(chi2 / (n * (min(r, c) - 1)))`` in ``[0, 1]``, using the
        uncorrected Pearson chi-square.

    Raises:
        InvalidInput: For tables smaller than 2x2 or without observations.
    """
    if y is None:
        table = np.asarray(x, dtype=float)
    else:
        if len(x) != len(y):
            raise InvalidInput("x and y must have the same length.")
        table = pd.crosstab(pd.Series(list(x)), pd.Series(list(y))).to_numpy(dtype=float)

    if table.ndim != 2:
        raise InvalidInput("Contingency table must be 2-D.")
    # Empty rows/columns carry no information and break expected counts.
    table = table[table.sum(axis=1) > 0][:, table.sum(axis=0) > 0]
    if min(table.shape) < 2:
        raise InvalidInput("Cramer's V needs at least a 2x2 table with observations.")

    n = float(table.sum())
    chi2, _, _, _ = scipy_stats.chi2_contingency(table, correction=False)
    v = math.sqrt(float(chi2) / (n * (min(table.shape) - 1)))
    return float(min(v, 1.0))
