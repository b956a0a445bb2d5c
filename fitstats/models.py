"""Standard errors for vectors, data frames and fitted regression models.

:func:`se` classifies its input exactly once into one of a closed set of
variant types and hands it to the single handler registered for that
variant:

- ``NumericVector``: standard error of the mean of one variable.
- ``NumericFrame``: standard error of the mean for every column.
- ``EstimateWithPValue``: standard error recovered from a coefficient and
  its two-sided p-value under a normal approximation.
- ``LinearFit``: coefficient table of a statsmodels OLS/WLS/GLS fit.
- ``GeneralizedFit``: coefficient table of a statsmodels GLM fit; for log
  and logit links the coefficients are exponentiated and their standard
  errors transformed with the delta method (Oehlert 1992).
- ``MixedFit``: joint fixed + random coefficient standard errors of a
  statsmodels MixedLM fit.
- ``IccResult``: bootstrapped standard error of an intraclass correlation.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Union

import numpy as np
import pandas as pd
from scipy.stats import norm
from statsmodels.genmod.families import links
from statsmodels.genmod.generalized_linear_model import GLMResults
from statsmodels.regression.linear_model import RegressionResults
from statsmodels.regression.mixed_linear_model import MixedLMResults

from .errors import InsufficientData, InvalidInput
from .mixed import IccResult, IccStandardError, icc_standard_error, mixed_coef_se
from .stats.engine import BootstrapConfig, ProgressCallback

EXPONENTIATED_LINKS = (links.Logit, links.Log)


@dataclass(frozen=True, eq=False)
class NumericVector:
    values: np.ndarray


@dataclass(frozen=True, eq=False)
class NumericFrame:
    frame: pd.DataFrame


@dataclass(frozen=True)
class EstimateWithPValue:
    estimate: float
    p_value: float


@dataclass(frozen=True, eq=False)
class LinearFit:
    fit: Any


@dataclass(frozen=True, eq=False)
class GeneralizedFit:
    fit: Any


@dataclass(frozen=True, eq=False)
class MixedFit:
    fit: Any


ModelInput = Union[
    NumericVector,
    NumericFrame,
    EstimateWithPValue,
    LinearFit,
    GeneralizedFit,
    MixedFit,
    IccResult,
]

_VARIANTS = (
    NumericVector,
    NumericFrame,
    EstimateWithPValue,
    LinearFit,
    GeneralizedFit,
    MixedFit,
    IccResult,
)


def classify(x: Any) -> ModelInput:
    """Resolve a raw input into its variant type.

    Raises:
        InvalidInput: If ``x`` matches no supported variant.
    """
    if isinstance(x, _VARIANTS):
        return x

    # statsmodels hands out wrapper objects; classify on the wrapped results.
    results = getattr(x, "_results", x)
    if isinstance(results, MixedLMResults):
        return MixedFit(x)
    if isinstance(results, GLMResults):
        return GeneralizedFit(x)
    if isinstance(results, RegressionResults):
        return LinearFit(x)

    if isinstance(x, pd.DataFrame):
        return NumericFrame(x)
    if isinstance(x, np.ndarray) and x.ndim == 2:
        return NumericFrame(pd.DataFrame(x))
    if isinstance(x, Mapping):
        p = x.get("p_value", x.get("p.value"))
        if "estimate" not in x or p is None:
            raise InvalidInput(
                "Mappings need 'estimate' and 'p_value' entries to derive a standard error."
            )
        return EstimateWithPValue(float(x["estimate"]), float(p))
    if isinstance(x, pd.Series):
        return NumericVector(x.to_numpy(dtype=float))
    if isinstance(x, np.ndarray) and x.ndim == 1:
        return NumericVector(x.astype(float))
    if isinstance(x, (list, tuple)) and all(
        isinstance(v, numbers.Number) for v in x
    ):
        return NumericVector(np.asarray(x, dtype=float))
    raise InvalidInput(f"Cannot compute a standard error for {type(x).__name__}.")


def _mean_se(values: np.ndarray) -> float:
    arr = np.asarray(values, dtype=float)
    arr = arr[np.isfinite(arr)]
    if len(arr) < 2:
        raise InsufficientData(
            f"Need at least 2 finite values for a standard error, got {len(arr)}.",
            n_usable=len(arr),
        )
    return float(np.sqrt(np.var(arr, ddof=1) / len(arr)))


def _se_vector(x: NumericVector, **_: Any) -> float:
    return _mean_se(x.values)


def _se_frame(x: NumericFrame, **_: Any) -> pd.Series:
    out = {}
    for col in x.frame.columns:
        values = pd.to_numeric(x.frame[col], errors="coerce").to_numpy(dtype=float)
        try:
            out[col] = _mean_se(values)
        except InsufficientData:
            out[col] = math.nan
    return pd.Series(out, name="std_err", dtype=float)


def _se_from_pvalue(x: EstimateWithPValue, **_: Any) -> float:
    if not (0.0 < x.p_value < 1.0):
        raise InvalidInput(f"p_value must be in (0, 1), got {x.p_value!r}.")
    return float(x.estimate / abs(norm.ppf(x.p_value / 2.0)))


def _term_names(fit: Any) -> list[str]:
    params = fit.params
    if isinstance(params, pd.Series):
        return [str(n) for n in params.index]
    return [str(n) for n in fit.model.exog_names]


def _se_linear(x: LinearFit, **_: Any) -> pd.DataFrame:
    fit = x.fit
    return pd.DataFrame(
        {
            "term": _term_names(fit),
            "estimate": np.asarray(fit.params, dtype=float),
            "std_error": np.asarray(fit.bse, dtype=float),
        }
    )


def _se_generalized(x: GeneralizedFit, **_: Any) -> pd.DataFrame:
    fit = x.fit
    beta = np.asarray(fit.params, dtype=float)
    vcov = np.asarray(fit.cov_params(), dtype=float)
    if isinstance(fit.model.family.link, EXPONENTIATED_LINKS):
        estimate = np.exp(beta)
        std_error = np.sqrt(estimate**2 * np.diag(vcov))
    else:
        estimate = beta
        std_error = np.sqrt(np.diag(vcov))
    return pd.DataFrame(
        {"term": _term_names(fit), "estimate": estimate, "std_error": std_error}
    )


def _se_mixed(x: MixedFit, **_: Any) -> pd.DataFrame:
    return mixed_coef_se(x.fit)


def _se_icc(
    x: IccResult,
    n_iterations: int = 100,
    seed: int | None = None,
    config: BootstrapConfig | None = None,
    progress: ProgressCallback | None = None,
) -> IccStandardError:
    return icc_standard_error(
        x, n_iterations, seed=seed, config=config, progress=progress
    )


_HANDLERS: Dict[type, Callable[..., Any]] = {
    NumericVector: _se_vector,
    NumericFrame: _se_frame,
    EstimateWithPValue: _se_from_pvalue,
    LinearFit: _se_linear,
    GeneralizedFit: _se_generalized,
    MixedFit: _se_mixed,
    IccResult: _se_icc,
}


def se(
    x: Any,
    n_iterations: int = 100,
    *,
    seed: int | None = None,
    config: BootstrapConfig | None = None,
    progress: ProgressCallback | None = None,
) -> Any:
    """Compute the standard error appropriate for ``x``.

    Args:
        x: Numeric vector, DataFrame, ``{"estimate", "p_value"}`` mapping,
            statsmodels OLS/GLM/MixedLM result, or an :class:`IccResult`.
        n_iterations: Bootstrap iterations, used only for ICC results.
        seed: Resampling seed, used only for ICC results.
        config: Engine settings, used only for ICC results.
        progress: Progress callback, used only for ICC results.

    Returns:
        float for vectors and estimate/p-value pairs; ``pandas.Series`` for
        data frames; ``pandas.DataFrame`` for fitted models; and
        :class:`IccStandardError` for ICC results.

    Raises:
        InvalidInput: For unsupported inputs.
        InsufficientData: For vectors with fewer than two finite values.

    Examples:
        >>> se([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])  # doctest: +ELLIPSIS
        0.755...
        >>> round(se({"estimate": 0.3, "p_value": 0.002}), 4)
        0.0971
    """
    variant = classify(x)
    handler = _HANDLERS[type(variant)]
    return handler(
        variant,
        n_iterations=n_iterations,
        seed=seed,
        config=config,
        progress=progress,
    )
