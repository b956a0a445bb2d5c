"""Linear mixed models: intraclass correlation and coefficient standard errors.

Model fitting is delegated to :func:`statsmodels.formula.api.mixedlm`. A
:class:`ModelSpec` carries everything needed to refit a model on new data,
so bootstrap routines receive the model description explicitly instead of
looking a fitted object up by name.
"""

from __future__ import annotations

import logging
import math
import warnings
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, Optional

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from statsmodels.regression.mixed_linear_model import MixedLMResults
from statsmodels.tools.sm_exceptions import ConvergenceWarning

from .errors import InvalidInput
from .stats.engine import BootstrapConfig, ProgressCallback, ReplicateSet, run_bootstrap
from .stats.summary import boot_p, boot_se

logger = logging.getLogger(__name__)

SUPPORTED_FAMILIES: tuple[str, ...] = ("gaussian",)
ICC_SERIES = "icc"


@dataclass(frozen=True, eq=False)
class ModelSpec:
    """Everything needed to (re)fit a linear mixed model.

    Attributes:
        formula: Fixed-effects formula, e.g. ``"Reaction ~ Days"``.
        data: Model frame. Must contain every formula variable and ``groups``.
        groups: Name of the grouping column.
        re_formula: Random-effects formula (``None`` for a random intercept).
        family: Response family. Only ``"gaussian"`` can be fitted.
    """

    formula: str
    data: pd.DataFrame = field(repr=False)
    groups: str
    re_formula: Optional[str] = None
    family: str = "gaussian"

    def __post_init__(self) -> None:
        if self.family not in SUPPORTED_FAMILIES:
            raise InvalidInput(
                f"Unsupported model family '{self.family}'; "
                f"supported: {SUPPORTED_FAMILIES}. Use a custom estimator "
                "with run_bootstrap for other families."
            )
        if self.groups not in self.data.columns:
            raise InvalidInput(f"Grouping column '{self.groups}' not found in data.")
        if len(self.data) == 0:
            raise InvalidInput("Model data has no rows.")

    def fit(self, data: pd.DataFrame | None = None, reml: bool = True) -> Any:
        """Fit the model on ``data`` (defaults to ``self.data``)."""
        frame = self.data if data is None else data
        model = smf.mixedlm(
            self.formula, frame, groups=self.groups, re_formula=self.re_formula
        )
        return model.fit(reml=reml)


def _is_mixed_fit(obj: Any) -> bool:
    return isinstance(getattr(obj, "_results", obj), MixedLMResults)


def _icc_from_fit(fit: Any) -> float:
    cov_re = np.asarray(fit.cov_re, dtype=float)
    if cov_re.size == 0:
        raise InvalidInput("Model has no random-effects variance; ICC undefined.")
    tau00 = float(cov_re.reshape(cov_re.shape[0], -1)[0, 0])
    sigma2 = float(fit.scale)
    total = tau00 + sigma2
    if not np.isfinite(total) or total <= 0:
        warnings.warn(
            "Total variance is zero or non-finite; ICC is NaN.",
            RuntimeWarning,
            stacklevel=3,
        )
        return math.nan
    return tau00 / total


@dataclass(frozen=True)
class IccResult:
    """Intraclass correlation of a fitted mixed model.

    ``spec`` is ``None`` when the ICC was computed from a bare fitted model;
    such results cannot be bootstrapped.
    """

    value: float
    spec: Optional[ModelSpec] = None
    fit: Any = field(default=None, repr=False, compare=False)

    def __float__(self) -> float:
        return float(self.value)


def icc(model: ModelSpec | Any) -> IccResult:
    """Compute ``tau_00 / (tau_00 + sigma^2)`` for a linear mixed model.

    Args:
        model: A :class:`ModelSpec` (fitted here, and kept on the result so
            its standard error can be bootstrapped) or a fitted statsmodels
            MixedLM result.

    Returns:
        IccResult: ICC of the random intercept.

    Raises:
        InvalidInput: If ``model`` is neither a spec nor a MixedLM result.
    """
    if isinstance(model, ModelSpec):
        fit = model.fit()
        return IccResult(value=_icc_from_fit(fit), spec=model, fit=fit)
    if _is_mixed_fit(model):
        return IccResult(value=_icc_from_fit(model), spec=None, fit=model)
    raise InvalidInput(
        f"icc() needs a ModelSpec or a MixedLM result, got {type(model).__name__}."
    )


def _fixed_term(re_name: str, position: int, fe_names: list[str]) -> Optional[str]:
    # The random intercept is labelled with the group name, not "Intercept".
    if re_name in fe_names:
        return re_name
    if position == 0 and "Intercept" in fe_names:
        return "Intercept"
    return None


def mixed_coef_se(fit: Any) -> pd.DataFrame:
    """Standard errors of the joint (fixed + random) coefficients per group.

    For every group level and random-effect term, the coefficient is the sum
    of the fixed effect and the group's conditional mode, so its variance is
    the fixed-effect sampling variance plus the conditional variance of the
    random effect.

    Args:
        fit: Fitted statsmodels MixedLM result.

    Returns:
        pandas.DataFrame: One row per group level, one column per term.
    """
    if not _is_mixed_fit(fit):
        raise InvalidInput(f"Expected a MixedLM result, got {type(fit).__name__}.")
    fe_names = [str(n) for n in fit.model.exog_names]
    fixed_var = pd.Series(np.asarray(fit.bse_fe, dtype=float) ** 2, index=fe_names)

    rows = {}
    for group, cond_cov in fit.random_effects_cov.items():
        cov = pd.DataFrame(cond_cov)
        cond_var = np.diag(cov.to_numpy(dtype=float))
        row = {}
        for position, re_name in enumerate(cov.index):
            term = _fixed_term(str(re_name), position, fe_names)
            if term is None:
                continue
            row[term] = float(np.sqrt(cond_var[position] + fixed_var[term]))
        rows[group] = row

    out = pd.DataFrame.from_dict(rows, orient="index")
    out.index.name = "group"
    return out


@contextmanager
def quiet_refits() -> Iterator[None]:
    """Silence convergence and numeric warnings from bootstrap refits.

    Warning filters are process-wide, so enter this once in the thread that
    drives the run, around the whole run, never inside an estimator.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", ConvergenceWarning)
        warnings.simplefilter("ignore", RuntimeWarning)
        yield


def icc_estimator(spec: ModelSpec) -> Callable[[pd.DataFrame], Dict[str, float]]:
    """Estimator that refits ``spec`` on a resample and returns its ICC."""

    def estimator(frame: pd.DataFrame) -> Dict[str, float]:
        return {ICC_SERIES: _icc_from_fit(spec.fit(frame))}

    return estimator


def bootstrap_icc(
    spec: ModelSpec,
    n_iterations: int = 100,
    *,
    seed: int | None = None,
    config: BootstrapConfig | None = None,
    progress: ProgressCallback | None = None,
) -> ReplicateSet:
    """Refit ``spec`` on bootstrap resamples of its data and collect the ICCs.

    Non-converging refits still contribute their estimate; refits that raise
    are recorded as missing replicates. The replicate series is always named
    ``"icc"``, whatever ``config.series_name`` says.
    """
    if not isinstance(spec, ModelSpec):
        raise InvalidInput("bootstrap_icc() needs a ModelSpec.")

    if config is None:
        cfg = BootstrapConfig(series_name=ICC_SERIES)
    else:
        cfg = replace(config, series_name=ICC_SERIES)
    logger.info("Bootstrapping ICC for '%s' (groups=%s)", spec.formula, spec.groups)
    with quiet_refits():
        return run_bootstrap(
            spec.data,
            icc_estimator(spec),
            n_iterations,
            seed=seed,
            config=cfg,
            progress=progress,
        )


@dataclass(frozen=True, eq=False)
class IccStandardError:
    """Bootstrapped standard error of an ICC and the replicates behind it."""

    result: pd.DataFrame
    bootstrap_data: ReplicateSet


def icc_standard_error(
    result: IccResult,
    n_iterations: int = 100,
    *,
    seed: int | None = None,
    config: BootstrapConfig | None = None,
    progress: ProgressCallback | None = None,
) -> IccStandardError:
    """Bootstrap the standard error and p-value of an ICC.

    Raises:
        InvalidInput: If ``result`` was computed without a :class:`ModelSpec`.
    """
    if result.spec is None:
        raise InvalidInput(
            "This ICC was computed from a fitted model without a ModelSpec; "
            "pass a ModelSpec to icc() to enable bootstrapping."
        )
    replicates = bootstrap_icc(
        result.spec, n_iterations, seed=seed, config=config, progress=progress
    )
    se_row = boot_se(replicates, ICC_SERIES).iloc[0]
    p_row = boot_p(replicates, ICC_SERIES).iloc[0]
    table = pd.DataFrame(
        [
            {
                "model": result.spec.formula,
                "icc": float(result.value),
                "std_err": float(se_row["std_err"]),
                "p_value": float(p_row["p_value"]),
                "n_usable": int(se_row["n_usable"]),
                "notes": se_row["notes"],
            }
        ]
    )
    return IccStandardError(result=table, bootstrap_data=replicates)
