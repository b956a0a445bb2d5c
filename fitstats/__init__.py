"""
Bootstrap inference and standard errors for fitted statistical models.

Resamples a dataset, applies a caller-supplied estimator to every resample
and summarizes the replicates into standard errors, confidence intervals and
p-values. Also computes standard errors of fitted statsmodels regressions,
intraclass correlations of linear mixed models, and basic association
statistics.

Modules:
    - stats: Resampling, the bootstrap engine and summary statistics.
    - models: Standard errors for vectors, data frames and fitted models.
    - mixed: Mixed-model ICC, joint coefficient SEs and the ICC bootstrap.
    - association: Chi-square goodness of fit and Cramer's V.
    - estimators: Named built-in estimators for the command line.
    - reporting / output / plotting: Formatted tables, CSV export, figures.
"""

__version__ = "1.0.0"

from .association import chisq_gof, cramers_v
from .errors import (
    EstimatorFailure,
    EstimatorTimeout,
    FitstatsError,
    InsufficientData,
    InvalidInput,
    RunCancelled,
)
from .mixed import ModelSpec, bootstrap_icc, icc, icc_standard_error, mixed_coef_se
from .models import se
from .output import save_results_to_csv
from .stats import (
    BootstrapConfig,
    BootstrapRun,
    ReplicateSet,
    boot_ci,
    boot_p,
    boot_se,
    confidence_interval,
    draw_resamples,
    p_value,
    run_bootstrap,
    standard_error,
    summarize_replicates,
)

__all__ = [
    # Errors
    "FitstatsError",
    "InvalidInput",
    "InsufficientData",
    "EstimatorFailure",
    "EstimatorTimeout",
    "RunCancelled",
    # Bootstrap engine
    "BootstrapConfig",
    "BootstrapRun",
    "ReplicateSet",
    "draw_resamples",
    "run_bootstrap",
    # Summary statistics
    "standard_error",
    "confidence_interval",
    "p_value",
    "boot_se",
    "boot_ci",
    "boot_p",
    "summarize_replicates",
    # Models
    "se",
    "ModelSpec",
    "icc",
    "bootstrap_icc",
    "icc_standard_error",
    "mixed_coef_se",
    # Association
    "chisq_gof",
    "cramers_v",
    # Output
    "save_results_to_csv",
]
