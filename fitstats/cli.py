"""Command-line bootstrap of a built-in estimator over a CSV dataset."""

from __future__ import annotations

import argparse
import contextlib
import logging
import math
from pathlib import Path
from typing import Callable

import pandas as pd

from .errors import InvalidInput
from .estimators import ESTIMATOR_NAMES, build_estimator
from .mixed import ModelSpec, quiet_refits
from .output import save_results_to_csv
from .plotting import plot_replicate_distribution
from .stats.engine import DEFAULT_N_ITERATIONS, BootstrapConfig, run_bootstrap
from .stats.summary import CI_METHODS, DEFAULT_CONFIDENCE_LEVEL, summarize_replicates

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("output") / "bootstrap"
EXIT_INVALID_INPUT = 2


def log_progress(total: int, every_pct: float = 10.0) -> Callable[[int, int], None]:
    """Progress callback that logs roughly every ``every_pct`` percent."""
    step = max(1, int(math.ceil(total * every_pct / 100.0)))

    def report(completed: int, total_: int) -> None:
        if completed % step == 0 or completed == total_:
            logger.info(
                "Bootstrap progress: %d/%d (%.0f%%)",
                completed,
                total_,
                100.0 * completed / total_,
            )

    return report


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build command-line parser for module execution."""
    parser = argparse.ArgumentParser(
        description="Nonparametric bootstrap standard errors, confidence "
        "intervals and p-values for a built-in estimator."
    )
    parser.add_argument("--input", required=True, help="Path to input CSV file.")
    parser.add_argument(
        "--estimator",
        choices=ESTIMATOR_NAMES,
        default="mean",
        help="Statistic to bootstrap (default: mean).",
    )
    parser.add_argument("--column", default=None, help="Column for mean/median/sd.")
    parser.add_argument("--x-col", default=None, help="Predictor column for slope.")
    parser.add_argument("--y-col", default=None, help="Response column for slope.")
    parser.add_argument(
        "--formula", default=None, help="Mixed-model formula for icc, e.g. 'y ~ x'."
    )
    parser.add_argument("--groups", default=None, help="Grouping column for icc.")
    parser.add_argument(
        "--re-formula", default=None, help="Optional random-effects formula for icc."
    )
    parser.add_argument(
        "--n-iterations",
        type=int,
        default=DEFAULT_N_ITERATIONS,
        help=f"Number of bootstrap resamples (default: {DEFAULT_N_ITERATIONS}).",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "--level",
        type=float,
        default=DEFAULT_CONFIDENCE_LEVEL,
        help=f"Confidence level (default: {DEFAULT_CONFIDENCE_LEVEL}).",
    )
    parser.add_argument(
        "--ci-method",
        choices=CI_METHODS,
        default="t",
        help="Interval method: t-based or quantile (default: t).",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Worker threads; only for reentrant estimators (default: 1).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-resample time limit in seconds (default: none).",
    )
    parser.add_argument(
        "--outdir",
        default=str(DEFAULT_OUTPUT_DIR),
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR}).",
    )
    parser.add_argument(
        "--plot", action="store_true", help="Also write a replicate histogram."
    )
    return parser


def run_from_args(args: argparse.Namespace) -> dict:
    """Execute one CLI invocation; returns output paths and the summary."""
    data = pd.read_csv(args.input)
    logger.info("Loaded %s with shape %s", args.input, data.shape)

    spec = None
    if args.estimator == "icc":
        if args.formula is None or args.groups is None:
            raise InvalidInput("Estimator 'icc' needs --formula and --groups.")
        spec = ModelSpec(
            formula=args.formula,
            data=data,
            groups=args.groups,
            re_formula=args.re_formula,
        )
    estimator = build_estimator(
        args.estimator,
        column=args.column,
        x_col=args.x_col,
        y_col=args.y_col,
        spec=spec,
    )
    for col in (args.column, args.x_col, args.y_col):
        if col is not None and col not in data.columns:
            raise InvalidInput(
                f"Column '{col}' not found. Available columns: {list(data.columns)}"
            )

    config = BootstrapConfig(
        n_jobs=args.jobs, timeout=args.timeout, series_name=args.estimator
    )
    refits = quiet_refits() if spec is not None else contextlib.nullcontext()
    with refits:
        replicates = run_bootstrap(
            data,
            estimator,
            args.n_iterations,
            seed=args.seed,
            config=config,
            progress=log_progress(args.n_iterations),
        )
    summary = summarize_replicates(replicates, level=args.level, method=args.ci_method)
    summary_path, replicates_path = save_results_to_csv(
        summary, replicates, output_dir=args.outdir
    )

    plot_path = None
    if args.plot:
        plot_path = plot_replicate_distribution(
            replicates, summary, output_dir=args.outdir
        )
        logger.info("Saved replicate distribution figure to %s", plot_path)

    return {
        "summary": summary,
        "summary_csv": summary_path,
        "replicates_csv": replicates_path,
        "plot": plot_path,
    }


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for running a bootstrap."""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        outputs = run_from_args(args)
    except InvalidInput as exc:
        logger.error("Invalid input: %s", exc)
        return EXIT_INVALID_INPUT

    print(outputs["summary"].to_string(index=False))
    print(f"Wrote bootstrap outputs to {args.outdir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
