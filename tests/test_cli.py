"""Tests for the command-line entry point."""

import logging

import numpy as np
import pandas as pd
import pytest

from fitstats.cli import EXIT_INVALID_INPUT, log_progress, main


@pytest.fixture()
def input_csv(tmp_path):
    rng = np.random.default_rng(0)
    x = np.linspace(0, 5, 25)
    frame = pd.DataFrame({"x": x, "y": 1.5 * x + rng.normal(0, 0.4, size=x.size)})
    path = tmp_path / "input.csv"
    frame.to_csv(path, index=False)
    return path


def test_mean_run_writes_outputs(input_csv, tmp_path, caplog):
    outdir = tmp_path / "out"
    with caplog.at_level(logging.INFO, logger="fitstats.cli"):
        status = main(
            [
                "--input", str(input_csv),
                "--estimator", "mean",
                "--column", "y",
                "--n-iterations", "20",
                "--seed", "1",
                "--outdir", str(outdir),
            ]
        )

    assert status == 0
    summary = pd.read_csv(outdir / "bootstrap_summary.csv")
    assert list(summary["name"]) == ["mean"]
    assert summary.loc[0, "n_usable"] == 20
    assert (outdir / "bootstrap_replicates.csv").exists()
    assert "Bootstrap progress: 20/20" in caplog.text


def test_slope_run_with_plot_and_quantile_interval(input_csv, tmp_path):
    outdir = tmp_path / "slope"
    status = main(
        [
            "--input", str(input_csv),
            "--estimator", "slope",
            "--x-col", "x",
            "--y-col", "y",
            "--n-iterations", "15",
            "--seed", "2",
            "--ci-method", "quantile",
            "--jobs", "2",
            "--outdir", str(outdir),
            "--plot",
        ]
    )

    assert status == 0
    summary = pd.read_csv(outdir / "bootstrap_summary.csv")
    assert list(summary["name"]) == ["slope", "intercept"]
    slope = summary.set_index("name").loc["slope"]
    assert slope["ci_lower"] < slope["ci_upper"]
    assert abs(slope["estimate_mean"] - 1.5) < 0.3
    assert (outdir / "replicate_distribution.png").exists()


@pytest.mark.parametrize(
    "extra",
    [
        ["--estimator", "mean"],
        ["--estimator", "mean", "--column", "missing"],
        ["--estimator", "slope", "--x-col", "x"],
        ["--estimator", "icc", "--formula", "y ~ x"],
        ["--estimator", "mean", "--column", "y", "--n-iterations", "0"],
        ["--estimator", "mean", "--column", "y", "--jobs", "0"],
    ],
)
def test_invalid_input_exits_with_code_two(input_csv, tmp_path, extra):
    status = main(["--input", str(input_csv), "--outdir", str(tmp_path), *extra])
    assert status == EXIT_INVALID_INPUT


def test_log_progress_reports_every_tenth(caplog):
    report = log_progress(50)
    with caplog.at_level(logging.INFO, logger="fitstats.cli"):
        for done in range(1, 51):
            report(done, 50)
    lines = [r for r in caplog.records if "Bootstrap progress" in r.getMessage()]
    assert len(lines) == 10
