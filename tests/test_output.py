"""Tests for CSV export of bootstrap results."""

import itertools
import logging
import os

import pandas as pd

from fitstats.output import save_results_to_csv
from fitstats.stats.engine import run_bootstrap
from fitstats.stats.summary import summarize_replicates


def _flaky_replicates():
    calls = itertools.count(1)

    def estimator(frame):
        if next(calls) == 3:
            raise ValueError("no convergence")
        return float(frame["x"].mean())

    data = pd.DataFrame({"x": [1.0, 2.0, 4.0, 8.0]})
    return run_bootstrap(data, estimator, 6, seed=0)


def test_save_results_writes_summary_replicates_and_metadata(tmp_path, caplog):
    reps = _flaky_replicates()
    summary = summarize_replicates(reps)

    with caplog.at_level(logging.INFO, logger="fitstats.output"):
        summary_path, replicates_path = save_results_to_csv(
            summary, reps, output_dir=str(tmp_path)
        )

    assert os.path.basename(summary_path) == "bootstrap_summary.csv"
    assert os.path.basename(replicates_path) == "bootstrap_replicates.csv"
    assert "Saved bootstrap summary" in caplog.text

    saved_summary = pd.read_csv(summary_path)
    assert "estimate (reported)" in saved_summary.columns
    assert saved_summary.loc[0, "n_usable"] == 5

    saved_reps = pd.read_csv(replicates_path, keep_default_na=False)
    assert list(saved_reps.columns) == ["resample_id", "estimate", "failure"]
    assert len(saved_reps) == 6
    assert saved_reps.loc[2, "failure"].startswith("EstimatorFailure: ValueError")

    meta = pd.read_csv(tmp_path / "run_metadata.csv")
    assert meta.loc[0, "n_requested"] == 6
    assert meta.loc[0, "n_missing"] == 1
    assert not bool(meta.loc[0, "partial"])


def test_save_results_creates_output_dir(tmp_path):
    reps = _flaky_replicates()
    out_dir = tmp_path / "nested" / "run"
    save_results_to_csv(summarize_replicates(reps), reps, output_dir=str(out_dir))
    assert (out_dir / "bootstrap_summary.csv").exists()
