import os

import numpy as np
import pandas as pd

from fitstats.plotting import plot_replicate_distribution
from fitstats.stats.engine import run_bootstrap
from fitstats.stats.summary import summarize_replicates


def make_replicates():
    data = pd.DataFrame(
        {"dose": np.arange(10, dtype=float), "resp": 2.0 * np.arange(10) + 1.0}
    )
    data["resp"] += np.random.default_rng(0).normal(0, 0.3, size=10)

    def slope(frame):
        m, b = np.polyfit(frame["dose"], frame["resp"], 1)
        return {"slope": m, "intercept": b}

    return run_bootstrap(data, slope, 30, seed=1)


def test_plot_replicate_distribution_with_summary(tmp_path):
    reps = make_replicates()
    out = plot_replicate_distribution(
        reps, summarize_replicates(reps), output_dir=str(tmp_path)
    )
    assert os.path.exists(out)
    assert out.endswith("replicate_distribution.png")


def test_plot_replicate_distribution_without_usable_values(tmp_path):
    data = pd.DataFrame({"x": [1.0, 2.0, 3.0]})
    reps = run_bootstrap(data, lambda f: float("nan"), 5, seed=2)
    out = plot_replicate_distribution(reps, output_dir=str(tmp_path), filename="empty.png")
    assert os.path.exists(out)
