"""Write bootstrap results to reproducible CSV files.

This module is the boundary between in-memory replicate sets and the flat
files a surrounding report or notebook reads.
"""

from __future__ import annotations

import logging
import os
from typing import Tuple

import pandas as pd

from .reporting import add_reported_columns
from .stats.engine import ReplicateSet

logger = logging.getLogger(__name__)


def _build_run_metadata(replicates: ReplicateSet) -> pd.DataFrame:
    """One-row table describing how complete the run was."""
    return pd.DataFrame(
        [
            {
                "n_requested": replicates.n_requested,
                "n_completed": replicates.n_completed,
                "n_missing": replicates.n_missing,
                "n_usable": replicates.n_usable,
                "partial": replicates.partial,
            }
        ]
    )


def save_results_to_csv(
    summary: pd.DataFrame,
    replicates: ReplicateSet,
    output_dir: str = "output",
) -> Tuple[str, str]:
    """Save the summary table and raw replicates to CSV files.

    Args:
        summary (pandas.DataFrame): Output of ``summarize_replicates``.
        replicates (ReplicateSet): The replicate set the summary came from.
        output_dir (str): Directory where CSV outputs are written.

    Returns:
        tuple[str, str]: Paths to ``bootstrap_summary.csv`` and
        ``bootstrap_replicates.csv``.

    Note:
        Also writes ``run_metadata.csv`` with requested/completed/missing
        counts and the partial flag.
    """
    os.makedirs(output_dir, exist_ok=True)

    summary_path = os.path.join(output_dir, "bootstrap_summary.csv")
    replicates_path = os.path.join(output_dir, "bootstrap_replicates.csv")
    metadata_path = os.path.join(output_dir, "run_metadata.csv")

    add_reported_columns(summary).to_csv(summary_path, index=False)
    replicates.to_frame().to_csv(replicates_path, index=False)
    _build_run_metadata(replicates).to_csv(metadata_path, index=False)

    logger.info("Saved bootstrap summary to %s", summary_path)
    logger.info("Saved bootstrap replicates to %s", replicates_path)
    logger.info("Saved run metadata to %s", metadata_path)

    return summary_path, replicates_path
