"""Figures for bootstrap replicate distributions.

Plotting functions receive precomputed replicates and summary tables and
only render them; no statistics are computed here beyond what is drawn.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.axes import Axes

from .reporting import format_p_value, format_value_with_uncertainty
from .schema import SUMMARY_COLUMNS
from .stats.engine import ReplicateSet

FIGURE_DPI = 300


@dataclass(frozen=True)
class StyleConfig:
    BASE_FONTSIZE: float = 11.0
    LABEL_FONTSIZE: float = 11.0
    TICK_FONTSIZE: float = 10.0
    LINEWIDTH: float = 1.8
    LINEWIDTH_THIN: float = 1.0
    GRID_ALPHA: float = 0.20
    HIST_ALPHA: float = 0.75
    PANEL_SIZE: tuple[float, float] = (4.2, 3.2)


STYLE = StyleConfig()


def apply_style() -> None:
    """Apply the package Matplotlib style."""
    plt.rcParams.update(
        {
            "font.size": STYLE.BASE_FONTSIZE,
            "axes.labelsize": STYLE.LABEL_FONTSIZE,
            "xtick.labelsize": STYLE.TICK_FONTSIZE,
            "ytick.labelsize": STYLE.TICK_FONTSIZE,
            "mathtext.fontset": "stix",
            "mathtext.default": "regular",
            "axes.linewidth": STYLE.LINEWIDTH_THIN,
            "axes.spines.top": False,
            "axes.spines.right": False,
            "grid.alpha": STYLE.GRID_ALPHA,
            "grid.linestyle": ":",
            "legend.frameon": False,
            "lines.linewidth": STYLE.LINEWIDTH,
            "savefig.dpi": FIGURE_DPI,
            "savefig.bbox": "tight",
        }
    )


def _draw_panel(ax: Axes, values: np.ndarray, row: pd.Series | None, name: str) -> None:
    cols = SUMMARY_COLUMNS
    if len(values) == 0:
        ax.text(0.5, 0.5, "no usable replicates", ha="center", va="center",
                transform=ax.transAxes)
        ax.set_title(name)
        return

    bins = int(min(40, max(5, math.ceil(math.sqrt(len(values))))))
    ax.hist(values, bins=bins, color="0.6", edgecolor="black",
            linewidth=0.6, alpha=STYLE.HIST_ALPHA)

    if row is not None:
        mean = float(row[cols.mean])
        if np.isfinite(mean):
            ax.axvline(mean, color="black", linewidth=STYLE.LINEWIDTH, label="mean")
        for bound in (row[cols.ci_lower], row[cols.ci_upper]):
            if np.isfinite(float(bound)):
                ax.axvline(float(bound), color="black", linestyle="--",
                           linewidth=STYLE.LINEWIDTH_THIN)
        label = format_value_with_uncertainty(mean, float(row[cols.std_error]))
        p_txt = format_p_value(float(row[cols.p_value]))
        ax.text(0.02, 0.97, f"{label}\np = {p_txt}\nM = {int(row[cols.n_usable])}",
                ha="left", va="top", transform=ax.transAxes,
                fontsize=STYLE.TICK_FONTSIZE)

    ax.set_title(name)
    ax.set_xlabel("Bootstrap estimate")
    ax.set_ylabel("Count")
    ax.grid(True, axis="y")


def plot_replicate_distribution(
    replicates: ReplicateSet,
    summary: pd.DataFrame | None = None,
    output_dir: str = "output",
    filename: str = "replicate_distribution.png",
) -> str:
    """Draw one histogram panel per estimate series and save it as PNG.

    Args:
        replicates: Replicate set from a bootstrap run.
        summary: Optional summary table; when given, the mean and confidence
            bounds are overlaid and annotated.
        output_dir: Destination directory (created if missing).
        filename: PNG file name.

    Returns:
        str: Path of the written figure.
    """
    apply_style()
    os.makedirs(output_dir, exist_ok=True)

    names = replicates.names
    n_panels = max(1, len(names))
    ncols = min(3, n_panels)
    nrows = int(math.ceil(n_panels / ncols))
    fig, axes = plt.subplots(
        nrows,
        ncols,
        figsize=(STYLE.PANEL_SIZE[0] * ncols, STYLE.PANEL_SIZE[1] * nrows),
        squeeze=False,
    )

    rows_by_name = {}
    if summary is not None and not summary.empty:
        rows_by_name = {
            str(r[SUMMARY_COLUMNS.name]): r for _, r in summary.iterrows()
        }

    for idx, ax in enumerate(axes.flat):
        if idx >= len(names):
            ax.set_visible(False)
            continue
        name = names[idx]
        _draw_panel(ax, replicates.usable(name), rows_by_name.get(name), name)

    fig.tight_layout()
    path = os.path.join(output_dir, filename)
    fig.savefig(path, dpi=FIGURE_DPI)
    plt.close(fig)
    return path
