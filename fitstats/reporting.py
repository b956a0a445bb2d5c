"""Format summary tables for human-readable reporting.

Numeric columns are never modified; formatted string columns are added
next to them so downstream code keeps full precision.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np
import pandas as pd

from .schema import SUMMARY_COLUMNS


def round_uncertainty(uncertainty: float) -> tuple[float, int]:
    """Round an uncertainty to significant-figure conventions.

    One significant figure by default, two when the leading digit is 1.

    Args:
        uncertainty (float): Absolute uncertainty, e.g. a standard error.

    Returns:
        tuple[float, int]: Rounded uncertainty and the number of decimal
        places implied (never negative).

    Raises:
        ValueError: If uncertainty is non-finite or non-positive.
    """
    u = float(uncertainty)
    if not np.isfinite(u) or u <= 0:
        raise ValueError(f"Uncertainty must be finite and > 0, got {uncertainty!r}")

    exponent = int(np.floor(np.log10(abs(u))))
    leading = abs(u) / (10**exponent)
    sig_figs = 2 if 1.0 <= leading < 2.0 else 1
    ndigits = sig_figs - 1 - exponent
    rounded_u = round(abs(u), ndigits)
    return float(rounded_u), int(max(0, ndigits))


def uncertainty_decimal_places(uncertainty: float) -> int:
    """Return decimal places implied by rounding ``uncertainty``."""
    rounded_u, ndigits = round_uncertainty(uncertainty)
    if ndigits <= 0:
        return 0
    txt = f"{rounded_u:.12f}".rstrip("0")
    if "." not in txt:
        return 0
    return len(txt.split(".", 1)[1])


def format_value_with_uncertainty(value: float, uncertainty: float) -> str:
    """Format ``value ± uncertainty`` with matching decimal places.

    Zero or non-finite uncertainties fall back to six significant figures.
    """
    v = float(value)
    u = float(uncertainty)
    if not np.isfinite(v):
        return ""
    if not np.isfinite(u) or u <= 0:
        return f"{v:.6g} ± {u:.6g}" if np.isfinite(u) else f"{v:.6g}"
    dp = uncertainty_decimal_places(u)
    rounded_u, _ = round_uncertainty(u)
    return f"{v:.{dp}f} ± {rounded_u:.{dp}f}"


def format_p_value(value: float) -> str:
    """Format p-values consistently for tables and annotations."""
    if not np.isfinite(value):
        return "NaN"
    if value < 1e-3:
        return "<0.001"
    return f"{value:.3f}"


def validate_error_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    """Reject negative standard errors.

    NaN is allowed; it marks series with too few usable replicates.

    Raises:
        KeyError: If a column is missing.
        ValueError: If any finite value is negative.
    """
    for col in columns:
        if col not in df.columns:
            raise KeyError(f"Missing column '{col}' for reporting format.")
        values = pd.to_numeric(df[col], errors="coerce")
        bad = values.notna() & (values < 0)
        if bool(bad.any()):
            raise ValueError(
                f"Negative standard errors in '{col}'. "
                f"Example row indices: {list(df.index[bad][:5])}."
            )


def add_reported_columns(summary: pd.DataFrame, suffix: str = " (reported)") -> pd.DataFrame:
    """Add formatted estimate, interval and p-value columns to a summary table.

    Args:
        summary (pandas.DataFrame): Output of
            :func:`fitstats.stats.summary.summarize_replicates`.
        suffix (str, optional): Suffix for the generated columns.

    Returns:
        pandas.DataFrame: Copy of ``summary`` with ``estimate``, ``ci`` and
        ``p_value`` string columns appended.
    """
    cols = SUMMARY_COLUMNS
    out = summary.copy()
    validate_error_columns(out, [cols.std_error])

    means = pd.to_numeric(out[cols.mean], errors="coerce")
    ses = pd.to_numeric(out[cols.std_error], errors="coerce")
    lows = pd.to_numeric(out[cols.ci_lower], errors="coerce")
    highs = pd.to_numeric(out[cols.ci_upper], errors="coerce")
    ps = pd.to_numeric(out[cols.p_value], errors="coerce")

    out[f"estimate{suffix}"] = [
        format_value_with_uncertainty(m, s) for m, s in zip(means, ses)
    ]

    ci_text = []
    for low, high, s in zip(lows, highs, ses):
        if not (np.isfinite(low) and np.isfinite(high)):
            ci_text.append("")
        elif np.isfinite(s) and s > 0:
            dp = uncertainty_decimal_places(s)
            ci_text.append(f"[{low:.{dp}f}, {high:.{dp}f}]")
        else:
            ci_text.append(f"[{low:.6g}, {high:.6g}]")
    out[f"ci{suffix}"] = ci_text
    out[f"p_value{suffix}"] = [
        format_p_value(p) if not math.isnan(p) else "" for p in ps
    ]
    return out
