"""Define standardized column names for summary DataFrames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SummaryColumns:
    """Container for standardized summary-table column labels.

    These column names are used by every table that summarizes a replicate
    set, so exported CSVs, reporting helpers and plots agree on naming.

    Attributes:
        name: Name of the estimate series (for example a coefficient name or
            ``"icc"``).

        mean: Mean of the usable bootstrap replicates.

        std_error: Sample standard deviation of the usable replicates
            (denominator ``M - 1``).

        ci_lower / ci_upper: Confidence bounds at the requested level.

        p_value: Two-sided p-value against a true estimate of zero.

        n_usable: Number of non-missing replicates the statistics used.

        notes: Free-text diagnostics, empty when nothing went wrong.
    """

    name: str = "name"
    mean: str = "estimate_mean"
    std_error: str = "std_error"
    ci_lower: str = "ci_lower"
    ci_upper: str = "ci_upper"
    p_value: str = "p_value"
    n_usable: str = "n_usable"
    notes: str = "notes"

    def ordered(self) -> list[str]:
        return [
            self.name,
            self.mean,
            self.std_error,
            self.ci_lower,
            self.ci_upper,
            self.p_value,
            self.n_usable,
            self.notes,
        ]


SUMMARY_COLUMNS = SummaryColumns()
