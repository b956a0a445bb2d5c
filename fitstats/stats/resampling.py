"""Draw nonparametric bootstrap resamples of a tabular dataset.

Each resample is a vector of row indices drawn uniformly with replacement
from ``[0, R)``, where ``R`` is the number of rows in the dataset, so every
resample has exactly ``R`` rows. Resamples are drawn once per run and never
re-drawn; the row-index arrays are marked read-only.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd

from ..errors import InvalidInput


@dataclass(frozen=True)
class Resample:
    """One bootstrap resample.

    Attributes:
        resample_id: 1-based sequential identifier within a run.
        rows: Read-only integer array of row positions into the dataset.
    """

    resample_id: int
    rows: np.ndarray

    def __len__(self) -> int:
        return int(len(self.rows))


def as_dataset(data: Any) -> pd.DataFrame:
    """Coerce supported dataset inputs into a DataFrame.

    Accepts a DataFrame (returned as-is), a Series or 1-D numeric sequence
    (one column named after the Series, else ``"x"``), or a sequence of
    row mappings.

    Raises:
        InvalidInput: If the input cannot be interpreted as rows.
    """
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, pd.Series):
        return data.to_frame(name=data.name if data.name is not None else "x")
    if isinstance(data, np.ndarray):
        if data.ndim == 1:
            return pd.DataFrame({"x": data})
        if data.ndim == 2:
            return pd.DataFrame(data)
        raise InvalidInput(f"Arrays must be 1-D or 2-D, got {data.ndim}-D.")
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        items = list(data)
        if items and all(isinstance(row, Mapping) for row in items):
            return pd.DataFrame(items)
        if all(isinstance(v, numbers.Number) for v in items):
            return pd.DataFrame({"x": np.asarray(items, dtype=float)})
    raise InvalidInput(
        f"Unsupported dataset type {type(data).__name__}; "
        "expected a DataFrame, Series, array, or sequence of row mappings."
    )


def validate_run_size(n_rows: int, n_iterations: int) -> None:
    """Reject empty datasets and non-positive iteration counts."""
    if isinstance(n_iterations, bool) or not isinstance(n_iterations, numbers.Integral):
        raise InvalidInput(f"n_iterations must be an integer, got {n_iterations!r}.")
    if int(n_rows) < 1:
        raise InvalidInput("Dataset has no rows; cannot resample.")
    if int(n_iterations) < 1:
        raise InvalidInput(f"n_iterations must be >= 1, got {n_iterations}.")


def draw_resamples(
    n_rows: int,
    n_iterations: int,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> list[Resample]:
    """Draw ``n_iterations`` resamples of ``n_rows`` row indices each.

    Args:
        n_rows (int): Number of rows ``R`` in the dataset.
        n_iterations (int): Number of resamples ``N``.
        seed (int, optional): Seed for ``numpy.random.default_rng``. Ignored
            when ``rng`` is given.
        rng (numpy.random.Generator, optional): Caller-managed generator.

    Returns:
        list[Resample]: ``N`` resamples with ids ``1..N``.

    Raises:
        InvalidInput: If ``n_rows < 1`` or ``n_iterations < 1``.
    """
    validate_run_size(n_rows, n_iterations)
    generator = rng if rng is not None else np.random.default_rng(seed)

    resamples: list[Resample] = []
    for resample_id in range(1, int(n_iterations) + 1):
        rows = generator.integers(0, int(n_rows), size=int(n_rows))
        rows.setflags(write=False)
        resamples.append(Resample(resample_id=resample_id, rows=rows))
    return resamples


def materialize(data: pd.DataFrame, resample: Resample) -> pd.DataFrame:
    """Return the rows of ``data`` selected by ``resample`` as a new frame."""
    return data.iloc[resample.rows].reset_index(drop=True)
