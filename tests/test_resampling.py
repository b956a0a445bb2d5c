"""Tests for drawing and materializing bootstrap resamples."""

import numpy as np
import pandas as pd
import pytest

from fitstats.errors import InvalidInput
from fitstats.stats.resampling import (
    as_dataset,
    draw_resamples,
    materialize,
    validate_run_size,
)


@pytest.mark.parametrize("n_rows,n_iterations", [(1, 1), (1, 5), (8, 1), (17, 23)])
def test_resample_shape_and_bounds(n_rows, n_iterations):
    resamples = draw_resamples(n_rows, n_iterations, seed=3)

    assert len(resamples) == n_iterations
    assert [r.resample_id for r in resamples] == list(range(1, n_iterations + 1))
    for r in resamples:
        assert len(r) == n_rows
        assert r.rows.min() >= 0
        assert r.rows.max() < n_rows


def test_single_row_dataset_always_resamples_row_zero():
    resamples = draw_resamples(1, 10, seed=0)
    assert all(np.all(r.rows == 0) for r in resamples)


def test_resample_rows_are_read_only():
    resample = draw_resamples(5, 1, seed=1)[0]
    with pytest.raises(ValueError):
        resample.rows[0] = 4


def test_same_seed_gives_same_resamples():
    a = draw_resamples(10, 4, seed=42)
    b = draw_resamples(10, 4, seed=42)
    for ra, rb in zip(a, b):
        assert np.array_equal(ra.rows, rb.rows)


def test_generator_overrides_seed():
    a = draw_resamples(10, 3, seed=1, rng=np.random.default_rng(7))
    b = draw_resamples(10, 3, seed=2, rng=np.random.default_rng(7))
    for ra, rb in zip(a, b):
        assert np.array_equal(ra.rows, rb.rows)


def test_indices_cover_rows_roughly_uniformly():
    resamples = draw_resamples(4, 2000, seed=11)
    counts = np.bincount(np.concatenate([r.rows for r in resamples]), minlength=4)
    freq = counts / counts.sum()
    assert np.allclose(freq, 0.25, atol=0.02)


@pytest.mark.parametrize(
    "n_rows,n_iterations",
    [(0, 10), (5, 0), (5, -1), (5, 2.5), (5, True)],
)
def test_invalid_run_size_raises(n_rows, n_iterations):
    with pytest.raises(InvalidInput):
        validate_run_size(n_rows, n_iterations)
    with pytest.raises(InvalidInput):
        draw_resamples(n_rows, n_iterations)


def test_materialize_does_not_mutate_source():
    data = pd.DataFrame({"x": [1.0, 2.0, 3.0], "g": ["a", "b", "c"]})
    before = data.copy()
    resample = draw_resamples(len(data), 1, seed=5)[0]

    frame = materialize(data, resample)

    pd.testing.assert_frame_equal(data, before)
    assert list(frame.index) == [0, 1, 2]
    assert list(frame["x"]) == [data["x"].iloc[i] for i in resample.rows]


def test_as_dataset_accepts_common_shapes():
    assert list(as_dataset([1, 2, 3]).columns) == ["x"]
    assert list(as_dataset(pd.Series([1.0, 2.0], name="y")).columns) == ["y"]
    assert as_dataset(np.zeros((4, 2))).shape == (4, 2)
    rows = as_dataset([{"a": 1, "b": 2}, {"a": 3, "b": 4}])
    assert list(rows.columns) == ["a", "b"]


def test_as_dataset_rejects_unsupported_types():
    with pytest.raises(InvalidInput, match="Unsupported dataset type"):
        as_dataset("not a dataset")
    with pytest.raises(InvalidInput):
        as_dataset(np.zeros((2, 2, 2)))
