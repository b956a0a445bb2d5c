"""Pytest configuration for repository-relative imports and shared data."""

import os
import sys

import matplotlib
import pandas as pd
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

matplotlib.use("Agg")


@pytest.fixture()
def sample_frame():
    """Eight-point sample with mean 5 and population SD 2."""
    return pd.DataFrame({"x": [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]})
