"""Tests for standard errors of vectors, frames and fitted models."""

import math

import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm
import statsmodels.formula.api as smf

from fitstats.errors import InsufficientData, InvalidInput
from fitstats.models import (
    EstimateWithPValue,
    GeneralizedFit,
    LinearFit,
    MixedFit,
    NumericFrame,
    NumericVector,
    classify,
    se,
)


@pytest.fixture(scope="module")
def regression_data():
    rng = np.random.default_rng(0)
    n = 200
    x = rng.normal(size=n)
    y = 1.0 + 0.8 * x + rng.normal(scale=0.5, size=n)
    logit = -0.3 + 1.2 * x
    outcome = (rng.uniform(size=n) < 1.0 / (1.0 + np.exp(-logit))).astype(float)
    return pd.DataFrame({"x": x, "y": y, "outcome": outcome})


@pytest.fixture(scope="module")
def grouped_data():
    rng = np.random.default_rng(1)
    groups = np.repeat(np.arange(12), 10)
    offsets = rng.normal(scale=2.0, size=12)[groups]
    days = np.tile(np.arange(10, dtype=float), 12)
    y = 5.0 + 0.5 * days + offsets + rng.normal(scale=1.0, size=groups.size)
    return pd.DataFrame({"y": y, "days": days, "subject": groups})


def test_vector_standard_error_of_mean():
    assert se([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(
        math.sqrt(32.0 / 7.0 / 8.0)
    )


def test_vector_drops_nan_and_needs_two_values():
    assert se(np.array([1.0, np.nan, 3.0])) == pytest.approx(1.0)
    with pytest.raises(InsufficientData):
        se([1.0, np.nan])


def test_frame_gives_one_standard_error_per_column():
    frame = pd.DataFrame({"a": [1.0, 2.0, 3.0], "b": [5.0, np.nan, np.nan]})
    out = se(frame)
    assert out.name == "std_err"
    assert out["a"] == pytest.approx(1.0 / math.sqrt(3.0))
    assert math.isnan(out["b"])


def test_standard_error_from_estimate_and_p_value():
    assert se({"estimate": 0.3, "p_value": 0.002}) == pytest.approx(0.0971, abs=1e-4)
    assert se({"estimate": 1.96, "p.value": 0.05}) == pytest.approx(1.0, abs=1e-3)


@pytest.mark.parametrize(
    "value",
    [{"estimate": 0.3}, {"estimate": 0.3, "p_value": 0.0}, {"estimate": 0.3, "p_value": 1.5}],
)
def test_bad_estimate_mappings_raise(value):
    with pytest.raises(InvalidInput):
        se(value)


def test_ols_fit_matches_statsmodels_bse(regression_data):
    fit = smf.ols("y ~ x", data=regression_data).fit()
    out = se(fit)

    assert list(out.columns) == ["term", "estimate", "std_error"]
    assert list(out["term"]) == ["Intercept", "x"]
    np.testing.assert_allclose(out["std_error"], fit.bse.to_numpy())


def test_logit_glm_is_reported_on_odds_ratio_scale(regression_data):
    fit = smf.glm(
        "outcome ~ x", data=regression_data, family=sm.families.Binomial()
    ).fit()
    out = se(fit).set_index("term")

    beta = fit.params
    np.testing.assert_allclose(out["estimate"], np.exp(beta.to_numpy()))
    np.testing.assert_allclose(
        out["std_error"], np.exp(beta.to_numpy()) * fit.bse.to_numpy()
    )
    assert out.loc["x", "estimate"] > 1.0


def test_identity_link_glm_is_left_on_coefficient_scale(regression_data):
    fit = smf.glm("y ~ x", data=regression_data, family=sm.families.Gaussian()).fit()
    out = se(fit)
    np.testing.assert_allclose(out["estimate"], fit.params.to_numpy())
    np.testing.assert_allclose(out["std_error"], fit.bse.to_numpy())


def test_mixed_fit_gives_joint_standard_error_per_group(grouped_data):
    fit = smf.mixedlm("y ~ days", grouped_data, groups="subject").fit()
    out = se(fit)

    assert out.index.name == "group"
    assert len(out) == 12
    assert list(out.columns) == ["Intercept"]
    fixed = float(np.asarray(fit.bse_fe)[0])
    assert (out["Intercept"] > fixed).all()


def test_classify_resolves_each_variant(regression_data, grouped_data):
    ols = smf.ols("y ~ x", data=regression_data).fit()
    glm = smf.glm("y ~ x", data=regression_data).fit()
    mixed = smf.mixedlm("y ~ days", grouped_data, groups="subject").fit()

    assert isinstance(classify([1.0, 2.0]), NumericVector)
    assert isinstance(classify(pd.Series([1.0, 2.0])), NumericVector)
    assert isinstance(classify(np.zeros((3, 2))), NumericFrame)
    assert isinstance(classify({"estimate": 1.0, "p_value": 0.5}), EstimateWithPValue)
    assert isinstance(classify(ols), LinearFit)
    assert isinstance(classify(glm), GeneralizedFit)
    assert isinstance(classify(mixed), MixedFit)


@pytest.mark.parametrize("value", ["text", object(), ["a", "b"], None])
def test_unsupported_inputs_raise(value):
    with pytest.raises(InvalidInput, match="Cannot compute a standard error"):
        se(value)
