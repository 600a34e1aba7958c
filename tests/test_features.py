import numpy as np
import pandas as pd
import pytest

from stroke_risk.data import clean_data
from stroke_risk.features import (
    correlation_matrix,
    encode_categoricals,
    sanitize_column_name,
    select_correlated_features,
)


@pytest.fixture
def clean(cohort, rng):
    return clean_data(cohort, rng)


@pytest.mark.parametrize("name, expected", [
    ("work_type_Self-employed", "work_type_Self_employed"),
    ("smoking_status_never smoked", "smoking_status_never_smoked"),
    ("age", "age"),
])
def test_sanitize_column_name(name, expected):
    assert sanitize_column_name(name) == expected


def test_encode_k_minus_one_columns():
    df = pd.DataFrame({
        "work_type": ["Private", "Self-employed", "Govt_job", "children", "Never_worked", "Private"],
        "age": [30.0, 40.0, 50.0, 8.0, 19.0, 61.0],
    })
    out = encode_categoricals(df, columns=["work_type"])
    indicators = [c for c in out.columns if c.startswith("work_type_")]
    assert len(indicators) == df["work_type"].nunique() - 1
    assert "work_type" not in out.columns
    assert "work_type_Self_employed" in out.columns
    assert list(out["age"]) == list(df["age"])
    for col in indicators:
        assert set(out[col].unique()) <= {0, 1}


def test_encode_cleaned_cohort(clean):
    out = encode_categoricals(clean)
    for col in ("gender", "ever_married", "work_type", "Residence_type", "smoking_status"):
        assert col not in out.columns
        assert sum(c.startswith(col + "_") for c in out.columns) == clean[col].nunique() - 1
    assert all(c == sanitize_column_name(c) for c in out.columns)
    assert all(np.issubdtype(dtype, np.number) for dtype in out.dtypes)


def test_correlation_matrix_symmetric_unit_diagonal(clean):
    corr = correlation_matrix(encode_categoricals(clean))
    np.testing.assert_allclose(corr.values, corr.values.T)
    np.testing.assert_allclose(np.diag(corr.values), 1.0)
    assert "stroke" in corr.columns


def test_constant_column_gives_nan_correlation():
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0, 4.0], "flat": [1, 1, 1, 1], "stroke": [0, 0, 1, 1]})
    corr = correlation_matrix(df)
    assert np.isnan(corr.loc["flat", "stroke"])
    assert np.isnan(corr.loc["flat", "flat"])
    assert corr.loc["x", "x"] == pytest.approx(1.0)


def test_select_correlated_features_threshold_is_strict():
    cols = ["stroke", "at_threshold", "above", "negative", "undefined", "weak"]
    corr = pd.DataFrame(np.eye(len(cols)), index=cols, columns=cols)
    corr.loc[cols, "stroke"] = [1.0, 0.10, 0.1001, -0.5, np.nan, 0.02]
    assert select_correlated_features(corr, "stroke", 0.10) == ["negative", "above"]


def test_select_correlated_features_on_cohort(clean):
    corr = correlation_matrix(encode_categoricals(clean))
    selected = select_correlated_features(corr, "stroke", 0.10)
    assert "stroke" not in selected
    assert "age" in selected
    assert all(abs(corr.loc[c, "stroke"]) > 0.10 for c in selected)
