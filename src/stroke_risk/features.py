import logging
import re

import pandas as pd

from stroke_risk.schema import SCHEMA

logger = logging.getLogger(__name__)


def sanitize_column_name(name):
    # formula terms must be plain identifiers
    return re.sub(r"[^0-9a-zA-Z_]", "_", str(name).strip())


def encode_categoricals(df, columns=None):
    """Dummy-encode categorical columns, k levels -> k-1 indicator columns.

    The first level in sorted order is the reference. Only indicator and
    numeric columns are left in the result.
    """
    if columns is None:
        columns = [c for c in SCHEMA.categorical_columns if c in df.columns]
    SCHEMA.validate(df, required=columns)
    encoded = pd.get_dummies(df, columns=list(columns), drop_first=True, dtype=int)
    renamed = {c: sanitize_column_name(c) for c in encoded.columns if sanitize_column_name(c) != c}
    if renamed:
        logger.debug("Renaming columns for formula use: %s", renamed)
        encoded = encoded.rename(columns=renamed)
    if encoded.columns.duplicated().any():
        dupes = encoded.columns[encoded.columns.duplicated()].tolist()
        raise ValueError(f"Column names collide after sanitising: {dupes}")
    return encoded


def correlation_matrix(df):
    return df.select_dtypes(include="number").corr(method="pearson")


def select_correlated_features(corr, target=SCHEMA.target, threshold=0.10):
    """Predictors whose absolute correlation with ``target`` is strictly above ``threshold``.

    Undefined (NaN) correlations, e.g. from constant columns, never pass.
    """
    with_target = corr[target].drop(labels=[target]).dropna().abs()
    selected = with_target[with_target > threshold].sort_values(ascending=False)
    logger.info("%d predictor(s) with |r| > %.2f: %s", len(selected), threshold, list(selected.index))
    return list(selected.index)
