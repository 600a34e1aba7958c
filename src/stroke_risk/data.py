import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import shapiro

from stroke_risk.exceptions import ImputationError, UnexpectedMissingValuesError
from stroke_risk.schema import SCHEMA

logger = logging.getLogger(__name__)


@dataclass
class BmiDiagnostic:
    percentile: float
    cutoff: float
    n_observed: int
    n_above_cutoff: int
    statistic: float
    p_value: float
    is_normal: bool


def load_data(path, schema=SCHEMA):
    df = pd.read_csv(path, na_values=[schema.bmi_missing_token])
    schema.validate(df)
    df[schema.bmi_column] = pd.to_numeric(df[schema.bmi_column], errors="coerce")
    # a blank smoking cell is the same missing marker as "Unknown"
    df[schema.smoking_column] = df[schema.smoking_column].fillna(schema.smoking_unknown)
    for col in schema.categorical_columns:
        df[col] = df[col].where(df[col].isna(), df[col].astype(str))
    unseen = schema.unknown_levels(df)
    if unseen:
        logger.warning("Unrecognised categorical levels: %s", unseen)
    logger.info("Loaded %d rows x %d columns from %s", len(df), df.shape[1], path)
    return df


def missing_value_report(df, schema=SCHEMA):
    counts = df.isnull().sum()
    smoking = schema.smoking_column
    if smoking in df.columns:
        counts[smoking] += int((df[smoking] == schema.smoking_unknown).sum())
    report = pd.DataFrame({
        "missing_count": counts.astype(int),
        "missing_pct": (counts / max(len(df), 1)) * 100,
    })
    report.index.name = "column"
    return report


def check_unexpected_missing(df, policy="raise", schema=SCHEMA):
    expected = [c for c in schema.expected_missing if c in df.columns]
    counts = df.drop(columns=expected).isnull().sum()
    counts = counts[counts > 0]
    if counts.empty:
        return df
    if policy == "raise":
        raise UnexpectedMissingValuesError(counts.to_dict())
    if policy != "drop":
        raise ValueError(f"Unknown missing-value policy: {policy!r}")
    mask = df[counts.index].isnull().any(axis=1)
    logger.warning("Dropping %d rows with unexpected missing values in %s",
                   int(mask.sum()), list(counts.index))
    return df.loc[~mask]


def drop_rare_gender(df, schema=SCHEMA):
    rare = df[schema.gender_column] == schema.rare_gender
    if rare.any():
        logger.info("Removing %d row(s) with gender=%r", int(rare.sum()), schema.rare_gender)
    return df.loc[~rare]


def bmi_distribution_check(df, percentile=98.0, alpha=0.05, column=SCHEMA.bmi_column):
    """Shapiro-Wilk normality check on observed BMI below the given percentile.

    Only a diagnostic: a non-normal result argues against mean imputation,
    it never restricts the pool that ``impute_bmi`` samples from.
    """
    observed = df[column].dropna().to_numpy(dtype=float)
    if observed.size == 0:
        raise ImputationError("No observed BMI values")
    cutoff = float(np.percentile(observed, percentile))
    trimmed = observed[observed <= cutoff]
    if trimmed.size < 3 or np.ptp(trimmed) == 0:
        statistic, p_value = np.nan, np.nan
    else:
        statistic, p_value = shapiro(trimmed)
    is_normal = bool(p_value >= alpha) if not np.isnan(p_value) else False
    return BmiDiagnostic(
        percentile=percentile,
        cutoff=cutoff,
        n_observed=int(observed.size),
        n_above_cutoff=int((observed > cutoff).sum()),
        statistic=float(statistic),
        p_value=float(p_value),
        is_normal=is_normal,
    )


def impute_bmi(df, rng, column=SCHEMA.bmi_column):
    df = df.copy()
    missing = df[column].isna()
    if not missing.any():
        return df
    pool = df.loc[~missing, column].to_numpy()
    if pool.size == 0:
        raise ImputationError("Cannot impute BMI: no observed values")
    df.loc[missing, column] = rng.choice(pool, size=int(missing.sum()), replace=True)
    logger.info("Imputed %d BMI values from %d observed", int(missing.sum()), pool.size)
    return df


def impute_smoking_status(df, rng, target=SCHEMA.target, unknown=SCHEMA.smoking_unknown,
                          column=SCHEMA.smoking_column):
    df = df.copy()
    for label, stratum in df.groupby(target, sort=True):
        is_unknown = stratum[column].isna() | (stratum[column] == unknown)
        unknown_idx = stratum.index[is_unknown]
        if len(unknown_idx) == 0:
            continue
        pool = stratum.loc[~is_unknown, column].to_numpy()
        if pool.size == 0:
            raise ImputationError(f"No observed smoking status in stratum {target}={label}")
        df.loc[unknown_idx, column] = rng.choice(pool, size=len(unknown_idx), replace=True)
        logger.info("Imputed %d %s values in stratum %s=%s", len(unknown_idx), column, target, label)
    return df


def clean_data(df, rng, missing_policy="raise", schema=SCHEMA):
    n_before = len(df)
    df = drop_rare_gender(df, schema)
    df = check_unexpected_missing(df, missing_policy, schema)
    df = impute_bmi(df, rng, column=schema.bmi_column)
    df = impute_smoking_status(df, rng, target=schema.target, unknown=schema.smoking_unknown,
                               column=schema.smoking_column)
    df = df.drop(columns=[schema.id_column], errors="ignore").reset_index(drop=True)
    logger.info("Cleaned table: %d -> %d rows", n_before, len(df))
    return df
