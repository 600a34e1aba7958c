import logging
from dataclasses import asdict, dataclass

import pandas as pd
from scipy.stats import chi2_contingency

from stroke_risk.exceptions import AssociationTestError
from stroke_risk.schema import SCHEMA

logger = logging.getLogger(__name__)


@dataclass
class AssociationResult:
    feature: str
    statistic: float
    p_value: float
    dof: int
    significant: bool


def contingency_table(df, feature, target=SCHEMA.target):
    pair = df[[feature, target]].dropna()
    return pd.crosstab(pair[feature], pair[target])


def target_rates(df, feature, target=SCHEMA.target):
    pair = df[[feature, target]].dropna()
    return pd.crosstab(pair[feature], pair[target], normalize="index")


def chi_square_test(df, feature, target=SCHEMA.target, alpha=0.05):
    """Chi-square test of homogeneity of ``target`` across the levels of ``feature``.

    H0: P(target | level) is the same for every level. Rows with a missing
    value in either column are left out of this test only.
    """
    table = contingency_table(df, feature, target)
    if table.shape[0] < 2 or table.shape[1] < 2:
        raise AssociationTestError(
            f"{feature} x {target}: need at least a 2x2 table, got {table.shape[0]}x{table.shape[1]}")
    if (table.sum(axis=0) == 0).any() or (table.sum(axis=1) == 0).any():
        raise AssociationTestError(f"{feature} x {target}: empty row or column")
    statistic, p_value, dof, _ = chi2_contingency(table)
    return AssociationResult(
        feature=feature,
        statistic=float(statistic),
        p_value=float(p_value),
        dof=int(dof),
        significant=bool(p_value < alpha),
    )


def run_association_tests(df, features, target=SCHEMA.target, alpha=0.05):
    rows = []
    for feature in features:
        try:
            result = chi_square_test(df, feature, target, alpha)
        except AssociationTestError as exc:
            logger.warning("Chi-square test failed: %s", exc)
            rows.append({"feature": feature, "statistic": float("nan"), "p_value": float("nan"),
                         "dof": 0, "significant": False, "error": str(exc)})
            continue
        rows.append({**asdict(result), "error": None})
    return pd.DataFrame(rows, columns=["feature", "statistic", "p_value", "dof", "significant", "error"])


def describe_numeric_by_target(df, columns=SCHEMA.continuous, target=SCHEMA.target):
    return df.groupby(target)[list(columns)].agg(["count", "mean", "std", "median"])
