from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import pandas as pd

from stroke_risk.exceptions import SchemaError


@dataclass(frozen=True)
class StrokeSchema:
    """Column layout of the healthcare stroke dataset."""

    id_column: str = "id"
    target: str = "stroke"
    gender_column: str = "gender"
    bmi_column: str = "bmi"
    smoking_column: str = "smoking_status"
    continuous: Tuple[str, ...] = ("age", "avg_glucose_level", "bmi")
    binary: Tuple[str, ...] = ("hypertension", "heart_disease")
    categorical: Dict[str, Tuple[str, ...]] = field(default_factory=lambda: {
        "gender": ("Male", "Female", "Other"),
        "ever_married": ("Yes", "No"),
        "work_type": ("Private", "Self-employed", "Govt_job", "children", "Never_worked"),
        "Residence_type": ("Urban", "Rural"),
        "smoking_status": ("formerly smoked", "never smoked", "smokes", "Unknown"),
    })
    rare_gender: str = "Other"
    smoking_unknown: str = "Unknown"
    bmi_missing_token: str = "N/A"

    @property
    def columns(self) -> List[str]:
        # header order of the published csv
        return [
            self.id_column, self.gender_column, "age", "hypertension", "heart_disease",
            "ever_married", "work_type", "Residence_type", "avg_glucose_level",
            self.bmi_column, self.smoking_column, self.target,
        ]

    @property
    def categorical_columns(self) -> List[str]:
        return list(self.categorical)

    @property
    def association_features(self) -> List[str]:
        return list(self.binary) + self.categorical_columns

    @property
    def expected_missing(self) -> Tuple[str, ...]:
        return (self.bmi_column, self.smoking_column)

    def validate(self, df: pd.DataFrame, required=None) -> None:
        required = self.columns if required is None else list(required)
        missing = [c for c in required if c not in df.columns]
        if missing:
            raise SchemaError(f"Missing columns: {missing}")

    def unknown_levels(self, df: pd.DataFrame) -> Dict[str, List[str]]:
        """Observed categorical values outside the declared levels, per column."""
        unseen = {}
        for col, levels in self.categorical.items():
            if col not in df.columns:
                continue
            extra = sorted(set(df[col].dropna()) - set(levels))
            if extra:
                unseen[col] = extra
        return unseen


SCHEMA = StrokeSchema()
