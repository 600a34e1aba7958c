from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from stroke_risk.schema import SCHEMA

MISSING_POLICIES = ("raise", "drop")


def default_thresholds() -> Tuple[float, ...]:
    return tuple(round(float(t), 2) for t in np.arange(0.05, 1.0, 0.05))


@dataclass
class PipelineConfig:
    data_path: Path = Path("data/raw/healthcare-dataset-stroke-data.csv")
    output_dir: Path = Path("outputs")
    seed: int = 42
    decision_threshold: float = 0.40
    correlation_threshold: float = 0.10
    alpha: float = 0.05
    bmi_percentile: float = 98.0
    thresholds: Tuple[float, ...] = field(default_factory=default_thresholds)
    missing_policy: str = "raise"
    association_features: Tuple[str, ...] = tuple(SCHEMA.association_features)
    max_iter: int = 100
    experiment_name: str = "Stroke Risk Logistic Regression"
    tracking: bool = True
    tracking_uri: Optional[str] = None
    make_plots: bool = True

    def __post_init__(self):
        self.data_path = Path(self.data_path)
        self.output_dir = Path(self.output_dir)
        self.thresholds = tuple(sorted(float(t) for t in self.thresholds))
        if self.missing_policy not in MISSING_POLICIES:
            raise ValueError(f"missing_policy must be one of {MISSING_POLICIES}, got {self.missing_policy!r}")
        for name in ("decision_threshold", "correlation_threshold", "alpha"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}")
        outside = [t for t in self.thresholds if not 0.0 <= t <= 1.0]
        if outside:
            raise ValueError(f"thresholds must lie in [0, 1], got {outside}")
        if not 0.0 < self.bmi_percentile <= 100.0:
            raise ValueError(f"bmi_percentile must lie in (0, 100], got {self.bmi_percentile}")

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)
