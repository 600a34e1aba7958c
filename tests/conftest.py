import json
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

FIXTURES = Path(__file__).parent / "fixtures"


def make_cohort(n=800, seed=7):
    """Synthetic stroke cohort with the published column layout."""
    rng = np.random.default_rng(seed)
    age = rng.uniform(18, 85, n).round(1)
    hypertension = rng.binomial(1, np.clip(0.02 + 0.004 * (age - 18), 0, 1))
    heart_disease = rng.binomial(1, np.clip(0.01 + 0.002 * (age - 18), 0, 1))
    ever_married = np.where(age > 30,
                            rng.choice(["Yes", "No"], n, p=[0.8, 0.2]),
                            rng.choice(["Yes", "No"], n, p=[0.3, 0.7]))
    glucose = rng.gamma(9, 12, n).round(2)
    bmi = rng.normal(29, 6, n).clip(12, 70).round(1)
    bmi[rng.random(n) < 0.05] = np.nan
    logit = -7 + 0.07 * age + 0.6 * hypertension + 0.5 * heart_disease + 0.004 * glucose
    stroke = rng.binomial(1, 1 / (1 + np.exp(-logit)))
    df = pd.DataFrame({
        "id": np.arange(1, n + 1),
        "gender": rng.choice(["Male", "Female"], n, p=[0.42, 0.58]),
        "age": age,
        "hypertension": hypertension,
        "heart_disease": heart_disease,
        "ever_married": ever_married,
        "work_type": rng.choice(["Private", "Self-employed", "Govt_job"], n, p=[0.6, 0.2, 0.2]),
        "Residence_type": rng.choice(["Urban", "Rural"], n),
        "avg_glucose_level": glucose,
        "bmi": bmi,
        "smoking_status": rng.choice(["formerly smoked", "never smoked", "smokes", "Unknown"],
                                     n, p=[0.17, 0.37, 0.16, 0.30]),
        "stroke": stroke,
    })
    df.loc[3, "gender"] = "Other"
    return df


@pytest.fixture
def cohort():
    return make_cohort()


@pytest.fixture
def cohort_csv(tmp_path, cohort):
    path = tmp_path / "healthcare-dataset-stroke-data.csv"
    cohort.to_csv(path, index=False, na_rep="N/A")
    return path


@pytest.fixture
def sample_csv():
    return FIXTURES / "stroke_sample.csv"


@pytest.fixture
def expected_cleaned():
    return pd.read_csv(FIXTURES / "expected_cleaned.csv")


@pytest.fixture
def expected_outputs():
    with open(FIXTURES / "expected_outputs.json") as f:
        return json.load(f)


@pytest.fixture
def rng():
    return np.random.default_rng(42)
