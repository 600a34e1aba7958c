# Exploratory Data Analysis (EDA) - Stroke Prediction Dataset

## 1. Import Libraries
import os
import sys

import numpy as np

from stroke_risk import plots
from stroke_risk.association import describe_numeric_by_target, run_association_tests
from stroke_risk.data import bmi_distribution_check, clean_data, load_data, missing_value_report
from stroke_risk.features import correlation_matrix, encode_categoricals
from stroke_risk.schema import SCHEMA

PLOT_DIR = "notebooks/eda_plots"
os.makedirs(PLOT_DIR, exist_ok=True)

## 2. Load Data
try:
    df = load_data('data/raw/healthcare-dataset-stroke-data.csv')
    print("Data loaded successfully.")
    print(df.head())
except FileNotFoundError:
    print("Error: data/raw/healthcare-dataset-stroke-data.csv not found.")
    sys.exit(1)

## 3. Data Inspection
print("\n--- Data Info ---")
df.info()

print("\n--- Missing Values (smoking 'Unknown' counted as missing) ---")
print(missing_value_report(df))

print("\n--- BMI normality below the 98th percentile ---")
print(bmi_distribution_check(df))

## 4. Cleaning with a fixed seed
clean = clean_data(df, np.random.default_rng(42))
print(describe_numeric_by_target(clean))

## 5. Target Distribution
plots.plot_target_distribution(clean, f"{PLOT_DIR}/target_distribution.png")
print("\nTarget distribution plot saved to", f"{PLOT_DIR}/target_distribution.png")

## 6. Distributions and stroke rates
plots.plot_numeric_distributions(clean, PLOT_DIR)
plots.plot_target_rates(clean, PLOT_DIR, SCHEMA.association_features)
print(run_association_tests(clean, SCHEMA.association_features))

## 7. Correlation Matrix
corr = correlation_matrix(encode_categoricals(clean))
plots.plot_correlation_heatmap(corr, f"{PLOT_DIR}/correlation_matrix.png")
print("Correlation matrix plot saved to", f"{PLOT_DIR}/correlation_matrix.png")
