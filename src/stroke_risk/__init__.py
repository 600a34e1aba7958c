"""Stroke risk factor analysis: cleaning, association tests and a stepwise logistic model."""

__version__ = "0.1.0"
