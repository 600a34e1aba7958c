class StrokeRiskError(Exception):
    """Base class for errors raised by the analysis pipeline."""


class SchemaError(StrokeRiskError):
    """Input table does not carry the expected columns."""


class UnexpectedMissingValuesError(StrokeRiskError):
    """Missing values found in columns that are expected to be complete."""

    def __init__(self, counts):
        self.counts = dict(counts)
        detail = ", ".join(f"{col}={n}" for col, n in self.counts.items())
        super().__init__(f"Unexpected missing values: {detail}")


class ImputationError(StrokeRiskError):
    """A value could not be imputed because the source pool is empty."""


class AssociationTestError(StrokeRiskError):
    """A contingency table is degenerate and cannot be tested."""


class ModelFitError(StrokeRiskError):
    """The logistic regression did not converge to a usable fit."""
