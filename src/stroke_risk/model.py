import logging
import warnings
from dataclasses import dataclass, field
from typing import List

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from stroke_risk.exceptions import ModelFitError
from stroke_risk.schema import SCHEMA

logger = logging.getLogger(__name__)


@dataclass
class LogitModel:
    predictors: List[str]
    result: object

    @property
    def params(self) -> pd.Series:
        return self.result.params

    @property
    def fitted(self) -> np.ndarray:
        return np.asarray(self.result.fittedvalues, dtype=float)

    @property
    def llf(self) -> float:
        return float(self.result.llf)

    @property
    def n_params(self) -> int:
        return len(self.result.params)

    @property
    def aic(self) -> float:
        return -2.0 * self.llf + 2.0 * self.n_params


@dataclass
class StepRecord:
    action: str
    predictor: str
    aic: float


@dataclass
class StepwiseResult:
    model: LogitModel
    initial_aic: float
    steps: List[StepRecord] = field(default_factory=list)

    @property
    def selected(self) -> List[str]:
        return list(self.model.predictors)


def build_formula(target, predictors):
    rhs = " + ".join(predictors) if predictors else "1"
    return f"{target} ~ {rhs}"


def fit_logit(df, predictors, target=SCHEMA.target, max_iter=100):
    predictors = list(predictors)
    formula = build_formula(target, predictors)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = smf.glm(formula, data=df, family=sm.families.Binomial()).fit(maxiter=max_iter)
        except (PerfectSeparationError, np.linalg.LinAlgError, ValueError) as exc:
            raise ModelFitError(f"{formula}: {exc}") from exc
    for w in caught:
        if issubclass(w.category, (PerfectSeparationWarning, ConvergenceWarning)):
            raise ModelFitError(f"{formula}: {w.message}")
    for w in caught:
        warnings.warn_explicit(w.message, w.category, w.filename, w.lineno)
    if not getattr(result, "converged", True):
        raise ModelFitError(f"{formula}: IRLS did not converge in {max_iter} iterations")
    if not np.all(np.isfinite(result.params)):
        raise ModelFitError(f"{formula}: non-finite coefficients")
    if predictors and np.allclose(result.fittedvalues, result.model.endog, atol=1e-6):
        raise ModelFitError(f"{formula}: perfect separation, coefficients not identified")
    return LogitModel(predictors=predictors, result=result)


def stepwise_aic(df, predictors, target=SCHEMA.target, max_iter=100):
    """Greedy bidirectional AIC search starting from the full model.

    Each round scores dropping any current predictor and re-adding any
    dropped one, then applies the single move with the lowest AIC if it
    beats the current model. Stops at the first round with no improving
    move, so the result can be a local optimum.
    """
    model = fit_logit(df, predictors, target, max_iter)
    result = StepwiseResult(model=model, initial_aic=model.aic)
    removed = []
    while True:
        current = model.predictors
        moves = [("remove", p, [q for q in current if q != p]) for p in current]
        moves += [("add", p, current + [p]) for p in removed]
        best = None
        for action, predictor, candidate in moves:
            fitted = fit_logit(df, candidate, target, max_iter)
            if fitted.aic < (best[2].aic if best else model.aic):
                best = (action, predictor, fitted)
        if best is None:
            break
        action, predictor, model = best
        if action == "remove":
            removed.append(predictor)
        else:
            removed.remove(predictor)
        result.steps.append(StepRecord(action=action, predictor=predictor, aic=model.aic))
        logger.info("Stepwise %s %s -> AIC %.3f", action, predictor, model.aic)
    result.model = model
    return result


def coefficient_table(model):
    res = model.result
    ci = res.conf_int()
    table = pd.DataFrame({
        "coef": res.params,
        "std_err": res.bse,
        "z": res.tvalues,
        "p_value": res.pvalues,
        "odds_ratio": np.exp(res.params),
        "or_ci_lower": np.exp(ci[0]),
        "or_ci_upper": np.exp(ci[1]),
    })
    table.index.name = "term"
    return table
