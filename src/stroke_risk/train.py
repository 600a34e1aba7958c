import argparse
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, List

import matplotlib
import mlflow
import pandas as pd

from stroke_risk import plots
from stroke_risk.association import describe_numeric_by_target, run_association_tests, target_rates
from stroke_risk.config import MISSING_POLICIES, PipelineConfig
from stroke_risk.data import bmi_distribution_check, clean_data, load_data, missing_value_report
from stroke_risk.evaluate import classification_metrics, roc_auc, threshold_sweep
from stroke_risk.features import correlation_matrix, encode_categoricals, select_correlated_features
from stroke_risk.model import coefficient_table, stepwise_aic
from stroke_risk.schema import SCHEMA

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    missing: pd.DataFrame
    bmi_diagnostic: object
    cleaned: pd.DataFrame
    associations: pd.DataFrame
    encoded: pd.DataFrame
    correlations: pd.DataFrame
    selected_features: List[str]
    stepwise: object
    coefficients: pd.DataFrame
    metrics: object
    sweep: pd.DataFrame
    roc_auc: float
    artifacts: Dict[str, str] = field(default_factory=dict)


def _section(title):
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")


def preprocess_data(df, config, rng):
    diagnostic = bmi_distribution_check(df, config.bmi_percentile, config.alpha)
    logger.info("BMI p%.0f=%.2f, Shapiro-Wilk p=%.4g (normal=%s)",
                diagnostic.percentile, diagnostic.cutoff, diagnostic.p_value, diagnostic.is_normal)
    cleaned = clean_data(df, rng, config.missing_policy)
    return cleaned, diagnostic


def train_model(encoded, config):
    corr = correlation_matrix(encoded)
    selected = select_correlated_features(corr, SCHEMA.target, config.correlation_threshold)
    stepwise = stepwise_aic(encoded, selected, SCHEMA.target, config.max_iter)
    return corr, selected, stepwise


def evaluate_model(model, y, config):
    metrics = classification_metrics(y, model.fitted, config.decision_threshold)
    sweep = threshold_sweep(y, model.fitted, config.thresholds)
    return metrics, sweep, roc_auc(y, model.fitted)


def run_pipeline(config):
    rng = config.rng()
    raw = load_data(config.data_path)
    missing = missing_value_report(raw)

    cleaned, diagnostic = preprocess_data(raw, config, rng)
    features = [f for f in config.association_features if f in cleaned.columns]
    associations = run_association_tests(cleaned, features, SCHEMA.target, config.alpha)

    encoded = encode_categoricals(cleaned)
    corr, selected, stepwise = train_model(encoded, config)
    metrics, sweep, auc = evaluate_model(stepwise.model, encoded[SCHEMA.target], config)

    result = PipelineResult(
        missing=missing,
        bmi_diagnostic=diagnostic,
        cleaned=cleaned,
        associations=associations,
        encoded=encoded,
        correlations=corr,
        selected_features=selected,
        stepwise=stepwise,
        coefficients=coefficient_table(stepwise.model),
        metrics=metrics,
        sweep=sweep,
        roc_auc=auc,
    )
    result.artifacts = write_artifacts(result, config, features)
    return result


def write_artifacts(result, config, features):
    out = str(config.output_dir)
    os.makedirs(out, exist_ok=True)
    artifacts = {}
    for name, frame in (("association_tests", result.associations),
                        ("coefficients", result.coefficients),
                        ("threshold_sweep", result.sweep)):
        path = os.path.join(out, f"{name}.csv")
        frame.to_csv(path, index=name == "coefficients")
        artifacts[name] = path
    if not config.make_plots:
        return artifacts
    cleaned = result.cleaned
    artifacts["target_distribution"] = plots.plot_target_distribution(
        cleaned, os.path.join(out, "target_distribution.png"))
    for path in plots.plot_numeric_distributions(cleaned, out):
        artifacts[os.path.splitext(os.path.basename(path))[0]] = path
    categorical = [f for f in features if cleaned[f].nunique() > 1]
    for path in plots.plot_target_rates(cleaned, out, categorical):
        artifacts[os.path.splitext(os.path.basename(path))[0]] = path
    artifacts["correlation_heatmap"] = plots.plot_correlation_heatmap(
        result.correlations, os.path.join(out, "correlation_heatmap.png"))
    artifacts["confusion_matrix"] = plots.plot_confusion_matrix(
        result.metrics, os.path.join(out, "confusion_matrix.png"))
    artifacts["threshold_curves"] = plots.plot_threshold_curves(
        result.sweep, os.path.join(out, "threshold_curves.png"))
    return artifacts


def print_report(result, config):
    _section("Missing values (raw)")
    print(result.missing[result.missing["missing_count"] > 0])

    d = result.bmi_diagnostic
    _section("BMI distribution")
    print(f"p{d.percentile:.0f} cutoff: {d.cutoff:.2f} ({d.n_above_cutoff} of {d.n_observed} above)")
    print(f"Shapiro-Wilk: W={d.statistic:.4f}, p={d.p_value:.4g} -> "
          f"{'normal' if d.is_normal else 'not normal, resampling observed values'}")

    _section("Numeric summary by stroke")
    print(describe_numeric_by_target(result.cleaned))

    _section("Stroke rate by category")
    for feature in result.associations["feature"]:
        print(f"\n{feature}")
        print(target_rates(result.cleaned, feature))

    _section(f"Chi-square tests (alpha={config.alpha})")
    print(result.associations.to_string(index=False))

    _section(f"Predictors with |r| > {config.correlation_threshold:.2f}")
    print(result.correlations[SCHEMA.target].loc[result.selected_features].round(3))

    sw = result.stepwise
    _section("Stepwise AIC selection")
    print(f"Start AIC: {sw.initial_aic:.3f}")
    for step in sw.steps:
        print(f"  {step.action:<6} {step.predictor:<30} AIC={step.aic:.3f}")
    print(f"Final AIC: {sw.model.aic:.3f} with {sw.selected}")
    print(result.coefficients.round(4))

    m = result.metrics
    _section(f"Evaluation at threshold {m.threshold:.2f}")
    print(f"TP={m.tp} FP={m.fp} FN={m.fn} TN={m.tn}")
    print(f"Accuracy: {m.accuracy:.3f} | Precision: {m.precision:.3f} | "
          f"Recall: {m.recall:.3f} | F1: {m.f1:.3f} | ROC-AUC: {result.roc_auc:.3f}")
    print(result.sweep.round(3).to_string(index=False))


def log_run(result, config):
    if config.tracking_uri:
        mlflow.set_tracking_uri(config.tracking_uri)
    mlflow.set_experiment(config.experiment_name)
    with mlflow.start_run(run_name=f"stepwise_logit_seed{config.seed}"):
        mlflow.set_tag("model_type", "GLM Binomial (logit)")
        mlflow.set_tag("study", "stepwise AIC selection")
        mlflow.log_param("seed", config.seed)
        mlflow.log_param("decision_threshold", config.decision_threshold)
        mlflow.log_param("correlation_threshold", config.correlation_threshold)
        mlflow.log_param("missing_policy", config.missing_policy)
        mlflow.log_param("candidate_predictors", ",".join(result.selected_features))
        mlflow.log_param("selected_predictors", ",".join(result.stepwise.selected))

        metrics = {
            "aic": result.stepwise.model.aic,
            "accuracy": result.metrics.accuracy,
            "precision": result.metrics.precision,
            "recall": result.metrics.recall,
            "f1": result.metrics.f1,
            "roc_auc": result.roc_auc,
        }
        for k, v in metrics.items():
            if not math.isnan(v):
                mlflow.log_metric(k, v)
        for path in result.artifacts.values():
            mlflow.log_artifact(path)


def parse_args(argv=None):
    defaults = PipelineConfig()
    parser = argparse.ArgumentParser(description="Stroke risk factor analysis")
    parser.add_argument("--data_path", type=str, default=str(defaults.data_path))
    parser.add_argument("--output_dir", type=str, default=str(defaults.output_dir))
    parser.add_argument("--seed", type=int, default=defaults.seed)
    parser.add_argument("--decision_threshold", type=float, default=defaults.decision_threshold)
    parser.add_argument("--correlation_threshold", type=float, default=defaults.correlation_threshold)
    parser.add_argument("--alpha", type=float, default=defaults.alpha)
    parser.add_argument("--bmi_percentile", type=float, default=defaults.bmi_percentile)
    parser.add_argument("--thresholds", type=float, nargs="+", default=list(defaults.thresholds))
    parser.add_argument("--missing_policy", choices=MISSING_POLICIES, default=defaults.missing_policy)
    parser.add_argument("--max_iter", type=int, default=defaults.max_iter)
    parser.add_argument("--experiment_name", type=str, default=defaults.experiment_name)
    parser.add_argument("--tracking_uri", type=str, default=None)
    parser.add_argument("--no-tracking", dest="tracking", action="store_false")
    parser.add_argument("--no-plots", dest="make_plots", action="store_false")
    parser.add_argument("--log-level", dest="log_level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def config_from_args(args):
    return PipelineConfig(
        data_path=args.data_path,
        output_dir=args.output_dir,
        seed=args.seed,
        decision_threshold=args.decision_threshold,
        correlation_threshold=args.correlation_threshold,
        alpha=args.alpha,
        bmi_percentile=args.bmi_percentile,
        thresholds=tuple(args.thresholds),
        missing_policy=args.missing_policy,
        max_iter=args.max_iter,
        experiment_name=args.experiment_name,
        tracking=args.tracking,
        tracking_uri=args.tracking_uri,
        make_plots=args.make_plots,
    )


def main(args):
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = config_from_args(args)
    result = run_pipeline(config)
    print_report(result, config)
    if config.tracking:
        log_run(result, config)
    return result


def cli(argv=None):
    # headless: figures are only ever written to disk
    matplotlib.use("Agg")
    return main(parse_args(argv))


if __name__ == "__main__":
    cli()
