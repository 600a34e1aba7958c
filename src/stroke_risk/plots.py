import os

import matplotlib.pyplot as plt
import seaborn as sns

from stroke_risk.association import target_rates
from stroke_risk.schema import SCHEMA


def _save(path):
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    plt.tight_layout()
    plt.savefig(path)
    plt.close()
    return str(path)


def plot_target_distribution(df, path, target=SCHEMA.target):
    plt.figure(figsize=(8, 6))
    sns.countplot(x=target, data=df)
    plt.title("Distribution of Stroke (Target Variable)")
    return _save(path)


def plot_numeric_distributions(df, out_dir, columns=SCHEMA.continuous, target=SCHEMA.target):
    paths = []
    for col in columns:
        fig, axes = plt.subplots(1, 2, figsize=(14, 5))
        sns.histplot(data=df, x=col, bins=30, ax=axes[0])
        axes[0].set_title(f"Histogram: {col}")
        sns.kdeplot(data=df, x=col, hue=target, common_norm=False, fill=True, warn_singular=False, ax=axes[1])
        axes[1].set_title(f"{col} density by {target}")
        paths.append(_save(os.path.join(out_dir, f"dist_{col}.png")))
    return paths


def plot_target_rates(df, out_dir, features, target=SCHEMA.target):
    paths = []
    for feature in features:
        rates = target_rates(df, feature, target)
        ax = rates.plot(kind="bar", stacked=True, figsize=(8, 5), rot=45)
        ax.set_title(f"Stroke Rate by {feature}")
        ax.set_ylabel(f"P({target} | {feature})")
        paths.append(_save(os.path.join(out_dir, f"rate_{feature}.png")))
    return paths


def plot_correlation_heatmap(corr, path):
    plt.figure(figsize=(12, 10))
    sns.heatmap(corr, annot=True, fmt=".2f", cmap="coolwarm", center=0)
    plt.title("Correlation Matrix")
    return _save(path)


def plot_confusion_matrix(metrics, path):
    cm = [[metrics.tn, metrics.fp], [metrics.fn, metrics.tp]]
    plt.figure(figsize=(6, 5))
    sns.heatmap(cm, annot=True, fmt="d", cmap="Blues")
    plt.title(f"Confusion Matrix (threshold={metrics.threshold:.2f})")
    plt.xlabel("Predicted")
    plt.ylabel("Actual")
    return _save(path)


def plot_threshold_curves(sweep, path):
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(sweep["threshold"], sweep["precision"], marker="o", label="Precision")
    ax.plot(sweep["threshold"], sweep["recall"], marker="o", label="Recall")
    ax.set_xlabel("Threshold")
    ax.set_ylabel("Score")
    ax.set_title("Precision / Recall vs Threshold")
    ax.legend()
    ax.grid(True)
    return _save(path)
