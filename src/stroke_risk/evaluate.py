from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix, roc_auc_score


@dataclass
class ClassificationMetrics:
    threshold: float
    tp: int
    fp: int
    fn: int
    tn: int
    accuracy: float
    precision: float
    recall: float
    f1: float

    @property
    def total(self):
        return self.tp + self.fp + self.fn + self.tn

    @property
    def n_predicted_positive(self):
        return self.tp + self.fp

    def as_dict(self):
        return {**asdict(self), "n_predicted_positive": self.n_predicted_positive}


def predict_labels(probabilities, threshold=0.40):
    return (np.asarray(probabilities, dtype=float) > threshold).astype(int)


def confusion_counts(y_true, y_pred):
    # labels fixed so an all-0 or all-1 vector still yields a 2x2 matrix
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return int(tp), int(fp), int(fn), int(tn)


def _ratio(num, den):
    return num / den if den > 0 else float("nan")


def classification_metrics(y_true, probabilities, threshold=0.40):
    y_true = np.asarray(y_true, dtype=int)
    y_pred = predict_labels(probabilities, threshold)
    tp, fp, fn, tn = confusion_counts(y_true, y_pred)
    precision = _ratio(tp, tp + fp)
    recall = _ratio(tp, tp + fn)
    if np.isnan(precision) or np.isnan(recall) or precision + recall == 0:
        f1 = float("nan")
    else:
        f1 = 2 * precision * recall / (precision + recall)
    return ClassificationMetrics(
        threshold=float(threshold),
        tp=tp, fp=fp, fn=fn, tn=tn,
        accuracy=_ratio(tp + tn, tp + fp + fn + tn),
        precision=precision,
        recall=recall,
        f1=f1,
    )


def threshold_sweep(y_true, probabilities, thresholds):
    rows = [classification_metrics(y_true, probabilities, t).as_dict() for t in sorted(thresholds)]
    columns = ["threshold", "precision", "recall", "f1", "n_predicted_positive",
               "accuracy", "tp", "fp", "fn", "tn"]
    return pd.DataFrame(rows)[columns]


def roc_auc(y_true, probabilities):
    y_true = np.asarray(y_true, dtype=int)
    if np.unique(y_true).size < 2:
        return float("nan")
    return float(roc_auc_score(y_true, probabilities))
