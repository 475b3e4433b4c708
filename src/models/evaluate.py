"""Multiclass evaluation metrics and reports."""

from dataclasses import asdict, dataclass
from typing import Iterable

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    classification_report,
    log_loss,
)

from src.config.constants import LABEL_COLUMN

BANNER = "*" * 109
RULE = "*" + "-" * 108


@dataclass(frozen=True)
class ClassificationMetrics:
    """Metrics for one evaluated data set."""

    micro_accuracy: float
    macro_accuracy: float
    log_loss: float
    log_loss_reduction: float

    def as_dict(self) -> dict:
        return asdict(self)


def prior_log_loss(y_true, labels) -> float:
    """Log-loss of always predicting the empirical label distribution.

    Args:
        y_true: True labels
        labels: All class labels known to the model

    Returns:
        Entropy of the label distribution (natural log)
    """
    y_true = np.asarray(y_true)
    proportions = np.array([np.mean(y_true == label) for label in labels])
    proportions = proportions[proportions > 0]
    return float(-(proportions * np.log(proportions)).sum())


def compute_metrics(model, df: pd.DataFrame) -> ClassificationMetrics:
    """Evaluate a fitted model on labelled rows.

    Micro accuracy is the share of correct predictions; macro accuracy is
    the mean per-class recall. Log-loss reduction is relative to the prior
    log-loss of the evaluated labels and is 0 when that prior is 0.

    Args:
        model: Fitted classifier with classes_
        df: Rows with feature and label columns

    Returns:
        ClassificationMetrics
    """
    y_true = df[LABEL_COLUMN].to_numpy()
    y_pred = model.predict(df)
    y_proba = model.predict_proba(df)

    loss = log_loss(y_true, y_proba, labels=model.classes_)
    prior = prior_log_loss(y_true, model.classes_)
    reduction = (prior - loss) / prior if prior > 0 else 0.0

    return ClassificationMetrics(
        micro_accuracy=float(accuracy_score(y_true, y_pred)),
        macro_accuracy=float(balanced_accuracy_score(y_true, y_pred)),
        log_loss=float(loss),
        log_loss_reduction=float(reduction),
    )


def average_metrics(metrics: Iterable[ClassificationMetrics]) -> ClassificationMetrics:
    """Average each metric across several evaluations (e.g. folds)."""
    df = pd.DataFrame([m.as_dict() for m in metrics])
    if df.empty:
        raise ValueError("Cannot average an empty list of metrics")
    return ClassificationMetrics(**{k: float(v) for k, v in df.mean().items()})


def format_metrics_report(metrics: ClassificationMetrics) -> str:
    """Render averaged metrics as the console report."""
    lines = [
        BANNER,
        "*       Metrics Multi-class Classification model      ",
        RULE,
        f"*       Average MicroAccuracy:    {metrics.micro_accuracy:.3f} ",
        f"*       Average MacroAccuracy:    {metrics.macro_accuracy:.3f} ",
        f"*       Average LogLoss:          {metrics.log_loss:.3f} ",
        f"*       Average LogLossReduction: {metrics.log_loss_reduction:.3f} ",
        BANNER,
    ]
    return "\n".join(lines)


def evaluate_holdout(model, test_df: pd.DataFrame) -> tuple:
    """Evaluate the final model on the held-out test rows.

    Args:
        model: Fitted classifier
        test_df: Held-out rows

    Returns:
        Tuple of (metrics, classification report text)
    """
    metrics = compute_metrics(model, test_df)
    report = classification_report(
        test_df[LABEL_COLUMN],
        model.predict(test_df),
        labels=model.classes_,
        target_names=[f"Output={label:g}" for label in model.classes_],
        zero_division=0,
    )
    return metrics, report
