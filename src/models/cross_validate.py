"""K-fold cross-validation over the training split."""

import logging
from dataclasses import dataclass
from typing import List

import pandas as pd
from sklearn.base import clone
from sklearn.model_selection import KFold

from src.config.constants import DEFAULT_N_FOLDS, LABEL_COLUMN
from src.errors import TrainingError
from src.models.evaluate import ClassificationMetrics, compute_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldResult:
    fold: int
    train_size: int
    validation_size: int
    metrics: ClassificationMetrics


def cross_validate_model(
    estimator, train_df: pd.DataFrame, n_folds: int = DEFAULT_N_FOLDS, random_seed: int = None
) -> List[FoldResult]:
    """Run k-fold cross-validation.

    Each fold fits a fresh clone of ``estimator`` so the caller's declaration
    is never mutated. A failing fold aborts the whole run.

    Args:
        estimator: Unfitted training pipeline
        train_df: Training rows with feature and label columns
        n_folds: Number of folds
        random_seed: Seed for fold assignment

    Returns:
        One FoldResult per fold, in fold order
    """
    if n_folds < 2:
        raise TrainingError(f"n_folds must be at least 2, got {n_folds}")
    if len(train_df) < n_folds:
        raise TrainingError(f"Cannot run {n_folds}-fold cross-validation on {len(train_df)} rows")

    y = train_df[LABEL_COLUMN]
    kfold = KFold(n_splits=n_folds, shuffle=True, random_state=random_seed)

    results = []
    for fold, (train_idx, val_idx) in enumerate(kfold.split(train_df), start=1):
        fold_train = train_df.iloc[train_idx]
        fold_val = train_df.iloc[val_idx]
        try:
            model = clone(estimator).fit(fold_train, y.iloc[train_idx])
            metrics = compute_metrics(model, fold_val)
        except ValueError as e:
            raise TrainingError(f"Cross-validation fold {fold}/{n_folds} failed: {e}") from e

        logger.debug(f"Fold {fold}/{n_folds}: {metrics}")
        results.append(
            FoldResult(
                fold=fold,
                train_size=len(fold_train),
                validation_size=len(fold_val),
                metrics=metrics,
            )
        )

    return results
