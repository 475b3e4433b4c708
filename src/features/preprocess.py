"""Training pipeline declaration for diabetes prediction."""

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, ClassifierMixin, TransformerMixin, clone
from sklearn.linear_model import LogisticRegression
from sklearn.multiclass import OneVsRestClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import LabelEncoder, StandardScaler

from src.config.constants import DEFAULT_MAX_ITERATIONS, FEATURE_COLUMNS


class FeatureConcatenator(TransformerMixin, BaseEstimator):
    """Concatenate the named feature columns into one feature matrix."""

    def __init__(self, columns=None):
        """Initialize concatenator.

        Args:
            columns: Ordered list of feature column names
        """
        self.columns = columns

    def fit(self, X, y=None):
        """Record the feature order (stateless otherwise).

        Args:
            X: Input records
            y: Target (unused)

        Returns:
            self
        """
        self._check_columns(X)
        self.feature_names_ = list(self._columns())
        return self

    def transform(self, X):
        """Select the feature columns in order.

        Args:
            X: DataFrame with the feature columns, or an array already in order

        Returns:
            Float array of shape (n_samples, n_features)
        """
        self._check_columns(X)
        if isinstance(X, pd.DataFrame):
            return X[self._columns()].to_numpy(dtype=float)
        return np.asarray(X, dtype=float)

    def get_feature_names_out(self, input_features=None):
        return np.asarray(self._columns(), dtype=object)

    def _columns(self):
        return list(self.columns) if self.columns is not None else list(FEATURE_COLUMNS)

    def _check_columns(self, X):
        columns = self._columns()
        if isinstance(X, pd.DataFrame):
            missing = [col for col in columns if col not in X.columns]
            if missing:
                raise ValueError(f"Missing feature columns: {missing}")
        else:
            n_features = np.asarray(X).shape[1]
            if n_features != len(columns):
                raise ValueError(f"Expected {len(columns)} features, got {n_features}")


class LabelKeyClassifier(ClassifierMixin, BaseEstimator):
    """Map raw labels to contiguous keys around an inner classifier.

    Labels are encoded to keys ``0..n_classes-1`` before fitting and
    predicted keys are mapped back to the original label values.
    """

    def __init__(self, estimator=None):
        self.estimator = estimator

    def fit(self, X, y):
        self.label_encoder_ = LabelEncoder()
        keys = self.label_encoder_.fit_transform(np.asarray(y))
        self.classes_ = self.label_encoder_.classes_
        self.estimator_ = clone(self.estimator).fit(X, keys)
        return self

    def predict(self, X):
        keys = self.estimator_.predict(X)
        return self.label_encoder_.inverse_transform(np.asarray(keys, dtype=int))

    def predict_proba(self, X):
        return self.estimator_.predict_proba(X)


def create_training_pipeline(
    max_iterations=DEFAULT_MAX_ITERATIONS, random_seed=None, feature_columns=None
):
    """Create the training pipeline.

    Steps: label to key, feature concatenation, normalization, one-vs-all
    logistic regression, key back to label.

    Args:
        max_iterations: Iteration cap for each binary learner
        random_seed: Seed passed to the learner
        feature_columns: Ordered feature columns (defaults to FEATURE_COLUMNS)

    Returns:
        Unfitted LabelKeyClassifier wrapping an sklearn Pipeline
    """
    if feature_columns is None:
        feature_columns = FEATURE_COLUMNS

    pipeline = Pipeline(
        [
            ("concatenate", FeatureConcatenator(columns=list(feature_columns))),
            ("normalize", StandardScaler()),
            (
                "classifier",
                OneVsRestClassifier(
                    LogisticRegression(max_iter=max_iterations, random_state=random_seed)
                ),
            ),
        ]
    )

    return LabelKeyClassifier(estimator=pipeline)


def get_feature_names(model):
    """Extract feature names from a fitted training pipeline.

    Args:
        model: Fitted LabelKeyClassifier

    Returns:
        List of feature names
    """
    concatenator = model.estimator_.named_steps["concatenate"]
    if hasattr(concatenator, "feature_names_"):
        return concatenator.feature_names_
    return list(FEATURE_COLUMNS)
