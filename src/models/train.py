"""Training script for the diabetes prediction model."""

import argparse
import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List

import mlflow
import pandas as pd
from mlflow.exceptions import MlflowException
from sklearn.base import clone

from src.config.constants import LABEL_COLUMN
from src.config.settings import get_connection_string, load_config
from src.data.load_patients import load_patient_frame
from src.data.split import split_train_test
from src.errors import DiabetesPredictionError, TrackingError, TrainingError
from src.features.preprocess import create_training_pipeline
from src.inference.predict import Prediction, predict_samples
from src.models.cross_validate import FoldResult, cross_validate_model
from src.models.evaluate import (
    ClassificationMetrics,
    average_metrics,
    evaluate_holdout,
    format_metrics_report,
)
from src.models.persist import build_schema, save_model

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@dataclass
class TrainingResult:
    """Everything a training run produced."""

    model: object
    fold_results: List[FoldResult]
    cv_metrics: ClassificationMetrics
    holdout_metrics: ClassificationMetrics
    predictions: List[Prediction]
    model_path: Path
    train_size: int
    test_size: int


def fit_model(estimator, train_df: pd.DataFrame):
    """Fit a fresh copy of the training pipeline on all training rows.

    Args:
        estimator: Unfitted training pipeline
        train_df: Training rows

    Returns:
        Fitted pipeline
    """
    logger.info(f"Training process is starting. {datetime.now():%H:%M:%S}")
    try:
        model = clone(estimator).fit(train_df, train_df[LABEL_COLUMN])
    except ValueError as e:
        raise TrainingError(f"Fitting the final model failed: {e}") from e
    logger.info(f"Training process has finished. {datetime.now():%H:%M:%S}")
    return model


def _start_tracking(config: dict):
    if not config["mlflow"]["enabled"]:
        return nullcontext()
    mlflow.set_tracking_uri(config["mlflow"]["tracking_uri"])
    mlflow.set_experiment(config["mlflow"]["experiment_name"])
    return mlflow.start_run()


def run_training(config: dict, connection_string: str) -> TrainingResult:
    """Run the full training flow.

    Load, split, cross-validate, fit, evaluate on the held-out rows, save and
    predict the sample patients.

    Args:
        config: Training configuration (see DEFAULT_CONFIG)
        connection_string: SQLAlchemy database URL

    Returns:
        TrainingResult
    """
    data_config = config["data"]
    model_config = config["model"]
    n_folds = config["cross_validation"]["n_folds"]
    model_path = Path(config["output"]["model_path"])
    tracking = config["mlflow"]["enabled"]

    logger.info("Loading data from database...")
    df = load_patient_frame(connection_string, data_config["query"])

    train_df, test_df = split_train_test(
        df,
        test_fraction=data_config["test_fraction"],
        random_seed=data_config["random_seed"],
        stratify=data_config["stratify"],
    )
    logger.info(f"Train size: {len(train_df)}, Test size: {len(test_df)}")
    logger.info(f"Train positive rate: {train_df[LABEL_COLUMN].mean():.3f}")

    logger.info("Preparing training operations...")
    pipeline = create_training_pipeline(
        max_iterations=model_config["max_iterations"],
        random_seed=model_config["random_seed"],
    )

    try:
        with _start_tracking(config):
            if tracking:
                mlflow.log_params(
                    {
                        "test_fraction": data_config["test_fraction"],
                        "n_folds": n_folds,
                        "data_random_seed": data_config["random_seed"],
                        "max_iterations": model_config["max_iterations"],
                        "model_random_seed": model_config["random_seed"],
                    }
                )

            print(f"=============== Starting {n_folds} fold cross validation ===============")
            fold_results = cross_validate_model(
                pipeline, train_df, n_folds=n_folds, random_seed=data_config["random_seed"]
            )
            cv_metrics = average_metrics([r.metrics for r in fold_results])
            print(format_metrics_report(cv_metrics))

            model = fit_model(pipeline, train_df)

            print(f"Test Set: {len(test_df)} patients")
            holdout_metrics, report = evaluate_holdout(model, test_df)
            print(report)

            metadata = {
                "version": datetime.now().strftime("%Y%m%d_%H%M%S"),
                "algorithm": "OneVsRest(LogisticRegression)",
                "max_iterations": model_config["max_iterations"],
                "n_folds": n_folds,
                "random_seed": data_config["random_seed"],
                "train_size": len(train_df),
                "test_size": len(test_df),
                "cv_metrics": cv_metrics.as_dict(),
                "test_metrics": holdout_metrics.as_dict(),
                "training_date": datetime.now().isoformat(),
            }

            logger.info("Saving the model")
            save_model(model, build_schema(model, train_df), model_path, metadata)

            if tracking:
                mlflow.log_metrics({f"cv_{k}": v for k, v in cv_metrics.as_dict().items()})
                mlflow.log_metrics({f"test_{k}": v for k, v in holdout_metrics.as_dict().items()})
                mlflow.log_artifact(str(model_path))

            predictions = predict_samples(model)
    except MlflowException as e:
        raise TrackingError(f"Experiment tracking failed: {e}") from e

    return TrainingResult(
        model=model,
        fold_results=fold_results,
        cv_metrics=cv_metrics,
        holdout_metrics=holdout_metrics,
        predictions=predictions,
        model_path=model_path,
        train_size=len(train_df),
        test_size=len(test_df),
    )


def main(argv=None):
    """Main training pipeline."""
    parser = argparse.ArgumentParser(description="Train diabetes prediction model")
    parser.add_argument(
        "--config", type=Path, default=Path("configs/train_config.yaml"), help="Config file path"
    )
    parser.add_argument("--settings", type=Path, help="Settings file with the connection string")
    parser.add_argument(
        "--connection-string", help="Database URL used when the settings file has none"
    )
    parser.add_argument("--model-path", type=Path, help="Where to write the model archive")
    parser.add_argument("--seed", type=int, help="Random seed for the split, folds and learner")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)

        log_level = config["logging"]["log_level"]
        logging.getLogger().setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

        if args.settings is not None:
            config["settings"]["path"] = str(args.settings)
        if args.model_path is not None:
            config["output"]["model_path"] = str(args.model_path)
        if args.seed is not None:
            config["data"]["random_seed"] = args.seed
            config["model"]["random_seed"] = args.seed

        connection_string = get_connection_string(
            config["settings"]["path"],
            name=config["settings"]["connection_name"],
            default=args.connection_string,
        )

        result = run_training(config, connection_string)
    except DiabetesPredictionError as e:
        logger.error(f"Training run failed: {e}")
        return 1

    logger.info(f"Model saved to: {result.model_path}")
    return 0


if __name__ == "__main__":
    exit(main())
