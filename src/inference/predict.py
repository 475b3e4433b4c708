"""Single-patient prediction with a trained diabetes model."""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from src.config.constants import DEFAULT_MODEL_PATH, FEATURE_COLUMNS
from src.data.patient import Patient, patients_to_frame
from src.errors import DiabetesPredictionError
from src.models.persist import load_model

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

SAMPLE_PATIENTS = [
    Patient(
        age=50,
        blood_pressure=72,
        bmi=33.6,
        diabetes_pedigree_function=0.627,
        glucose=148,
        insulin=200,
        pregnancies=6,
        skin_thickness=35,
        output=0,
    ),
    Patient(
        age=31,
        blood_pressure=66,
        bmi=26.6,
        diabetes_pedigree_function=0.351,
        glucose=85,
        insulin=200,
        pregnancies=1,
        skin_thickness=29,
        output=0,
    ),
]


@dataclass(frozen=True)
class Prediction:
    """Predicted label and per-class scores for one patient."""

    predicted_label: float
    scores: Tuple[float, ...]
    classes: Tuple[float, ...]

    @property
    def has_diabetes(self) -> bool:
        return bool(self.predicted_label)

    def score_for(self, label: float) -> float:
        return self.scores[self.classes.index(label)]


def predict_patient(model, patient: Patient) -> Prediction:
    """Predict one patient. The patient's output field is ignored.

    Args:
        model: Fitted training pipeline
        patient: Patient record

    Returns:
        Prediction
    """
    features = patients_to_frame([patient])[FEATURE_COLUMNS]

    scores = model.predict_proba(features)[0]
    label = model.predict(features)[0]

    return Prediction(
        predicted_label=float(label),
        scores=tuple(float(s) for s in scores),
        classes=tuple(float(c) for c in model.classes_),
    )


def format_prediction(prediction: Prediction) -> str:
    """Format a prediction as ``Diabetes? <score> | Prediction: Yes/No``.

    The score shown is the positive-class score when the model knows class
    1, otherwise the first score.
    """
    if 1.0 in prediction.classes:
        score = prediction.score_for(1.0)
    else:
        score = prediction.scores[0]
    answer = "Yes" if prediction.has_diabetes else "No"
    return f"Diabetes? {score:.4f} | Prediction: {answer} "


def predict_samples(model) -> list:
    """Predict and print the sample patients."""
    predictions = []
    for patient in SAMPLE_PATIENTS:
        prediction = predict_patient(model, patient)
        print(format_prediction(prediction))
        predictions.append(prediction)
    return predictions


def main(argv=None):
    """CLI entry point: reload a saved model and predict the sample patients."""
    parser = argparse.ArgumentParser(description="Predict sample patients with a saved model")
    parser.add_argument(
        "--model-path",
        type=Path,
        default=Path(DEFAULT_MODEL_PATH),
        help="Path to model archive",
    )
    args = parser.parse_args(argv)

    logger.info(f"Loading model from: {args.model_path}")
    try:
        loaded = load_model(args.model_path)
        predict_samples(loaded.model)
    except DiabetesPredictionError as e:
        logger.error(f"Prediction failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    exit(main())
