"""Tests for single-patient prediction."""

import zipfile
from dataclasses import replace

import pytest

from src.config.constants import LABEL_COLUMN
from src.features.preprocess import create_training_pipeline
from src.inference.predict import (
    SAMPLE_PATIENTS,
    Prediction,
    format_prediction,
    main,
    predict_patient,
)
from src.models.persist import MODEL_ENTRY, build_schema, save_model


@pytest.fixture
def fitted_model(loaded_frame):
    return create_training_pipeline(random_seed=0).fit(loaded_frame, loaded_frame[LABEL_COLUMN])


class TestPredictPatient:
    """Test predictions for the sample patients."""

    def test_sample_patients(self):
        assert SAMPLE_PATIENTS[0].glucose == 148
        assert SAMPLE_PATIENTS[0].bmi == 33.6
        assert SAMPLE_PATIENTS[1].age == 31
        assert SAMPLE_PATIENTS[1].diabetes_pedigree_function == 0.351

    def test_one_class_and_scores_per_patient(self, fitted_model):
        """Test that scores form a distribution over the classes."""
        for patient in SAMPLE_PATIENTS:
            prediction = predict_patient(fitted_model, patient)

            assert prediction.predicted_label in (0.0, 1.0)
            assert len(prediction.scores) == 2
            assert sum(prediction.scores) == pytest.approx(1.0)

    def test_label_field_ignored(self, fitted_model):
        """Test that the patient's output value does not affect the prediction."""
        patient = SAMPLE_PATIENTS[0]
        relabelled = replace(patient, output=1.0)

        assert predict_patient(fitted_model, patient) == predict_patient(fitted_model, relabelled)

    def test_high_glucose_scores_higher(self, fitted_model):
        first, second = (predict_patient(fitted_model, p) for p in SAMPLE_PATIENTS)

        assert first.score_for(1.0) > second.score_for(1.0)


class TestFormatPrediction:
    """Test console formatting."""

    def test_positive(self):
        prediction = Prediction(predicted_label=1.0, scores=(0.2, 0.8), classes=(0.0, 1.0))

        assert format_prediction(prediction) == "Diabetes? 0.8000 | Prediction: Yes "

    def test_negative(self):
        prediction = Prediction(predicted_label=0.0, scores=(0.9, 0.1), classes=(0.0, 1.0))

        assert format_prediction(prediction) == "Diabetes? 0.1000 | Prediction: No "


class TestPredictCli:
    """Test the reload-and-predict entry point."""

    def test_predicts_from_saved_model(self, tmp_path, fitted_model, loaded_frame, capsys):
        path = save_model(
            fitted_model, build_schema(fitted_model, loaded_frame), tmp_path / "MLModel.zip"
        )

        assert main(["--model-path", str(path)]) == 0
        assert capsys.readouterr().out.count("Diabetes?") == 2

    def test_missing_model(self, tmp_path):
        assert main(["--model-path", str(tmp_path / "missing.zip")]) == 1

    def test_corrupt_model_entry(self, tmp_path, fitted_model, loaded_frame):
        """Test that a damaged pickle inside the archive fails the run."""
        path = save_model(
            fitted_model, build_schema(fitted_model, loaded_frame), tmp_path / "MLModel.zip"
        )
        with zipfile.ZipFile(path) as archive:
            entries = {name: archive.read(name) for name in archive.namelist()}
        entries[MODEL_ENTRY] = entries[MODEL_ENTRY][:100]
        with zipfile.ZipFile(path, "w") as archive:
            for name, data in entries.items():
                archive.writestr(name, data)

        assert main(["--model-path", str(path)]) == 1
