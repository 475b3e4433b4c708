"""Shared fixtures: a synthetic Patient table in SQLite."""

import json

import numpy as np
import pandas as pd
import pytest
from sqlalchemy import create_engine

N_PATIENTS = 150


def make_patient_frame(n=N_PATIENTS, seed=7):
    """Synthetic patients whose label depends on glucose and BMI."""
    rng = np.random.default_rng(seed)
    glucose = rng.normal(120, 30, n).clip(40, 200).round()
    bmi = rng.normal(32, 6, n).clip(18, 60).round(1)
    age = rng.integers(21, 81, n)
    risk = (glucose - 120) / 30 + (bmi - 32) / 6 + rng.normal(0, 0.5, n)

    return pd.DataFrame(
        {
            "Id": np.arange(1, n + 1),
            "Pregnancies": rng.integers(0, 12, n),
            "Glucose": glucose,
            "BloodPressure": rng.normal(70, 10, n).clip(40, 120).round(),
            "SkinThickness": rng.normal(25, 8, n).clip(5, 60).round(),
            "Insulin": rng.normal(100, 40, n).clip(0, 300).round(),
            "BMI": bmi,
            "DiabetesPedigreeFunction": rng.uniform(0.08, 2.4, n).round(3),
            "Age": age,
            "Output": (risk > 0).astype(int),
        }
    )


def write_patient_table(db_path, df):
    url = f"sqlite:///{db_path}"
    engine = create_engine(url)
    try:
        df.to_sql("Patient", engine, index=False, if_exists="replace")
    finally:
        engine.dispose()
    return url


@pytest.fixture
def patient_frame():
    return make_patient_frame()


@pytest.fixture
def write_patient_db(tmp_path):
    """Factory writing a Patient table to a named SQLite file under tmp_path."""

    def _write(name, df=None):
        return write_patient_table(tmp_path / name, make_patient_frame() if df is None else df)

    return _write


@pytest.fixture
def patient_db(tmp_path, patient_frame):
    """SQLAlchemy URL of a SQLite database with a Patient table."""
    return write_patient_table(tmp_path / "patients.db", patient_frame)


@pytest.fixture
def settings_file(tmp_path, patient_db):
    path = tmp_path / "appsettings.json"
    path.write_text(json.dumps({"ConnectionStrings": {"DbConnection": patient_db}}))
    return path


@pytest.fixture
def loaded_frame(patient_frame):
    """Patient rows as the loader returns them (all float)."""
    return patient_frame.astype(float)
