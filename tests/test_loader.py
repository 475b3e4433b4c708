"""Tests for loading patients from the database."""

import pandas as pd
import pytest
from sqlalchemy import create_engine, text

from src.config.constants import PATIENT_COLUMNS
from src.data.load_patients import load_patient_frame, load_patients
from src.data.patient import Patient, patients_from_frame, patients_to_frame
from src.errors import DataSourceError


class TestLoadPatients:
    """Test the database loader."""

    def test_row_count_matches_table(self, patient_db, patient_frame):
        """Test that one record is returned per table row."""
        df = load_patient_frame(patient_db)

        assert len(df) == len(patient_frame)
        assert list(df.columns) == PATIENT_COLUMNS

    def test_columns_are_float(self, patient_db):
        """Test that Id and Output are cast to floating point."""
        df = load_patient_frame(patient_db)

        assert all(df[col].dtype == float for col in PATIENT_COLUMNS)

    def test_typed_records(self, patient_db, patient_frame):
        """Test materializing rows as Patient records."""
        patients = load_patients(patient_db)

        assert len(patients) == len(patient_frame)
        assert all(isinstance(p, Patient) for p in patients)
        assert patients[0].id == float(patient_frame["Id"].iloc[0])
        assert patients[0].glucose == float(patient_frame["Glucose"].iloc[0])

    def test_small_table(self, write_patient_db, patient_frame):
        url = write_patient_db("small.db", patient_frame.head(3))

        assert len(load_patients(url)) == 3

    def test_unreachable_database(self, tmp_path):
        """Test that a missing database directory is a DataSourceError."""
        url = f"sqlite:///{tmp_path / 'missing' / 'nope.db'}"

        with pytest.raises(DataSourceError):
            load_patient_frame(url)

    def test_missing_table(self, tmp_path):
        """Test that a database without a Patient table fails."""
        url = f"sqlite:///{tmp_path / 'empty.db'}"
        engine = create_engine(url)
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE Other (x INTEGER)"))
        engine.dispose()

        with pytest.raises(DataSourceError):
            load_patient_frame(url)

    def test_bad_query(self, patient_db):
        """Test that a query the database rejects is a DataSourceError."""
        with pytest.raises(DataSourceError, match="Query against database failed"):
            load_patient_frame(patient_db, "SELECT NoSuchColumn FROM Patient")

    def test_query_missing_columns(self, patient_db):
        with pytest.raises(DataSourceError, match="missing columns"):
            load_patient_frame(patient_db, "SELECT CAST(Id AS REAL) AS Id, Glucose FROM Patient")

    def test_invalid_url(self):
        with pytest.raises(DataSourceError):
            load_patient_frame("not a url")

    def test_malformed_row(self, write_patient_db, patient_frame):
        """Test that a non-numeric cell is a fatal parse error."""
        df = patient_frame.astype(object)
        df.loc[0, "Glucose"] = "high"
        url = write_patient_db("bad.db", df)

        with pytest.raises(DataSourceError, match="Malformed"):
            load_patient_frame(url)

    def test_invalid_values_rejected(self, write_patient_db, patient_frame):
        df = patient_frame.copy()
        df.loc[0, "Age"] = 200
        url = write_patient_db("bad.db", df)

        with pytest.raises(DataSourceError, match="validation"):
            load_patient_frame(url)


class TestPatientRecords:
    """Test conversions between Patient records and frames."""

    def test_frame_round_trip(self, loaded_frame):
        patients = patients_from_frame(loaded_frame)
        df = patients_to_frame(patients)

        pd.testing.assert_frame_equal(df, loaded_frame[PATIENT_COLUMNS].reset_index(drop=True))

    def test_patient_is_immutable(self):
        patient = Patient(1, 85, 66, 29, 0, 26.6, 0.351, 31)

        with pytest.raises(AttributeError):
            patient.glucose = 100
