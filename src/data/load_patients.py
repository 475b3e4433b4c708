"""Load patient records from a SQL database."""

import logging
from typing import List

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from src.config.constants import PATIENT_COLUMNS, PATIENT_QUERY
from src.data.patient import Patient, patients_from_frame
from src.data.validate_input import PatientDataValidator
from src.errors import DataSourceError

logger = logging.getLogger(__name__)


def _read_query(connection_string: str, query: str) -> pd.DataFrame:
    try:
        engine = create_engine(connection_string)
    except (SQLAlchemyError, ImportError, ValueError) as e:
        raise DataSourceError(f"Invalid connection string: {e}") from e

    try:
        with engine.connect() as conn:
            return pd.read_sql(text(query), conn)
    except (SQLAlchemyError, pd.errors.DatabaseError) as e:
        raise DataSourceError(f"Query against database failed: {e}") from e
    finally:
        engine.dispose()


def load_patient_frame(connection_string: str, query: str = PATIENT_QUERY) -> pd.DataFrame:
    """Run the patient query and return validated rows.

    Every column is coerced to float and the frame is checked against the
    Patient schema. One output row per table row, in query order.

    Args:
        connection_string: SQLAlchemy database URL
        query: SQL query returning the Patient columns

    Returns:
        DataFrame with PATIENT_COLUMNS

    Raises:
        DataSourceError: On connection failure or malformed rows
    """
    df = _read_query(connection_string, query)
    logger.info(f"Fetched {len(df)} rows from database")

    validator = PatientDataValidator()
    missing_cols = validator.missing_columns(df)
    if missing_cols:
        raise DataSourceError(f"Query result is missing columns: {missing_cols}")

    df = df[PATIENT_COLUMNS].copy()
    try:
        for col in PATIENT_COLUMNS:
            df[col] = pd.to_numeric(df[col], errors="raise").astype(float)
    except (ValueError, TypeError) as e:
        raise DataSourceError(f"Malformed row in query result: {e}") from e

    is_valid, errors = validator.validate_schema(df)
    if not is_valid:
        raise DataSourceError(f"Patient rows failed validation: {errors[:10]}")

    outliers = validator.detect_outliers(df)
    if outliers:
        counts = {col: len(idx) for col, idx in outliers.items()}
        logger.warning(f"Outliers detected (rows per column): {counts}")

    return df


def load_patients(connection_string: str, query: str = PATIENT_QUERY) -> List[Patient]:
    """Load the Patient table as typed records."""
    return patients_from_frame(load_patient_frame(connection_string, query))
