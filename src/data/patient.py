"""Typed patient records."""

from dataclasses import dataclass
from typing import Iterable, List, Mapping

import pandas as pd

from src.config.constants import PATIENT_COLUMNS

# Dataclass field for each column, in PATIENT_COLUMNS order
COLUMN_FIELDS = dict(
    zip(
        PATIENT_COLUMNS,
        [
            "id",
            "pregnancies",
            "glucose",
            "blood_pressure",
            "skin_thickness",
            "insulin",
            "bmi",
            "diabetes_pedigree_function",
            "age",
            "output",
        ],
    )
)


@dataclass(frozen=True)
class Patient:
    """One row of the Patient table."""

    pregnancies: float
    glucose: float
    blood_pressure: float
    skin_thickness: float
    insulin: float
    bmi: float
    diabetes_pedigree_function: float
    age: float
    id: float = 0.0
    output: float = 0.0

    @classmethod
    def from_row(cls, row: Mapping) -> "Patient":
        """Build a patient from a mapping keyed by column name."""
        values = {}
        for column, field_name in COLUMN_FIELDS.items():
            if column in row:
                values[field_name] = float(row[column])
        return cls(**values)

    def to_row(self) -> dict:
        return {column: getattr(self, field_name) for column, field_name in COLUMN_FIELDS.items()}


def patients_to_frame(patients: Iterable[Patient]) -> pd.DataFrame:
    """Convert patients to a DataFrame with PATIENT_COLUMNS order."""
    return pd.DataFrame([p.to_row() for p in patients], columns=PATIENT_COLUMNS, dtype=float)


def patients_from_frame(df: pd.DataFrame) -> List[Patient]:
    return [Patient.from_row(row) for row in df.to_dict(orient="records")]
