"""Data validation module for patient records."""

from typing import Dict, List, Tuple

import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema

from src.config.constants import FEATURE_COLUMNS, ID_COLUMN, LABEL_COLUMN, PATIENT_COLUMNS


class PatientDataValidator:
    """Validates rows loaded from the Patient table."""

    REQUIRED_COLUMNS = PATIENT_COLUMNS

    def __init__(self):
        """Initialize validator with schema."""
        columns = {
            ID_COLUMN: Column(float, nullable=False),
            LABEL_COLUMN: Column(float, checks=[pa.Check.isin([0.0, 1.0])], nullable=False),
        }
        for col in FEATURE_COLUMNS:
            checks = [pa.Check.ge(0)]
            if col == "Age":
                checks.append(pa.Check.le(120))
            columns[col] = Column(float, checks=checks, nullable=False)

        self.schema = DataFrameSchema(columns, strict=False)

    def missing_columns(self, df: pd.DataFrame) -> List[str]:
        """Required columns absent from df, in schema order."""
        return [col for col in self.REQUIRED_COLUMNS if col not in df.columns]

    def validate_schema(self, df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate dataframe against the Patient schema.

        Checks for:
        - Missing required columns
        - Data type mismatches and null cells
        - Value constraints (non-negative features, age <= 120, binary label)

        Args:
            df: Input dataframe

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        missing_cols = self.missing_columns(df)
        if missing_cols:
            errors.append(f"Missing required columns: {missing_cols}")
            return False, errors

        try:
            self.schema.validate(df[self.REQUIRED_COLUMNS], lazy=True)
            return True, []
        except pa.errors.SchemaErrors as e:
            for _, row in e.failure_cases.iterrows():
                errors.append(
                    f"Column '{row['column']}' failed check '{row['check']}' "
                    f"at index {row['index']}"
                )
            return False, errors

    def detect_outliers(self, df: pd.DataFrame, z_threshold: float = 3.0) -> Dict[str, List[int]]:
        """Flag feature values more than z_threshold standard deviations from the mean.

        Constant columns and frames of three rows or fewer are never flagged.

        Args:
            df: Patient rows
            z_threshold: Absolute z-score above which a value is an outlier

        Returns:
            Dictionary mapping column names to list of outlier indices
        """
        features = df[[col for col in FEATURE_COLUMNS if col in df.columns]]
        if len(features) <= 3:
            return {}

        std = features.std().replace(0, float("nan"))
        flagged = ((features - features.mean()) / std).abs() > z_threshold

        return {
            col: features.index[flagged[col]].tolist()
            for col in flagged.columns
            if flagged[col].any()
        }
