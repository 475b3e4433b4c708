"""Model archive persistence.

The archive is a zip file holding three entries:

- ``model.joblib``: the fitted pipeline
- ``schema.json``: ordered feature columns with dtypes, label column, classes
- ``metadata.json``: training parameters and metrics
"""

import io
import json
import logging
import os
import pickle
import tempfile
import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import joblib
import pandas as pd

from src.config.constants import DEFAULT_MODEL_PATH, FEATURE_COLUMNS, LABEL_COLUMN
from src.errors import PersistenceError
from src.features.preprocess import get_feature_names

logger = logging.getLogger(__name__)

MODEL_ENTRY = "model.joblib"
SCHEMA_ENTRY = "schema.json"
METADATA_ENTRY = "metadata.json"


@dataclass
class LoadedModel:
    model: object
    schema: dict
    metadata: dict = field(default_factory=dict)


def build_schema(model, df: pd.DataFrame) -> dict:
    """Describe the inputs a fitted model was trained on.

    Args:
        model: Fitted training pipeline
        df: Training rows

    Returns:
        Schema dictionary
    """
    feature_names = get_feature_names(model)
    return {
        "features": [{"name": col, "dtype": str(df[col].dtype)} for col in feature_names],
        "label": LABEL_COLUMN,
        "classes": [float(c) for c in model.classes_],
    }


def save_model(model, schema: dict, path=DEFAULT_MODEL_PATH, metadata: dict = None) -> Path:
    """Write the model archive, replacing any existing file.

    The archive is built in a temporary file next to ``path`` and moved into
    place once complete, so a failed write leaves any previous archive intact.

    Args:
        model: Fitted training pipeline
        schema: Training schema from build_schema
        path: Destination file
        metadata: Extra JSON-serializable information

    Returns:
        Path of the written archive
    """
    path = Path(path)
    tmp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        buffer = io.BytesIO()
        joblib.dump(model, buffer)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        os.close(fd)
        tmp_path = Path(tmp_name)

        with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(MODEL_ENTRY, buffer.getvalue())
            archive.writestr(SCHEMA_ENTRY, json.dumps(schema, indent=2))
            archive.writestr(METADATA_ENTRY, json.dumps(metadata or {}, indent=2, default=str))

        os.replace(tmp_path, path)
        tmp_path = None
    except (OSError, TypeError, ValueError, pickle.PicklingError) as e:
        raise PersistenceError(f"Failed to write model to {path}: {e}") from e
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)

    logger.info(f"Model saved to {path}")
    return path


def _feature_names(schema) -> list:
    if not isinstance(schema, dict):
        raise PersistenceError(f"{SCHEMA_ENTRY} must contain an object")
    features = schema.get("features", [])
    if not isinstance(features, list) or not all(isinstance(f, dict) for f in features):
        raise PersistenceError(f"{SCHEMA_ENTRY} has a malformed feature list")
    return [feature.get("name") for feature in features]


def load_model(path=DEFAULT_MODEL_PATH) -> LoadedModel:
    """Read a model archive written by save_model.

    Raises:
        PersistenceError: If the file is missing or corrupt, or its feature
            schema differs from FEATURE_COLUMNS
    """
    path = Path(path)
    if not path.exists():
        raise PersistenceError(f"Model archive not found: {path}")

    try:
        with zipfile.ZipFile(path, "r") as archive:
            schema = json.loads(archive.read(SCHEMA_ENTRY))
            metadata = {}
            if METADATA_ENTRY in archive.namelist():
                metadata = json.loads(archive.read(METADATA_ENTRY))
            model = joblib.load(io.BytesIO(archive.read(MODEL_ENTRY)))
    except (
        zipfile.BadZipFile,
        KeyError,
        OSError,
        EOFError,
        ValueError,
        AttributeError,
        ImportError,
        pickle.UnpicklingError,
    ) as e:
        raise PersistenceError(f"Failed to read model archive {path}: {e}") from e

    feature_names = _feature_names(schema)
    if feature_names != FEATURE_COLUMNS:
        raise PersistenceError(
            f"Model {path} was trained on features {feature_names}, expected {FEATURE_COLUMNS}"
        )

    return LoadedModel(model=model, schema=schema, metadata=metadata)
