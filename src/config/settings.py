"""Settings file and training configuration loading."""

import copy
import json
import logging
from pathlib import Path

import yaml

from src.config.constants import (
    CONNECTION_STRING_NAME,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MODEL_PATH,
    DEFAULT_N_FOLDS,
    DEFAULT_SETTINGS_PATH,
    DEFAULT_TEST_FRACTION,
    PATIENT_QUERY,
)
from src.errors import ConfigurationError, ConfigurationMissingError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "data": {
        "query": PATIENT_QUERY,
        "test_fraction": DEFAULT_TEST_FRACTION,
        "random_seed": None,
        "stratify": False,
    },
    "cross_validation": {
        "n_folds": DEFAULT_N_FOLDS,
    },
    "model": {
        "max_iterations": DEFAULT_MAX_ITERATIONS,
        "random_seed": None,
    },
    "output": {
        "model_path": DEFAULT_MODEL_PATH,
    },
    "settings": {
        "path": DEFAULT_SETTINGS_PATH,
        "connection_name": CONNECTION_STRING_NAME,
    },
    "mlflow": {
        "enabled": False,
        "tracking_uri": "sqlite:///mlflow.db",
        "experiment_name": "diabetes-prediction",
    },
    "logging": {
        "log_level": "INFO",
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path = None) -> dict:
    """Load training configuration.

    Values from the YAML file override ``DEFAULT_CONFIG`` key by key, so a
    partial file is enough. Without a path the defaults are returned.
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(config_path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {config_path}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    return _merge(DEFAULT_CONFIG, raw)


def load_settings(settings_path: Path = DEFAULT_SETTINGS_PATH) -> dict:
    """Read the JSON settings file.

    The file is optional: a missing file yields an empty mapping.
    """
    settings_path = Path(settings_path)
    if not settings_path.exists():
        logger.debug(f"Settings file {settings_path} not found")
        return {}

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Invalid JSON in {settings_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {settings_path}: {e}") from e

    if not isinstance(settings, dict):
        raise ConfigurationError(f"Settings file {settings_path} must contain an object")
    return settings


def get_connection_string(
    settings_path: Path = DEFAULT_SETTINGS_PATH,
    name: str = CONNECTION_STRING_NAME,
    default: str = None,
) -> str:
    """Return a named connection string.

    Looks under ``ConnectionStrings`` first, then at the top level of the
    settings file.

    Args:
        settings_path: Path to the JSON settings file
        name: Connection string name
        default: Value to use when the setting is absent

    Returns:
        Connection string (a SQLAlchemy URL)

    Raises:
        ConfigurationMissingError: If the setting is absent and no default is given
    """
    settings = load_settings(settings_path)

    connection_strings = settings.get("ConnectionStrings") or {}
    if not isinstance(connection_strings, dict):
        raise ConfigurationError(f"ConnectionStrings in {settings_path} must be an object")

    value = connection_strings.get(name) or settings.get(name)
    if value and not isinstance(value, str):
        raise ConfigurationError(f"Connection string '{name}' in {settings_path} must be a string")

    if value:
        return value
    if default is not None:
        return default

    raise ConfigurationMissingError(
        f"Connection string '{name}' not found in {settings_path}"
    )
