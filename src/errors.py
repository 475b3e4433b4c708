"""Error types for the diabetes prediction trainer.

Every error is fatal for a run. The ``step`` attribute names the stage that
failed so the CLI can report it.
"""


class DiabetesPredictionError(Exception):
    """Base class for all pipeline failures."""

    step = "pipeline"

    def __init__(self, message: str, step: str = None):
        super().__init__(message)
        if step is not None:
            self.step = step

    def __str__(self) -> str:
        return f"[{self.step}] {super().__str__()}"


class ConfigurationError(DiabetesPredictionError):
    """Settings or training configuration could not be read."""

    step = "configuration"


class ConfigurationMissingError(ConfigurationError):
    """A required setting is absent and no default was supplied."""


class DataSourceError(DiabetesPredictionError):
    """The database could not be read or returned malformed rows."""

    step = "data"


class TrainingError(DiabetesPredictionError):
    """Cross-validation or model fitting failed."""

    step = "training"


class PersistenceError(DiabetesPredictionError):
    """The model archive could not be written or read back."""

    step = "persistence"


class TrackingError(DiabetesPredictionError):
    """The experiment tracking backend rejected the run."""

    step = "tracking"
