"""Shared constants for the diabetes prediction trainer."""

# Record identifier and label columns
ID_COLUMN = "Id"
LABEL_COLUMN = "Output"

# Ordered feature columns; training and inference must use this exact order
FEATURE_COLUMNS = [
    "Pregnancies",
    "Glucose",
    "BloodPressure",
    "SkinThickness",
    "Insulin",
    "BMI",
    "DiabetesPedigreeFunction",
    "Age",
]

# Full Patient row layout as returned by the loader
PATIENT_COLUMNS = [ID_COLUMN, *FEATURE_COLUMNS, LABEL_COLUMN]

PATIENT_QUERY = (
    "SELECT CAST(Id AS REAL) AS Id, "
    + ", ".join(FEATURE_COLUMNS)
    + ", CAST(Output AS REAL) AS Output FROM Patient"
)

DEFAULT_SETTINGS_PATH = "appsettings.json"
CONNECTION_STRING_NAME = "DbConnection"
DEFAULT_MODEL_PATH = "MLModel.zip"

DEFAULT_TEST_FRACTION = 0.2
DEFAULT_N_FOLDS = 10
DEFAULT_MAX_ITERATIONS = 10
