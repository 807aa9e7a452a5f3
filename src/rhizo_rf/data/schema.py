"""
Data schema definitions and constants.

Defines column names, labels, and output file names used throughout the
pipeline.
"""

# ============================================================================
# Column Names
# ============================================================================

# Label column ("Factor" in the metabolomics export)
LABEL_COL = "Factor"

# Name given to the sample identifier index after loading
SAMPLE_ID = "sample_id"

# ============================================================================
# Class Labels
# ============================================================================

LEAF_LABEL = "leaf"
ROOT_LABEL = "root"
RHIZOSPHERE_LABEL = "rhizosphere"

# Fixed label set, in reporting order
VALID_LABELS = [LEAF_LABEL, ROOT_LABEL, RHIZOSPHERE_LABEL]

# ============================================================================
# Data Quality Constants
# ============================================================================

# Feature count of the published dataset (id + label + 172 metabolites)
EXPECTED_N_FEATURES = 172

# Tokens read as missing in feature columns
NA_VALUES = ["", "NA", "NaN", "nan", "N/A", "NULL"]

# ============================================================================
# Output File Names
# ============================================================================

# Core outputs
MODEL_FILE = "forest_model.joblib"
CONFIG_FILE = "config.yaml"
RUN_SETTINGS_FILE = "run_settings.json"

# Imputation
IMPUTED_DATA_FILE = "imputed_data.tsv"
IMPUTATION_HISTORY_FILE = "imputation_history.csv"

# Diagnostics
OOB_CURVE_FILE = "oob_error_curve.csv"
CONFUSION_MATRIX_FILE = "confusion_matrix.csv"
OOB_PREDICTIONS_FILE = "oob_predictions.csv"
MDS_COORDS_FILE = "mds_coordinates.csv"
MDS_EIGEN_FILE = "mds_eigenvalues.csv"
TUNING_FILE = "tuning.csv"
PROXIMITY_FILE = "proximity.csv"

# Reports
FEATURE_IMPORTANCE_FILE = "feature_importance.csv"
TOP_FEATURES_FILE = "top_features.csv"

# ============================================================================
# Directory Structure
# ============================================================================

DIR_CORE = "core"
DIR_DATA = "data"
DIR_DIAGNOSTICS = "diagnostics"
DIR_REPORTS = "reports"
DIR_PLOTS = "plots"
