"""Random forest fitting, imputation and tuning."""

from rhizo_rf.models.forest import (
    ForestModel,
    build_random_forest,
    default_mtry,
    fit_forest,
    mean_decrease_gini,
    resolve_mtry,
)
from rhizo_rf.models.imputation import (
    ImputationError,
    ImputationResult,
    check_imputable,
    proximity_weighted_fill,
    rf_impute,
    rough_fix,
)
from rhizo_rf.models.oob import OOB_COLUMN, cumulative_oob_error, oob_mask
from rhizo_rf.models.proximity import proximity_distance, proximity_matrix
from rhizo_rf.models.tuning import TuningResult, tune_mtry

__all__ = [
    # Forest
    "ForestModel",
    "build_random_forest",
    "default_mtry",
    "fit_forest",
    "mean_decrease_gini",
    "resolve_mtry",
    # OOB
    "OOB_COLUMN",
    "cumulative_oob_error",
    "oob_mask",
    # Proximity
    "proximity_matrix",
    "proximity_distance",
    # Imputation
    "ImputationError",
    "ImputationResult",
    "check_imputable",
    "proximity_weighted_fill",
    "rf_impute",
    "rough_fix",
    # Tuning
    "TuningResult",
    "tune_mtry",
]
