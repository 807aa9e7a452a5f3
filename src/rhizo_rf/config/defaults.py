"""
Default configuration values.

Single source of truth for pipeline defaults; mirrored by the Pydantic
models in ``rhizo_rf.config.schema``.
"""

from typing import Any

# Run-level seed used when none is configured
DEFAULT_SEED = 8675309

DEFAULT_DATA_CONFIG: dict[str, Any] = {
    "infile": None,
    "id_col": None,  # None = first column
    "label_col": "Factor",
    "labels": ["leaf", "root", "rhizosphere"],
    "sep": "\t",
    "expected_n_features": None,
}

DEFAULT_FOREST_CONFIG: dict[str, Any] = {
    "n_trees": 1000,
    "mtry": None,  # None = floor(sqrt(n_features))
    "min_samples_leaf": 1,
    "n_jobs": 1,
}

DEFAULT_IMPUTATION_CONFIG: dict[str, Any] = {
    "iterations": 10,
    "n_trees": 300,
    "mode": "fixed",
    "tolerance": 1e-3,
}

DEFAULT_TUNING_CONFIG: dict[str, Any] = {
    "enabled": True,
    "mtry_start": None,  # None = forest.mtry
    "step_factor": 1.5,
    "improve": 1e-5,
    "n_trees": 50,
    "max_steps": 20,
}

DEFAULT_PROXIMITY_CONFIG: dict[str, Any] = {
    "oob_only": False,
}

DEFAULT_EVALUATION_CONFIG: dict[str, Any] = {
    "top_k": 10,
    "mds_dims": 2,
    "convergence_window": 200,
}

DEFAULT_OUTPUT_CONFIG: dict[str, Any] = {
    "outdir": "results",
    "run_id": None,
    "plot_format": "png",
    "save_plots": True,
    "save_proximity": False,
    "save_model": True,
}
