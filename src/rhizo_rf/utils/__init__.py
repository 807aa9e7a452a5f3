"""Utility functions for rhizo-rf."""

from rhizo_rf.utils.logging import (
    auto_log_path,
    finalize_live_log,
    log_section,
    setup_logger,
)
from rhizo_rf.utils.metadata import build_plot_metadata
from rhizo_rf.utils.random import derive_seed, validate_seed
from rhizo_rf.utils.serialization import (
    load_joblib,
    load_json,
    load_model_bundle,
    save_joblib,
    save_json,
)

__all__ = [
    "setup_logger",
    "finalize_live_log",
    "auto_log_path",
    "log_section",
    "build_plot_metadata",
    "derive_seed",
    "validate_seed",
    "save_joblib",
    "load_joblib",
    "load_model_bundle",
    "save_json",
    "load_json",
]
