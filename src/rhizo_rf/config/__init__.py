"""Configuration management for rhizo-rf."""

from rhizo_rf.config.defaults import (
    DEFAULT_FOREST_CONFIG,
    DEFAULT_IMPUTATION_CONFIG,
    DEFAULT_SEED,
    DEFAULT_TUNING_CONFIG,
)
from rhizo_rf.config.loader import (
    apply_overrides,
    load_pipeline_config,
    print_config_summary,
    save_config,
)
from rhizo_rf.config.schema import (
    DataConfig,
    EvaluationConfig,
    ForestConfig,
    ImputationConfig,
    OutputConfig,
    PipelineConfig,
    ProximityConfig,
    TuningConfig,
)
from rhizo_rf.config.validation import (
    ConfigValidationError,
    ConfigValidationWarning,
    validate_pipeline_config,
)

__all__ = [
    "DEFAULT_SEED",
    "DEFAULT_FOREST_CONFIG",
    "DEFAULT_IMPUTATION_CONFIG",
    "DEFAULT_TUNING_CONFIG",
    "apply_overrides",
    "load_pipeline_config",
    "print_config_summary",
    "save_config",
    "DataConfig",
    "ForestConfig",
    "ImputationConfig",
    "TuningConfig",
    "ProximityConfig",
    "EvaluationConfig",
    "OutputConfig",
    "PipelineConfig",
    "ConfigValidationError",
    "ConfigValidationWarning",
    "validate_pipeline_config",
]
