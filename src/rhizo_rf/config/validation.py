"""
Configuration validation against the loaded data.

Some settings can only be checked once the number of samples and features
is known (mtry, tuning start, top-K, MDS dimensions).
"""

import warnings

from rhizo_rf.config.schema import PipelineConfig


class ConfigValidationError(Exception):
    """Raised when configuration is inconsistent with the data."""

    pass


class ConfigValidationWarning(UserWarning):
    """Warning for potential configuration issues."""

    pass


def validate_pipeline_config(config: PipelineConfig, n_samples: int, n_features: int):
    """
    Validate configuration against dataset dimensions.

    Hard inconsistencies raise ConfigValidationError; settings that only
    degrade diagnostics emit ConfigValidationWarning.

    Args:
        config: PipelineConfig instance
        n_samples: Number of samples in the dataset
        n_features: Number of features in the dataset
    """
    errors = []
    soft = []

    if config.forest.mtry is not None and config.forest.mtry > n_features:
        errors.append(f"forest.mtry ({config.forest.mtry}) exceeds feature count ({n_features}).")

    if config.tuning.mtry_start is not None and config.tuning.mtry_start > n_features:
        errors.append(
            f"tuning.mtry_start ({config.tuning.mtry_start}) exceeds feature count ({n_features})."
        )

    if config.evaluation.mds_dims >= n_samples:
        errors.append(
            f"evaluation.mds_dims ({config.evaluation.mds_dims}) must be smaller than "
            f"the number of samples ({n_samples})."
        )

    if config.evaluation.top_k is not None and config.evaluation.top_k > n_features:
        soft.append(
            f"evaluation.top_k ({config.evaluation.top_k}) exceeds feature count "
            f"({n_features}); all features will be reported."
        )

    if config.evaluation.convergence_window > config.forest.n_trees:
        soft.append(
            f"evaluation.convergence_window ({config.evaluation.convergence_window}) exceeds "
            f"forest.n_trees ({config.forest.n_trees}); the whole OOB curve will be used."
        )

    if config.forest.n_trees < 100:
        soft.append(
            f"forest.n_trees={config.forest.n_trees}: some samples may never be out-of-bag "
            "and will be missing from the confusion matrix."
        )

    _handle_issues(errors, "error", "Pipeline configuration")
    _handle_issues(soft, "warn", "Pipeline configuration")


def _handle_issues(issues: list[str], strictness: str, context: str):
    """Handle validation issues based on strictness level."""
    if not issues:
        return

    message = f"{context} issues:\n" + "\n".join(f"  - {issue}" for issue in issues)

    if strictness == "error":
        raise ConfigValidationError(message)
    elif strictness == "warn":
        warnings.warn(message, ConfigValidationWarning, stacklevel=3)
