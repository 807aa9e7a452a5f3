"""
Metadata building utilities for plot annotations.

Creates short, reproducible metadata lines (seed, tree count, mtry, class
breakdown) that are stamped at the bottom of every diagnostic figure.
"""

from datetime import datetime


def build_plot_metadata(
    seed: int,
    n_trees: int,
    mtry: int,
    n_samples: int | None = None,
    n_features: int | None = None,
    class_counts: dict[str, int] | None = None,
    oob_error: float | None = None,
    imputation_iterations: int | None = None,
    timestamp: bool = True,
    extra_lines: list[str] | None = None,
) -> list[str]:
    """
    Build metadata lines for plot annotations.

    Args:
        seed: Random seed used for the forest
        n_trees: Number of trees in the forest
        mtry: Features sampled per split
        n_samples: Number of samples (optional)
        n_features: Number of features (optional)
        class_counts: Samples per class (optional)
        oob_error: Final aggregate OOB error (optional)
        imputation_iterations: Imputation iterations actually run (optional)
        timestamp: Include generation timestamp (default: True)
        extra_lines: Additional custom metadata lines (optional)

    Returns:
        List of metadata strings suitable for plot annotation

    Example:
        >>> meta = build_plot_metadata(seed=8675309, n_trees=1000, mtry=13, timestamp=False)
        >>> meta[0]
        'Random forest | Trees: 1000 | mtry: 13 | Seed: 8675309'
    """
    lines = [f"Random forest | Trees: {n_trees} | mtry: {mtry} | Seed: {seed}"]

    size_parts = []
    if n_samples is not None:
        sample_str = f"n={n_samples}"
        if class_counts:
            breakdown = ", ".join(f"{label}={count}" for label, count in class_counts.items())
            sample_str += f" ({breakdown})"
        size_parts.append(sample_str)
    if n_features is not None:
        size_parts.append(f"p={n_features}")
    if size_parts:
        lines.append(" | ".join(size_parts))

    fit_parts = []
    if oob_error is not None:
        fit_parts.append(f"OOB error: {oob_error:.2%}")
    if imputation_iterations is not None:
        fit_parts.append(f"Imputation iterations: {imputation_iterations}")
    if fit_parts:
        lines.append(" | ".join(fit_parts))

    if extra_lines:
        lines.extend(extra_lines)

    if timestamp:
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")

    return lines
