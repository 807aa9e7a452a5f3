"""Proximity-based iterative imputation of missing predictor values.

Missing cells start at the column median. Each iteration fits a preliminary
forest on the currently filled-in data and replaces every originally missing
value by the proximity-weighted mean of the observed values in that column.

Two stopping modes:
    fixed: run exactly ``iterations`` rounds (reproducible baseline)
    auto:  additionally stop once the relative change in OOB error between
           consecutive rounds is below ``tolerance``
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from rhizo_rf.data.dataset import ImputedDataset, MetaboliteDataset
from rhizo_rf.models.forest import fit_forest
from rhizo_rf.utils.random import derive_seed

logger = logging.getLogger(__name__)

IMPUTATION_MODES = ("fixed", "auto")


class ImputationError(ValueError):
    """Raised when missing values cannot be imputed."""

    pass


@dataclass(frozen=True)
class ImputationResult:
    """
    Output of :func:`rf_impute`.

    Attributes:
        dataset: Imputed dataset
        history: One row per iteration with columns iteration, oob_error,
            relative_change (empty when the input had nothing to impute)
        converged: True if mode="auto" met the tolerance
        n_imputed: Number of cells that were filled
    """

    dataset: ImputedDataset
    history: pd.DataFrame
    converged: bool
    n_imputed: int

    @property
    def n_iterations(self) -> int:
        return len(self.history)


def check_imputable(dataset: MetaboliteDataset) -> None:
    """
    Fail if any feature column has no observed value.

    Raises:
        ImputationError: Listing the all-missing columns
    """
    all_missing = dataset.X.columns[dataset.X.isna().all(axis=0)].tolist()
    if all_missing:
        raise ImputationError(
            f"{len(all_missing)} feature column(s) are entirely missing and cannot be "
            f"imputed: {all_missing[:10]}"
        )


def rough_fix(X: pd.DataFrame) -> pd.DataFrame:
    """Fill missing values with the column median."""
    return X.fillna(X.median(axis=0))


def proximity_weighted_fill(
    values: np.ndarray, missing: np.ndarray, prox: np.ndarray
) -> np.ndarray:
    """
    Replace missing entries with proximity-weighted means of observed entries.

    For missing cell (i, f) the new value is
    sum_j prox[i, j] * x[j, f] / sum_j prox[i, j] over samples j where f was
    observed. If those weights sum to zero the current value is kept.

    Args:
        values: Current filled-in matrix (n_samples, n_features)
        missing: Boolean mask of originally missing cells
        prox: Proximity matrix (n_samples, n_samples)

    Returns:
        New matrix; observed cells are unchanged
    """
    filled = values.copy()
    for f in np.flatnonzero(missing.any(axis=0)):
        miss = missing[:, f]
        obs = ~miss
        weights = prox[np.ix_(miss, obs)]
        totals = weights.sum(axis=1)
        estimates = weights @ values[obs, f]
        current = values[miss, f]
        with np.errstate(invalid="ignore", divide="ignore"):
            filled[miss, f] = np.where(totals > 0, estimates / totals, current)
    return filled


def rf_impute(
    dataset: MetaboliteDataset,
    *,
    seed: int,
    iterations: int = 10,
    n_trees: int = 300,
    mtry: int | None = None,
    mode: str = "fixed",
    tolerance: float = 1e-3,
    n_jobs: int = 1,
) -> ImputationResult:
    """
    Impute missing feature values with random-forest proximities.

    Args:
        dataset: Dataset possibly containing missing feature values
        seed: Run seed; iteration k uses derive_seed(seed, "imputation", k)
        iterations: Maximum (mode="fixed": exact) number of iterations
        n_trees: Trees in each preliminary forest
        mtry: Features per split (None = floor(sqrt(p)))
        mode: "fixed" or "auto"
        tolerance: Relative OOB error change that ends the loop in auto mode
        n_jobs: Parallel jobs for tree fitting

    Returns:
        ImputationResult

    Raises:
        ImputationError: If a feature column is entirely missing
        ValueError: On an unknown mode or non-positive iteration count
    """
    if mode not in IMPUTATION_MODES:
        raise ValueError(f"Unknown imputation mode '{mode}'. Valid: {list(IMPUTATION_MODES)}")
    if iterations < 1:
        raise ValueError(f"iterations must be >= 1, got {iterations}")

    history_cols = ["iteration", "oob_error", "relative_change"]
    missing = dataset.missing_mask()
    n_missing = int(missing.sum())

    if n_missing == 0:
        logger.info("No missing values; imputation skipped")
        return ImputationResult(
            dataset=ImputedDataset.from_complete(dataset),
            history=pd.DataFrame(columns=history_cols),
            converged=False,
            n_imputed=0,
        )

    check_imputable(dataset)
    logger.info(
        f"Imputing {n_missing} missing cell(s) in "
        f"{int(missing.any(axis=0).sum())} feature(s): mode={mode}, "
        f"iterations={iterations}, n_trees={n_trees}"
    )

    current = rough_fix(dataset.X)
    records = []
    converged = False
    previous_error = None

    for k in range(iterations):
        working = ImputedDataset(X=current, y=dataset.y)
        model = fit_forest(
            working,
            n_trees=n_trees,
            mtry=mtry,
            seed=derive_seed(seed, "imputation", k),
            n_jobs=n_jobs,
            compute_proximity=True,
        )
        filled = proximity_weighted_fill(current.to_numpy(dtype=np.float64), missing, model.proximity)
        current = pd.DataFrame(filled, index=dataset.X.index, columns=dataset.X.columns)

        error = model.oob_error
        if previous_error is None:
            rel_change = np.nan
        elif previous_error > 0:
            rel_change = abs(error - previous_error) / previous_error
        else:
            rel_change = 0.0 if error == 0 else np.inf
        records.append({"iteration": k + 1, "oob_error": error, "relative_change": rel_change})
        logger.info(f"  Iteration {k + 1:>2}: OOB error {error:.2%}")

        if mode == "auto" and previous_error is not None and rel_change < tolerance:
            converged = True
            logger.info(
                f"OOB error change {rel_change:.2e} < tolerance {tolerance:.2e}; "
                f"stopping after {k + 1} iteration(s)"
            )
            break
        previous_error = error

    imputed = ImputedDataset(X=current, y=dataset.y)
    return ImputationResult(
        dataset=imputed,
        history=pd.DataFrame(records, columns=history_cols),
        converged=converged,
        n_imputed=n_missing,
    )
