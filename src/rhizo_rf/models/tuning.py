"""Step search over mtry (features per split).

Starting from an initial width, the search shrinks it by ``step_factor``
until the OOB error stops improving by at least ``improve`` (relative), then
does the same growing it. Every candidate is refit with the same seed so the
bootstrap resamples are shared and only mtry differs.

The result is informational: no existing model is modified.
"""

import logging
import math
from dataclasses import dataclass

import pandas as pd

from rhizo_rf.data.dataset import ImputedDataset
from rhizo_rf.models.forest import fit_forest, resolve_mtry
from rhizo_rf.utils.random import validate_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TuningResult:
    """
    Output of :func:`tune_mtry`.

    Attributes:
        best_mtry: Width with the lowest OOB error (ties -> smaller width)
        best_oob_error: OOB error at best_mtry
        history: One row per evaluated width, sorted by mtry, with columns
            mtry, oob_error, direction, step
        hit_step_limit: True if either direction stopped at max_steps
    """

    best_mtry: int
    best_oob_error: float
    history: pd.DataFrame
    hit_step_limit: bool


def _relative_improvement(error_old: float, error_new: float) -> float:
    if error_old <= 0:
        return 0.0
    return 1.0 - error_new / error_old


def tune_mtry(
    dataset: ImputedDataset,
    *,
    seed: int,
    mtry_start: int | None = None,
    step_factor: float = 1.5,
    improve: float = 1e-5,
    n_trees: int = 50,
    max_steps: int = 20,
    n_jobs: int = 1,
) -> TuningResult:
    """
    Search for the mtry with lowest OOB error.

    Args:
        dataset: Complete dataset
        seed: Seed used for every candidate fit
        mtry_start: Starting width (None = floor(sqrt(p)))
        step_factor: Multiplicative step (> 1)
        improve: Minimum relative OOB error improvement to keep stepping
        n_trees: Trees per candidate fit
        max_steps: Safety bound on steps per direction
        n_jobs: Parallel jobs for tree fitting

    Returns:
        TuningResult
    """
    if step_factor <= 1.0:
        raise ValueError(f"step_factor must be > 1, got {step_factor}")
    if max_steps < 1:
        raise ValueError(f"max_steps must be >= 1, got {max_steps}")

    seed = validate_seed(seed)
    n_features = dataset.n_features
    start = resolve_mtry(mtry_start, n_features)
    errors: dict[int, float] = {}
    rows = []

    def evaluate(mtry: int, direction: str, step: int) -> float:
        if mtry not in errors:
            model = fit_forest(
                dataset,
                n_trees=n_trees,
                mtry=mtry,
                seed=seed,
                n_jobs=n_jobs,
                compute_proximity=False,
            )
            errors[mtry] = model.oob_error
            rows.append(
                {"mtry": mtry, "oob_error": errors[mtry], "direction": direction, "step": step}
            )
            logger.info(f"  mtry={mtry:<4} OOB error {errors[mtry]:.2%} ({direction})")
        return errors[mtry]

    logger.info(
        f"Tuning mtry from {start}: step_factor={step_factor}, improve={improve}, "
        f"n_trees={n_trees}"
    )
    start_error = evaluate(start, "start", 0)
    hit_limit = False

    for direction in ("down", "up"):
        current = start
        error_old = start_error
        for step in range(1, max_steps + 1):
            if direction == "down":
                candidate = max(1, math.ceil(current / step_factor))
            else:
                candidate = min(n_features, math.floor(current * step_factor))
            if candidate == current:
                break
            error_new = evaluate(candidate, direction, step)
            if _relative_improvement(error_old, error_new) < improve:
                break
            current = candidate
            error_old = error_new
        else:
            hit_limit = True
            logger.warning(
                f"mtry search ({direction}) reached max_steps={max_steps} without "
                "meeting the improvement threshold; using best so far"
            )

    history = pd.DataFrame(rows, columns=["mtry", "oob_error", "direction", "step"])
    history = history.sort_values("mtry", kind="mergesort").reset_index(drop=True)

    best_row = history.loc[history["oob_error"].idxmin()]
    best_mtry = int(best_row["mtry"])
    logger.info(f"Best mtry: {best_mtry} (OOB error {best_row['oob_error']:.2%})")

    return TuningResult(
        best_mtry=best_mtry,
        best_oob_error=float(best_row["oob_error"]),
        history=history,
        hit_step_limit=hit_limit,
    )
