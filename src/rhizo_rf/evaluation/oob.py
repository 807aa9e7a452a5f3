"""
OOB-based model diagnostics.

- oob_error_series: cumulative OOB error by number of trees
- oob_confusion_matrix: true x predicted counts from OOB votes
- summarize_oob_convergence: stability of the OOB curve over its tail
"""

import logging
from typing import Any

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from rhizo_rf.models.forest import ForestModel
from rhizo_rf.models.oob import OOB_COLUMN

logger = logging.getLogger(__name__)

CLASS_ERROR_COL = "class_error"


def oob_error_series(model: ForestModel, classes: bool = True) -> pd.DataFrame:
    """
    Cumulative OOB error indexed by number of trees.

    Args:
        model: Trained forest
        classes: Include one column per class (default) or only "OOB"

    Returns:
        DataFrame indexed by n_trees (1..T)
    """
    curve = model.oob_error_curve.copy()
    if not classes:
        curve = curve[[OOB_COLUMN]]
    return curve


def oob_confusion_matrix(model: ForestModel) -> pd.DataFrame:
    """
    Confusion matrix of OOB predictions.

    Rows are true labels, columns predicted labels, plus a ``class_error``
    column (fraction of each true class misclassified). Samples that were
    never out-of-bag have no prediction and are excluded.

    Returns:
        DataFrame of shape (n_classes, n_classes + 1)
    """
    predictions = model.oob_predictions
    has_pred = predictions.notna().to_numpy()
    n_missing = int((~has_pred).sum())
    if n_missing:
        logger.warning(f"{n_missing} sample(s) without OOB prediction excluded from confusion matrix")

    y_true = model.y.cat.codes.to_numpy()[has_pred]
    y_pred = predictions.cat.codes.to_numpy()[has_pred]
    codes = list(range(len(model.classes)))

    counts = confusion_matrix(y_true, y_pred, labels=codes)
    cm = pd.DataFrame(
        counts,
        index=pd.Index(model.classes, name="true"),
        columns=pd.Index(model.classes, name="predicted"),
    )

    row_totals = counts.sum(axis=1)
    correct = np.diag(counts)
    with np.errstate(invalid="ignore", divide="ignore"):
        cm[CLASS_ERROR_COL] = np.where(row_totals > 0, 1.0 - correct / row_totals, np.nan)
    return cm


def summarize_oob_convergence(model: ForestModel, window: int = 200) -> dict[str, Any]:
    """
    Summarise how stable the aggregate OOB error is over the last trees.

    Args:
        model: Trained forest
        window: Number of trailing trees to inspect (clipped to the forest size)

    Returns:
        Dictionary with final error, tail mean/std/range, and the tree count at
        which the error last changed
    """
    series = model.oob_error_curve[OOB_COLUMN].dropna()
    window = max(1, min(int(window), len(series)))
    tail = series.iloc[-window:]

    changes = series.diff().fillna(0.0).to_numpy() != 0
    last_change = int(series.index[np.flatnonzero(changes)[-1]]) if changes.any() else int(series.index[0])

    return {
        "final_oob_error": float(series.iloc[-1]),
        "window": window,
        "tail_mean": float(tail.mean()),
        "tail_std": float(tail.std(ddof=0)),
        "tail_range": float(tail.max() - tail.min()),
        "last_change_at": last_change,
    }
