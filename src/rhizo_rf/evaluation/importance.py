"""Feature importance ranking."""

import pandas as pd

from rhizo_rf.models.forest import ForestModel

IMPORTANCE_METRICS = ("mean_decrease_gini", "importance_normalized")


def rank_features(
    model: ForestModel,
    top_k: int | None = None,
    metric: str = "mean_decrease_gini",
) -> pd.DataFrame:
    """
    Rank features by importance, descending.

    Ties keep the original column order (stable sort), so the ranking is
    deterministic.

    Args:
        model: Trained forest
        top_k: Keep only the first K features (None = all)
        metric: Importance column to rank by

    Returns:
        DataFrame with columns rank, feature, mean_decrease_gini,
        importance_normalized
    """
    if metric not in IMPORTANCE_METRICS:
        raise ValueError(f"Unknown importance metric '{metric}'. Valid: {list(IMPORTANCE_METRICS)}")
    if top_k is not None and top_k < 1:
        raise ValueError(f"top_k must be >= 1, got {top_k}")

    ranked = (
        model.importance.sort_values(metric, ascending=False, kind="mergesort")
        .reset_index()
        .rename(columns={"index": "feature"})
    )
    ranked.insert(0, "rank", range(1, len(ranked) + 1))

    if top_k is not None:
        ranked = ranked.head(top_k)
    return ranked.reset_index(drop=True)
