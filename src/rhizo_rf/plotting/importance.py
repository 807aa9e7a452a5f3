"""Variable importance dot chart."""

from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pandas as pd

from rhizo_rf.plotting.metadata import apply_plot_metadata


def plot_importance(
    ranked: pd.DataFrame,
    out_path: Path,
    metric: str = "mean_decrease_gini",
    top_k: int = 30,
    title: str = "Variable importance",
    meta_lines: Sequence[str] | None = None,
) -> None:
    """
    Dot chart of the top features, most important at the top.

    Args:
        ranked: Output of ``rank_features`` (sorted descending)
        out_path: Output plot path
        metric: Importance column to plot
        top_k: Number of features shown
        title: Plot title
        meta_lines: Optional metadata lines for plot annotation
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    shown = ranked.head(top_k).iloc[::-1]
    if shown.empty:
        return

    height = max(4.0, 0.25 * len(shown) + 1.5)
    fig, ax = plt.subplots(figsize=(8, height))

    y_pos = np.arange(len(shown))
    ax.hlines(y_pos, 0, shown[metric], color="lightgrey", linewidth=1)
    ax.plot(shown[metric], y_pos, "o", color="tab:blue", markersize=6)

    ax.set_yticks(y_pos)
    ax.set_yticklabels(shown["feature"].astype(str), fontsize=8)
    ax.set_xlabel(metric.replace("_", " ").title(), fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.set_xlim(left=0)
    ax.grid(True, axis="x", alpha=0.3)

    bottom_margin = apply_plot_metadata(fig, meta_lines)
    plt.subplots_adjust(left=0.3, right=0.95, top=0.92, bottom=bottom_margin)
    plt.savefig(out_path, dpi=150, bbox_inches="tight", pad_inches=0.3)
    plt.close()
