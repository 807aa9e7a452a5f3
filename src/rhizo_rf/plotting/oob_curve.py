"""OOB error versus number of trees."""

import logging
from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from rhizo_rf.models.oob import OOB_COLUMN
from rhizo_rf.plotting.metadata import apply_plot_metadata, class_color

logger = logging.getLogger(__name__)


def plot_oob_error_curve(
    curve: pd.DataFrame,
    out_path: Path,
    title: str = "OOB error by number of trees",
    meta_lines: Sequence[str] | None = None,
) -> None:
    """
    Plot the aggregate and per-class cumulative OOB error.

    Args:
        curve: DataFrame indexed by n_trees with an "OOB" column and one column
            per class (as produced by the trainer)
        out_path: Output plot path
        title: Plot title
        meta_lines: Optional metadata lines for plot annotation
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    if curve.empty:
        logger.warning("Empty OOB curve; nothing to plot")
        return

    fig, ax = plt.subplots(figsize=(10, 6))

    ax.plot(curve.index, curve[OOB_COLUMN], color="black", linewidth=2, label="OOB (all)")

    class_cols = [c for c in curve.columns if c != OOB_COLUMN]
    for i, col in enumerate(class_cols):
        ax.plot(
            curve.index,
            curve[col],
            color=class_color(i),
            linestyle="--",
            linewidth=1.2,
            alpha=0.85,
            label=str(col),
        )

    ax.set_xlabel("Number of trees", fontsize=12)
    ax.set_ylabel("OOB error rate", fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.set_ylim(bottom=0)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best", fontsize=10)

    bottom_margin = apply_plot_metadata(fig, meta_lines)
    plt.subplots_adjust(left=0.12, right=0.95, top=0.9, bottom=bottom_margin)
    plt.savefig(out_path, dpi=150, bbox_inches="tight", pad_inches=0.3)
    plt.close()
