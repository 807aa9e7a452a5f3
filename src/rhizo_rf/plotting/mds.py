"""MDS scatter of forest proximities."""

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from rhizo_rf.plotting.metadata import apply_plot_metadata, class_color


def plot_mds(
    coordinates: pd.DataFrame,
    labels: pd.Series,
    out_path: Path,
    eigenvalue_share: Sequence[float] | None = None,
    title: str = "MDS of random-forest proximity",
    meta_lines: Sequence[str] | None = None,
) -> None:
    """
    Scatter the first two MDS dimensions, coloured by class.

    Args:
        coordinates: DataFrame with at least columns Dim1 and Dim2
        labels: Categorical labels aligned with coordinates' index
        out_path: Output plot path
        eigenvalue_share: Optional variance share per dimension for axis labels
        title: Plot title
        meta_lines: Optional metadata lines for plot annotation
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    if coordinates.shape[1] < 2:
        raise ValueError("plot_mds needs at least two dimensions")

    labels = labels.reindex(coordinates.index)
    categories = (
        list(labels.cat.categories)
        if isinstance(labels.dtype, pd.CategoricalDtype)
        else sorted(labels.unique())
    )

    fig, ax = plt.subplots(figsize=(8, 7))
    for i, category in enumerate(categories):
        sel = (labels == category).to_numpy()
        if not sel.any():
            continue
        ax.scatter(
            coordinates.iloc[sel, 0],
            coordinates.iloc[sel, 1],
            color=class_color(i),
            s=40,
            alpha=0.8,
            edgecolor="white",
            linewidth=0.5,
            label=f"{category} (n={int(sel.sum())})",
        )

    def axis_label(j: int) -> str:
        text = f"Dim {j + 1}"
        if eigenvalue_share is not None and len(eigenvalue_share) > j:
            text += f" ({eigenvalue_share[j]:.1%})"
        return text

    ax.set_xlabel(axis_label(0), fontsize=12)
    ax.set_ylabel(axis_label(1), fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.axhline(0, color="grey", linewidth=0.5, alpha=0.5)
    ax.axvline(0, color="grey", linewidth=0.5, alpha=0.5)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best", fontsize=10)

    bottom_margin = apply_plot_metadata(fig, meta_lines)
    plt.subplots_adjust(left=0.12, right=0.95, top=0.9, bottom=bottom_margin)
    plt.savefig(out_path, dpi=150, bbox_inches="tight", pad_inches=0.3)
    plt.close()
