"""Tuning and imputation convergence plots."""

from collections.abc import Sequence
from pathlib import Path

import pandas as pd

from rhizo_rf.plotting.metadata import apply_plot_metadata


def plot_tuning_curve(
    history: pd.DataFrame,
    out_path: Path,
    best_mtry: int | None = None,
    title: str = "OOB error by mtry",
    meta_lines: Sequence[str] | None = None,
) -> None:
    """
    Plot OOB error for every evaluated mtry.

    Args:
        history: TuningResult.history (columns mtry, oob_error)
        out_path: Output plot path
        best_mtry: Highlighted width (optional)
        title: Plot title
        meta_lines: Optional metadata lines for plot annotation
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    if history.empty:
        return

    history = history.sort_values("mtry")
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(history["mtry"], history["oob_error"], "o-", color="tab:blue", linewidth=1.5)

    if best_mtry is not None and (history["mtry"] == best_mtry).any():
        best_err = history.loc[history["mtry"] == best_mtry, "oob_error"].iloc[0]
        ax.plot([best_mtry], [best_err], "o", color="tab:red", markersize=10, label="Best")
        ax.legend(loc="best", fontsize=10)

    ax.set_xscale("log")
    ax.set_xticks(history["mtry"].tolist())
    ax.set_xticklabels([str(int(m)) for m in history["mtry"]])
    ax.set_xlabel("mtry (features per split)", fontsize=12)
    ax.set_ylabel("OOB error rate", fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.grid(True, alpha=0.3)

    bottom_margin = apply_plot_metadata(fig, meta_lines)
    plt.subplots_adjust(left=0.15, right=0.95, top=0.9, bottom=bottom_margin)
    plt.savefig(out_path, dpi=150, bbox_inches="tight", pad_inches=0.3)
    plt.close()


def plot_imputation_history(
    history: pd.DataFrame,
    out_path: Path,
    title: str = "OOB error by imputation iteration",
    meta_lines: Sequence[str] | None = None,
) -> None:
    """
    Plot the preliminary-forest OOB error after each imputation iteration.

    Args:
        history: ImputationResult.history (columns iteration, oob_error)
        out_path: Output plot path
        title: Plot title
        meta_lines: Optional metadata lines for plot annotation
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    if history.empty:
        return

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(history["iteration"], history["oob_error"], "s-", color="tab:purple", linewidth=1.5)
    ax.set_xticks(history["iteration"].astype(int).tolist())
    ax.set_xlabel("Iteration", fontsize=12)
    ax.set_ylabel("OOB error rate", fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.grid(True, alpha=0.3)

    bottom_margin = apply_plot_metadata(fig, meta_lines)
    plt.subplots_adjust(left=0.15, right=0.95, top=0.9, bottom=bottom_margin)
    plt.savefig(out_path, dpi=150, bbox_inches="tight", pad_inches=0.3)
    plt.close()
