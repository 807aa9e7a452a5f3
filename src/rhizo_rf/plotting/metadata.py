"""Shared figure annotation helpers."""

from collections.abc import Sequence

import matplotlib.figure


def apply_plot_metadata(
    fig: matplotlib.figure.Figure, meta_lines: Sequence[str] | None = None
) -> float:
    """
    Apply metadata text to bottom of figure.

    Args:
        fig: matplotlib figure object
        meta_lines: sequence of metadata strings to display

    Returns:
        Required bottom margin as fraction of figure height (0.0 to 1.0)
    """
    lines = [str(line) for line in (meta_lines or []) if line]
    if not lines:
        return 0.12

    fig.text(0.5, 0.005, "\n".join(lines), ha="center", va="bottom", fontsize=8, wrap=True)

    required_bottom = 0.12 + (0.022 * len(lines))
    return min(required_bottom, 0.30)


# Fixed colours so the same class looks the same in every figure
CLASS_COLORS = ["tab:green", "tab:brown", "tab:orange", "tab:blue", "tab:purple", "tab:red"]


def class_color(index: int) -> str:
    return CLASS_COLORS[index % len(CLASS_COLORS)]
