"""Plotting utilities for rhizo-rf.

Diagnostic figures for a trained forest:
- OOB error versus number of trees
- MDS of sample proximity
- Variable importance
- mtry tuning and imputation convergence
"""

from rhizo_rf.plotting.importance import plot_importance
from rhizo_rf.plotting.mds import plot_mds
from rhizo_rf.plotting.metadata import apply_plot_metadata
from rhizo_rf.plotting.oob_curve import plot_oob_error_curve
from rhizo_rf.plotting.tuning import plot_imputation_history, plot_tuning_curve

__all__ = [
    "apply_plot_metadata",
    "plot_oob_error_curve",
    "plot_mds",
    "plot_importance",
    "plot_tuning_curve",
    "plot_imputation_history",
]
