"""Model diagnostics and results reporting."""

from rhizo_rf.evaluation.embedding import MDSResult, classical_mds, proximity_mds
from rhizo_rf.evaluation.importance import rank_features
from rhizo_rf.evaluation.oob import (
    CLASS_ERROR_COL,
    oob_confusion_matrix,
    oob_error_series,
    summarize_oob_convergence,
)
from rhizo_rf.evaluation.reports import OutputDirectories, ResultsWriter

__all__ = [
    # OOB
    "CLASS_ERROR_COL",
    "oob_error_series",
    "oob_confusion_matrix",
    "summarize_oob_convergence",
    # MDS
    "MDSResult",
    "classical_mds",
    "proximity_mds",
    # Importance
    "rank_features",
    # Reports
    "OutputDirectories",
    "ResultsWriter",
]
