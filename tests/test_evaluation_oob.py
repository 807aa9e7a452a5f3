"""
Tests for OOB diagnostics: error series, confusion matrix, convergence.
"""

import numpy as np
import pytest

from rhizo_rf.evaluation.oob import (
    CLASS_ERROR_COL,
    oob_confusion_matrix,
    oob_error_series,
    summarize_oob_convergence,
)
from rhizo_rf.models.oob import OOB_COLUMN


class TestOOBErrorSeries:
    def test_full_curve(self, small_model):
        curve = oob_error_series(small_model)
        assert len(curve) == small_model.n_trees
        assert curve.index[0] == 1
        assert curve.index[-1] == small_model.n_trees

    def test_aggregate_only(self, small_model):
        curve = oob_error_series(small_model, classes=False)
        assert list(curve.columns) == [OOB_COLUMN]

    def test_returns_copy(self, small_model):
        curve = oob_error_series(small_model)
        curve.iloc[:, :] = 99.0
        assert small_model.oob_error_curve[OOB_COLUMN].max() <= 1.0


class TestConfusionMatrix:
    def test_shape_and_labels(self, small_model):
        cm = oob_confusion_matrix(small_model)
        assert list(cm.index) == small_model.classes
        assert list(cm.columns) == small_model.classes + [CLASS_ERROR_COL]
        assert cm.index.name == "true"

    def test_row_sums_equal_class_counts(self, small_model):
        cm = oob_confusion_matrix(small_model)
        counts = cm[small_model.classes].sum(axis=1)
        assert counts.to_dict() == {"leaf": 20, "root": 20, "rhizosphere": 20}

    def test_class_error_consistent_with_counts(self, small_model):
        cm = oob_confusion_matrix(small_model)
        for label in small_model.classes:
            row = cm.loc[label, small_model.classes]
            assert cm.loc[label, CLASS_ERROR_COL] == pytest.approx(
                1.0 - row[label] / row.sum()
            )

    def test_overall_error_matches_curve(self, small_model):
        cm = oob_confusion_matrix(small_model)
        counts = cm[small_model.classes].to_numpy()
        error = 1.0 - np.trace(counts) / counts.sum()
        assert error == pytest.approx(small_model.oob_error)

    def test_class_error_matches_curve(self, small_model):
        cm = oob_confusion_matrix(small_model)
        last = small_model.oob_error_curve.iloc[-1]
        for label in small_model.classes:
            assert cm.loc[label, CLASS_ERROR_COL] == pytest.approx(last[label])


class TestConvergence:
    def test_summary_fields(self, small_model):
        summary = summarize_oob_convergence(small_model, window=100)
        assert summary["window"] == 100
        assert summary["final_oob_error"] == pytest.approx(small_model.oob_error)
        assert summary["tail_range"] >= 0
        assert 1 <= summary["last_change_at"] <= small_model.n_trees

    def test_window_clipped_to_forest_size(self, small_model):
        summary = summarize_oob_convergence(small_model, window=10_000)
        assert summary["window"] == small_model.n_trees

    def test_tail_is_stable(self, small_model):
        """Past a few hundred trees the OOB error barely moves."""
        summary = summarize_oob_convergence(small_model, window=100)
        assert summary["tail_std"] < 0.02
