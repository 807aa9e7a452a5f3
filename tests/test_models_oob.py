"""
Tests for out-of-bag vote bookkeeping.
"""

import numpy as np
import pandas as pd
import pytest

from rhizo_rf.models.oob import (
    OOB_COLUMN,
    cumulative_oob_error,
    final_oob_votes,
    oob_mask,
)


def _votes(*per_tree):
    """Stack per-tree (n_samples, n_classes) vote arrays."""
    return np.stack([np.asarray(v, dtype=float) for v in per_tree])


class TestCumulativeOOBError:
    """Hand-built votes with known answers."""

    def test_two_trees(self):
        # sample 0 (class 0) OOB in tree 1 only, sample 1 (class 1) in tree 2 only
        votes = _votes([[1, 0], [1, 0]], [[0, 1], [1, 0]])
        mask = np.array([[True, False], [False, True]])
        y = np.array([0, 1])

        curve = cumulative_oob_error(votes, mask, y, ["a", "b"])

        assert list(curve.columns) == [OOB_COLUMN, "a", "b"]
        assert curve.index.tolist() == [1, 2]
        assert curve.index.name == "n_trees"
        # after tree 1 only sample 0 has a vote, and it is right
        assert curve.loc[1, OOB_COLUMN] == 0.0
        assert np.isnan(curve.loc[1, "b"])
        # after tree 2 sample 1 is voted class 0: wrong
        assert curve.loc[2, OOB_COLUMN] == pytest.approx(0.5)
        assert curve.loc[2, "a"] == 0.0
        assert curve.loc[2, "b"] == 1.0

    def test_in_bag_votes_ignored(self):
        """A tree's vote counts only for samples it did not train on."""
        votes = _votes([[0, 1]])
        mask = np.array([[False]])
        curve = cumulative_oob_error(votes, mask, np.array([0]), ["a", "b"])
        assert np.isnan(curve.loc[1, OOB_COLUMN])

    def test_soft_votes_accumulate(self):
        votes = _votes([[0.6, 0.4]], [[0.0, 1.0]])
        mask = np.array([[True], [True]])
        curve = cumulative_oob_error(votes, mask, np.array([0]), ["a", "b"])
        assert curve[OOB_COLUMN].tolist() == [0.0, 1.0]


def test_final_votes_shares_and_counts():
    votes = _votes([[1, 0], [0, 1]], [[0.5, 0.5], [0, 1]], [[0, 1], [1, 0]])
    mask = np.array([[True, False], [True, False], [False, False]])

    shares, n_oob = final_oob_votes(votes, mask)

    np.testing.assert_allclose(shares[0], [0.75, 0.25])
    assert np.isnan(shares[1]).all()
    assert n_oob.tolist() == [2, 0]


class TestOnFittedForest:
    def test_mask_matches_bootstrap(self, small_model):
        mask = oob_mask(small_model.estimator, 60)
        assert mask.shape == (300, 60)
        # about e^-1 of samples are out-of-bag per tree
        assert 0.28 < mask.mean() < 0.46
        np.testing.assert_array_equal(mask.sum(axis=0), small_model.n_oob_trees.to_numpy())

    def test_votes_normalised(self, small_model):
        sums = small_model.oob_votes.sum(axis=1)
        np.testing.assert_allclose(sums, 1.0)

    def test_predictions_match_final_curve(self, small_model):
        """The last point of the curve is the error of the OOB predictions."""
        preds = small_model.oob_predictions
        error = (preds.astype(str) != small_model.y.astype(str)).mean()
        assert small_model.oob_error == pytest.approx(error)

    def test_per_class_columns(self, small_model):
        curve = small_model.oob_error_curve
        assert list(curve.columns) == [OOB_COLUMN, "leaf", "root", "rhizosphere"]
        last = curve.iloc[-1]
        counts = pd.Series(small_model.y).value_counts()
        weighted = sum(last[c] * counts[c] for c in small_model.classes) / counts.sum()
        assert last[OOB_COLUMN] == pytest.approx(weighted)

    def test_mask_requires_bootstrap(self, small_dataset):
        from sklearn.ensemble import RandomForestClassifier

        rf = RandomForestClassifier(n_estimators=3, bootstrap=False, random_state=0)
        rf.fit(small_dataset.feature_matrix(), small_dataset.label_codes())
        with pytest.raises(ValueError, match="bootstrap"):
            oob_mask(rf, small_dataset.n_samples)
