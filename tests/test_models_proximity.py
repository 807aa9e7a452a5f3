"""
Tests for the random-forest proximity matrix.
"""

import logging

import numpy as np
import pytest

from rhizo_rf.models.forest import fit_forest
from rhizo_rf.models.proximity import proximity_distance, proximity_matrix


class TestProximityMatrix:
    """Hand-built leaf assignments."""

    def test_fraction_of_shared_leaves(self):
        # 3 samples, 4 trees
        leaves = np.array(
            [
                [1, 1, 2, 3],
                [1, 1, 2, 4],
                [5, 6, 7, 8],
            ]
        )
        prox = proximity_matrix(leaves)

        assert prox[0, 1] == pytest.approx(0.75)
        assert prox[0, 2] == 0.0
        assert prox[1, 2] == 0.0
        np.testing.assert_array_equal(np.diag(prox), 1.0)

    def test_oob_only_normalises_by_joint_oob_trees(self):
        leaves = np.array(
            [
                [1, 1, 2],
                [1, 2, 2],
                [3, 3, 3],
            ]
        )
        # (n_trees, n_samples)
        mask = np.array(
            [
                [True, True, False],
                [True, True, True],
                [False, False, True],
            ]
        )
        prox = proximity_matrix(leaves, oob_mask=mask)

        # samples 0 and 1 jointly OOB in trees 1 and 2, same leaf in tree 1 only
        assert prox[0, 1] == pytest.approx(0.5)
        # samples 0 and 2 jointly OOB in tree 2 only, different leaves
        assert prox[0, 2] == 0.0
        np.testing.assert_array_equal(np.diag(prox), 1.0)

    def test_never_jointly_oob_warns(self, caplog):
        leaves = np.array([[1, 1], [1, 1]])
        mask = np.array([[True, False], [False, True]])
        with caplog.at_level(logging.WARNING, logger="rhizo_rf"):
            prox = proximity_matrix(leaves, oob_mask=mask)
        assert prox[0, 1] == 0.0
        assert "never jointly out-of-bag" in caplog.text

    def test_mask_shape_checked(self):
        with pytest.raises(ValueError, match="oob_mask shape"):
            proximity_matrix(np.zeros((3, 2)), oob_mask=np.ones((3, 3), dtype=bool))


class TestOnFittedForest:
    """Invariants of the proximity of a trained forest."""

    def test_symmetric_unit_diagonal_bounded(self, small_model):
        prox = small_model.proximity
        np.testing.assert_allclose(prox, prox.T)
        np.testing.assert_array_equal(np.diag(prox), 1.0)
        assert prox.min() >= 0.0
        assert prox.max() <= 1.0

    def test_same_class_closer_than_other_class(self, small_model):
        prox = small_model.proximity
        codes = small_model.y.cat.codes.to_numpy()
        same = codes[:, None] == codes[None, :]
        off_diag = ~np.eye(len(codes), dtype=bool)
        assert prox[same & off_diag].mean() > prox[~same].mean()

    def test_oob_only_variant(self, small_dataset):
        model = fit_forest(small_dataset, n_trees=200, seed=3, oob_proximity=True)
        prox = model.proximity
        assert model.oob_proximity is True
        np.testing.assert_allclose(prox, prox.T)
        np.testing.assert_array_equal(np.diag(prox), 1.0)
        assert 0.0 <= prox.min() and prox.max() <= 1.0


def test_distance_is_one_minus_proximity(small_model):
    dist = proximity_distance(small_model.proximity)
    np.testing.assert_array_equal(np.diag(dist), 0.0)
    off = ~np.eye(dist.shape[0], dtype=bool)
    np.testing.assert_allclose(dist[off], 1.0 - small_model.proximity[off])
