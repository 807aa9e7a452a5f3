"""Random-forest proximity between samples.

Proximity of samples i and j is the fraction of trees in which both land in
the same terminal leaf.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def proximity_matrix(leaves: np.ndarray, oob_mask: np.ndarray | None = None) -> np.ndarray:
    """
    Compute the proximity matrix from terminal-leaf assignments.

    Args:
        leaves: Leaf index per sample and tree, shape (n_samples, n_trees),
            as returned by ``RandomForestClassifier.apply``
        oob_mask: Optional (n_trees, n_samples) OOB indicator. When given, a
            tree only counts for pairs that are both out-of-bag in it, and
            proximity is normalised by the number of such trees.

    Returns:
        Symmetric (n_samples, n_samples) array with values in [0, 1] and a
        unit diagonal
    """
    leaves = np.asarray(leaves)
    n_samples, n_trees = leaves.shape
    counts = np.zeros((n_samples, n_samples))

    if oob_mask is None:
        for t in range(n_trees):
            col = leaves[:, t]
            counts += col[:, None] == col[None, :]
        prox = counts / n_trees
    else:
        if oob_mask.shape != (n_trees, n_samples):
            raise ValueError(
                f"oob_mask shape {oob_mask.shape} does not match ({n_trees}, {n_samples})"
            )
        pair_trees = np.zeros((n_samples, n_samples))
        for t in range(n_trees):
            col = leaves[:, t]
            m = oob_mask[t]
            both = m[:, None] & m[None, :]
            counts += (col[:, None] == col[None, :]) & both
            pair_trees += both
        with np.errstate(invalid="ignore", divide="ignore"):
            prox = np.where(pair_trees > 0, counts / pair_trees, 0.0)
        n_unpaired = int((pair_trees == 0).sum() - np.diag(pair_trees == 0).sum())
        if n_unpaired:
            logger.warning(
                f"{n_unpaired // 2} sample pair(s) were never jointly out-of-bag; proximity set to 0"
            )

    prox = (prox + prox.T) / 2.0
    np.fill_diagonal(prox, 1.0)
    return prox


def proximity_distance(prox: np.ndarray) -> np.ndarray:
    """Dissimilarity ``1 - proximity`` with an exact zero diagonal."""
    dist = 1.0 - np.asarray(prox, dtype=float)
    np.fill_diagonal(dist, 0.0)
    return np.clip(dist, 0.0, 1.0)
