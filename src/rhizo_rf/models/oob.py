"""Out-of-bag vote bookkeeping for a fitted RandomForestClassifier.

Each tree votes (with its leaf class probabilities) only for the samples its
bootstrap left out. Accumulating those votes tree by tree gives the OOB error
curve; the final accumulation gives the OOB predictions.
"""

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier

OOB_COLUMN = "OOB"


def oob_mask(forest: RandomForestClassifier, n_samples: int) -> np.ndarray:
    """
    Out-of-bag indicator per tree.

    Args:
        forest: Fitted forest with bootstrap=True
        n_samples: Number of training samples

    Returns:
        Boolean array (n_trees, n_samples); True where the sample was not drawn
        into that tree's bootstrap resample
    """
    if not forest.bootstrap:
        raise ValueError("OOB statistics require a forest fitted with bootstrap=True")

    mask = np.ones((len(forest.estimators_), n_samples), dtype=bool)
    for t, in_bag in enumerate(forest.estimators_samples_):
        mask[t, in_bag] = False
    return mask


def per_tree_votes(forest: RandomForestClassifier, X: np.ndarray, n_classes: int) -> np.ndarray:
    """
    Class probabilities of every tree for every sample.

    Columns are aligned to class codes 0..n_classes-1 even when a class was
    absent from the training labels.

    Returns:
        Array (n_trees, n_samples, n_classes)
    """
    X = np.asarray(X, dtype=np.float32)
    class_codes = np.asarray(forest.classes_, dtype=np.intp)
    votes = np.zeros((len(forest.estimators_), X.shape[0], n_classes))
    for t, tree in enumerate(forest.estimators_):
        votes[t][:, class_codes] = tree.predict_proba(X)
    return votes


def cumulative_oob_error(
    votes: np.ndarray,
    mask: np.ndarray,
    y_codes: np.ndarray,
    classes: list[str],
) -> pd.DataFrame:
    """
    OOB error after each additional tree, overall and per class.

    Samples without any OOB vote yet are left out of the rate at that point;
    a rate with no eligible samples is NaN.

    Args:
        votes: Per-tree class probabilities (n_trees, n_samples, n_classes)
        mask: OOB indicator (n_trees, n_samples)
        y_codes: True class codes (n_samples,)
        classes: Class names aligned with codes

    Returns:
        DataFrame indexed by n_trees (1..T) with columns "OOB" + classes
    """
    cum_votes = np.cumsum(votes * mask[:, :, None], axis=0)
    has_vote = np.cumsum(mask, axis=0) > 0
    predicted = np.argmax(cum_votes, axis=2)
    wrong = (predicted != y_codes[None, :]) & has_vote

    with np.errstate(invalid="ignore", divide="ignore"):
        columns = {OOB_COLUMN: wrong.sum(axis=1) / has_vote.sum(axis=1)}
        for code, label in enumerate(classes):
            in_class = y_codes == code
            eligible = has_vote[:, in_class].sum(axis=1)
            columns[label] = np.where(
                eligible > 0, wrong[:, in_class].sum(axis=1) / np.maximum(eligible, 1), np.nan
            )

    n_trees = votes.shape[0]
    return pd.DataFrame(columns, index=pd.RangeIndex(1, n_trees + 1, name="n_trees"))


def final_oob_votes(votes: np.ndarray, mask: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Normalised OOB vote shares and the number of OOB trees per sample.

    Returns:
        (shares, n_oob) where shares is (n_samples, n_classes) summing to 1 for
        samples with at least one OOB tree and NaN otherwise
    """
    # same accumulation order as cumulative_oob_error so argmax ties agree
    totals = np.cumsum(votes * mask[:, :, None], axis=0)[-1]
    n_oob = mask.sum(axis=0)
    row_sums = totals.sum(axis=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        shares = np.where(row_sums > 0, totals / row_sums, np.nan)
    return shares, n_oob
