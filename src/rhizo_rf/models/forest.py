"""Random forest training.

Wraps scikit-learn's RandomForestClassifier and derives, from the fitted
ensemble, the statistics the diagnostics need:

- cumulative OOB error per class (one row per tree added)
- OOB vote shares and predictions
- mean decrease Gini (unnormalised, averaged over trees)
- the sample proximity matrix

Identical seed, data and hyperparameters reproduce every one of these
exactly; ``n_jobs`` only changes wall time.
"""

import logging
import math
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier

from rhizo_rf.data.dataset import ImputedDataset
from rhizo_rf.models.oob import (
    OOB_COLUMN,
    cumulative_oob_error,
    final_oob_votes,
    oob_mask,
    per_tree_votes,
)
from rhizo_rf.models.proximity import proximity_matrix
from rhizo_rf.utils.random import validate_seed

logger = logging.getLogger(__name__)


def default_mtry(n_features: int) -> int:
    """Default features per split for classification: floor(sqrt(p)), at least 1."""
    if n_features < 1:
        raise ValueError(f"n_features must be positive, got {n_features}")
    return max(1, int(math.floor(math.sqrt(n_features))))


def resolve_mtry(mtry: int | None, n_features: int) -> int:
    """Resolve a configured mtry (None = default) and check it against p."""
    if mtry is None:
        return default_mtry(n_features)
    mtry = int(mtry)
    if mtry < 1 or mtry > n_features:
        raise ValueError(f"mtry must be in [1, {n_features}], got {mtry}")
    return mtry


def build_random_forest(
    n_trees: int = 1000,
    mtry: int = 1,
    min_samples_leaf: int = 1,
    random_state: int = 0,
    n_jobs: int = 1,
) -> RandomForestClassifier:
    """Build an unfitted Random Forest classifier.

    Args:
        n_trees: Number of trees
        mtry: Features evaluated at each split
        min_samples_leaf: Minimum samples per leaf (1 = fully grown trees)
        random_state: Random seed
        n_jobs: Parallel jobs (-1 = all cores)

    Returns:
        Configured RandomForestClassifier using bootstrap resamples of size n
        and the Gini criterion
    """
    return RandomForestClassifier(
        n_estimators=int(n_trees),
        criterion="gini",
        max_features=int(mtry),
        min_samples_leaf=int(min_samples_leaf),
        bootstrap=True,
        max_samples=None,
        random_state=int(random_state),
        n_jobs=int(n_jobs),
    )


@dataclass(frozen=True)
class ForestModel:
    """
    A fitted forest and the statistics derived from it.

    Attributes:
        estimator: The fitted RandomForestClassifier (trained on class codes)
        classes: Class names, position = class code
        feature_names: Feature names, aligned with importance rows
        y: True labels (categorical Series indexed by sample id)
        n_trees: Number of trees
        mtry: Features per split
        seed: Seed the forest was fitted with
        oob_error_curve: Cumulative OOB error, index n_trees 1..T, columns
            "OOB" + classes
        oob_votes: OOB vote shares (n_samples, n_classes); NaN rows for samples
            that were never out-of-bag
        n_oob_trees: Number of trees in which each sample was out-of-bag
        importance: DataFrame indexed by feature with columns
            mean_decrease_gini and importance_normalized
        proximity: (n_samples, n_samples) proximity matrix or None
    """

    estimator: RandomForestClassifier
    classes: list[str]
    feature_names: list[str]
    y: pd.Series
    n_trees: int
    mtry: int
    seed: int
    oob_error_curve: pd.DataFrame
    oob_votes: pd.DataFrame
    n_oob_trees: pd.Series
    importance: pd.DataFrame
    proximity: np.ndarray | None = field(default=None, repr=False)
    oob_proximity: bool = False

    @property
    def sample_ids(self) -> pd.Index:
        return self.y.index

    @property
    def oob_error(self) -> float:
        """Aggregate OOB error of the full forest."""
        return float(self.oob_error_curve[OOB_COLUMN].iloc[-1])

    @property
    def oob_predictions(self) -> pd.Series:
        """OOB-voted label per sample (NaN if never out-of-bag)."""
        shares = self.oob_votes.to_numpy()
        has_vote = ~np.isnan(shares).any(axis=1)
        codes = np.where(has_vote, np.argmax(np.nan_to_num(shares, nan=-1.0), axis=1), -1)
        return pd.Series(
            pd.Categorical.from_codes(codes, categories=self.classes),
            index=self.sample_ids,
            name="oob_prediction",
        )

    def proximity_frame(self) -> pd.DataFrame:
        """Proximity matrix labelled by sample id."""
        if self.proximity is None:
            raise ValueError("Proximity was not computed for this model")
        return pd.DataFrame(self.proximity, index=self.sample_ids, columns=self.sample_ids)


def mean_decrease_gini(forest: RandomForestClassifier, n_samples: int) -> np.ndarray:
    """
    Mean decrease in Gini impurity per feature.

    For each tree the weighted impurity decrease of every split is summed per
    feature (weights are bootstrap counts), then averaged across trees. The
    result is on the scale of sample counts rather than normalised to 1.
    """
    per_tree = np.array(
        [tree.tree_.compute_feature_importances(normalize=False) for tree in forest.estimators_]
    )
    return per_tree.mean(axis=0) * n_samples


def fit_forest(
    dataset: ImputedDataset,
    *,
    n_trees: int = 1000,
    mtry: int | None = None,
    seed: int,
    min_samples_leaf: int = 1,
    n_jobs: int = 1,
    compute_proximity: bool = True,
    oob_proximity: bool = False,
) -> ForestModel:
    """
    Fit a random forest and derive OOB, importance and proximity statistics.

    Args:
        dataset: Complete dataset (no missing values)
        n_trees: Number of trees
        mtry: Features per split (None = floor(sqrt(p)))
        seed: Random seed; must be given explicitly
        min_samples_leaf: Minimum samples per leaf
        n_jobs: Parallel jobs for tree fitting
        compute_proximity: Whether to compute the proximity matrix
        oob_proximity: Count proximity only over trees where both samples are OOB

    Returns:
        ForestModel
    """
    if not isinstance(dataset, ImputedDataset):
        raise TypeError("fit_forest requires an ImputedDataset (no missing values)")

    seed = validate_seed(seed)
    mtry = resolve_mtry(mtry, dataset.n_features)
    classes = dataset.classes
    X = dataset.feature_matrix()
    y_codes = dataset.label_codes()

    absent = [label for label, count in dataset.class_counts().items() if count == 0]
    if absent:
        logger.warning(f"Classes with no samples: {absent}")

    logger.debug(
        f"Fitting forest: n_trees={n_trees}, mtry={mtry}, seed={seed}, "
        f"n={dataset.n_samples}, p={dataset.n_features}"
    )
    forest = build_random_forest(
        n_trees=n_trees,
        mtry=mtry,
        min_samples_leaf=min_samples_leaf,
        random_state=seed,
        n_jobs=n_jobs,
    )
    forest.fit(X, y_codes)

    mask = oob_mask(forest, dataset.n_samples)
    votes = per_tree_votes(forest, X, len(classes))
    curve = cumulative_oob_error(votes, mask, y_codes, classes)
    shares, n_oob = final_oob_votes(votes, mask)

    n_never = int((n_oob == 0).sum())
    if n_never:
        logger.warning(
            f"{n_never} sample(s) were never out-of-bag with {n_trees} trees; "
            "they have no OOB prediction"
        )

    importance = pd.DataFrame(
        {
            "mean_decrease_gini": mean_decrease_gini(forest, dataset.n_samples),
            "importance_normalized": forest.feature_importances_,
        },
        index=pd.Index(dataset.feature_names, name="feature"),
    )

    prox = None
    if compute_proximity:
        leaves = forest.apply(X.astype(np.float32))
        prox = proximity_matrix(leaves, oob_mask=mask if oob_proximity else None)

    model = ForestModel(
        estimator=forest,
        classes=classes,
        feature_names=dataset.feature_names,
        y=dataset.y,
        n_trees=int(n_trees),
        mtry=mtry,
        seed=seed,
        oob_error_curve=curve,
        oob_votes=pd.DataFrame(shares, index=dataset.sample_ids, columns=classes),
        n_oob_trees=pd.Series(n_oob, index=dataset.sample_ids, name="n_oob_trees"),
        importance=importance,
        proximity=prox,
        oob_proximity=oob_proximity,
    )
    logger.debug(f"OOB error: {model.oob_error:.4f}")
    return model
