"""
Shared pytest fixtures for rhizo-rf tests.

Synthetic metabolomics tables: leaf samples are shifted strongly on one block
of features, root and rhizosphere are shifted apart (more weakly) on a second
block, and the remaining features are noise.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from rhizo_rf.data.dataset import ImputedDataset, MetaboliteDataset
from rhizo_rf.data.schema import LABEL_COL, SAMPLE_ID, VALID_LABELS
from rhizo_rf.models.forest import fit_forest


def make_metabolite_frame(
    n_per_class: int = 30,
    n_features: int = 172,
    n_leaf_signal: int = 40,
    n_belowground_signal: int = 20,
    missing_frac: float = 0.0,
    seed: int = 0,
) -> pd.DataFrame:
    """
    Build a raw table in the input layout: sample, Factor, M001..Mxxx.

    Args:
        n_per_class: Samples per compartment
        n_features: Number of metabolite columns
        n_leaf_signal: Features on which leaf differs from root/rhizosphere
        n_belowground_signal: Features separating root from rhizosphere
        missing_frac: Fraction of feature cells set to NaN
        seed: Generator seed

    Returns:
        DataFrame with sample id, label and feature columns
    """
    rng = np.random.default_rng(seed)
    n = n_per_class * len(VALID_LABELS)
    labels = np.repeat(VALID_LABELS, n_per_class)

    X = rng.normal(10.0, 1.0, size=(n, n_features))
    is_leaf = labels == "leaf"
    X[np.ix_(is_leaf, np.arange(n_leaf_signal))] += 4.0

    below = np.arange(n_leaf_signal, n_leaf_signal + n_belowground_signal)
    X[np.ix_(labels == "root", below)] += 1.5
    X[np.ix_(labels == "rhizosphere", below)] -= 1.5

    if missing_frac > 0:
        holes = rng.random(X.shape) < missing_frac
        # keep one observed value per column
        holes[0, :] = False
        X[holes] = np.nan

    order = rng.permutation(n)
    df = pd.DataFrame(X[order], columns=[f"M{j + 1:03d}" for j in range(n_features)])
    df.insert(0, LABEL_COL, labels[order])
    df.insert(0, "sample", [f"S{i:03d}" for i in range(n)])
    return df


def write_tsv(df: pd.DataFrame, path: Path) -> Path:
    df.to_csv(path, sep="\t", index=False, na_rep="NA")
    return path


def frame_to_dataset(df: pd.DataFrame) -> MetaboliteDataset:
    """Convert a raw frame to a MetaboliteDataset without going through disk."""
    indexed = df.set_index("sample")
    indexed.index.name = SAMPLE_ID
    y = pd.Series(
        pd.Categorical(indexed[LABEL_COL], categories=VALID_LABELS),
        index=indexed.index,
        name=LABEL_COL,
    )
    X = indexed.drop(columns=[LABEL_COL]).astype(np.float64)
    return MetaboliteDataset(X=X, y=y)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """CLI tests attach handlers to the package logger; detach them afterwards."""
    yield
    logger = logging.getLogger("rhizo_rf")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def metabolite_frame():
    """Full-size table: 90 samples x 172 features, no missing values."""
    return make_metabolite_frame()


@pytest.fixture
def metabolite_tsv(tmp_path, metabolite_frame):
    return write_tsv(metabolite_frame, tmp_path / "metabolites.tsv")


@pytest.fixture
def metabolite_tsv_missing(tmp_path):
    """Full-size table with about 3% of feature cells missing."""
    return write_tsv(make_metabolite_frame(missing_frac=0.03, seed=1), tmp_path / "missing.tsv")


@pytest.fixture
def small_frame():
    """Small table for fast forests: 60 samples x 24 features."""
    return make_metabolite_frame(
        n_per_class=20, n_features=24, n_leaf_signal=8, n_belowground_signal=6, seed=2
    )


@pytest.fixture
def small_dataset(small_frame):
    return ImputedDataset.from_complete(frame_to_dataset(small_frame))


@pytest.fixture
def small_dataset_missing():
    frame = make_metabolite_frame(
        n_per_class=20,
        n_features=24,
        n_leaf_signal=8,
        n_belowground_signal=6,
        missing_frac=0.05,
        seed=3,
    )
    return frame_to_dataset(frame)


@pytest.fixture(scope="session")
def small_model():
    """Forest of 300 trees on the small table, with proximity."""
    frame = make_metabolite_frame(
        n_per_class=20, n_features=24, n_leaf_signal=8, n_belowground_signal=6, seed=2
    )
    dataset = ImputedDataset.from_complete(frame_to_dataset(frame))
    return fit_forest(dataset, n_trees=300, seed=8675309)
