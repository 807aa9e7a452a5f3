"""
In-memory dataset types.

``MetaboliteDataset`` is what the loader produces; ``ImputedDataset`` is the
same schema with every missing value filled. Both are frozen: stages build
new objects instead of mutating the ones they receive.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class MetaboliteDataset:
    """
    Samples with a fixed feature schema and categorical labels.

    Attributes:
        X: Feature matrix indexed by sample identifier (n_samples, n_features)
        y: Labels as an ordered Categorical Series sharing X's index
    """

    X: pd.DataFrame
    y: pd.Series

    def __post_init__(self):
        if not self.X.index.equals(self.y.index):
            raise ValueError("Feature matrix and labels must share the same sample index")
        if not isinstance(self.y.dtype, pd.CategoricalDtype):
            raise TypeError(f"Labels must be categorical, got {self.y.dtype}")

    @property
    def sample_ids(self) -> pd.Index:
        return self.X.index

    @property
    def feature_names(self) -> list[str]:
        return [str(c) for c in self.X.columns]

    @property
    def classes(self) -> list[str]:
        return [str(c) for c in self.y.cat.categories]

    @property
    def n_samples(self) -> int:
        return self.X.shape[0]

    @property
    def n_features(self) -> int:
        return self.X.shape[1]

    @property
    def n_missing(self) -> int:
        return int(self.X.isna().to_numpy().sum())

    def missing_mask(self) -> np.ndarray:
        """Boolean (n_samples, n_features) mask of missing cells."""
        return self.X.isna().to_numpy()

    def label_codes(self) -> np.ndarray:
        """Integer class codes aligned with ``classes``."""
        return self.y.cat.codes.to_numpy().astype(np.intp)

    def class_counts(self) -> dict[str, int]:
        counts = self.y.value_counts(sort=False)
        return {str(label): int(counts[label]) for label in self.y.cat.categories}

    def feature_matrix(self) -> np.ndarray:
        """Features as a float64 array (NaN for missing)."""
        return self.X.to_numpy(dtype=np.float64)


@dataclass(frozen=True)
class ImputedDataset(MetaboliteDataset):
    """MetaboliteDataset guaranteed to contain no missing values."""

    def __post_init__(self):
        super().__post_init__()
        n_missing = self.n_missing
        if n_missing:
            raise ValueError(f"ImputedDataset cannot contain missing values ({n_missing} found)")

    @classmethod
    def from_complete(cls, dataset: MetaboliteDataset) -> "ImputedDataset":
        """Wrap a dataset that has no missing values."""
        return cls(X=dataset.X.copy(), y=dataset.y.copy())
