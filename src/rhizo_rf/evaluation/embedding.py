"""Classical multidimensional scaling of forest proximities.

Samples are embedded by classical (Torgerson) MDS of the dissimilarity
``1 - proximity``: squared dissimilarities are double-centred and the top
eigenvectors, scaled by the square root of their eigenvalues, give the
coordinates.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.linalg import eigh

from rhizo_rf.models.forest import ForestModel
from rhizo_rf.models.proximity import proximity_distance


@dataclass(frozen=True)
class MDSResult:
    """
    Classical MDS embedding.

    Attributes:
        coordinates: DataFrame (n_samples, k) with columns Dim1..Dimk
        eigenvalues: All eigenvalues of the double-centred matrix, descending
        goodness_of_fit: Share of the positive eigenvalue mass captured by the
            first k dimensions
    """

    coordinates: pd.DataFrame
    eigenvalues: np.ndarray
    goodness_of_fit: float

    def eigenvalue_frame(self) -> pd.DataFrame:
        positive = np.clip(self.eigenvalues, 0.0, None)
        total = positive.sum()
        return pd.DataFrame(
            {
                "dimension": np.arange(1, len(self.eigenvalues) + 1),
                "eigenvalue": self.eigenvalues,
                "proportion": positive / total if total > 0 else np.zeros_like(positive),
            }
        )


def classical_mds(distances: np.ndarray, k: int = 2) -> tuple[np.ndarray, np.ndarray]:
    """
    Classical MDS of a distance matrix.

    Args:
        distances: Symmetric (n, n) distance matrix
        k: Number of output dimensions (< n)

    Returns:
        (coords, eigenvalues): coords is (n, k); eigenvalues are all n
        eigenvalues in descending order. Each axis is oriented so that its
        largest-magnitude coordinate is positive.
    """
    D = np.asarray(distances, dtype=float)
    n = D.shape[0]
    if D.shape != (n, n):
        raise ValueError(f"distances must be square, got {D.shape}")
    if not 1 <= k < n:
        raise ValueError(f"k must be in [1, {n - 1}], got {k}")

    J = np.eye(n) - np.full((n, n), 1.0 / n)
    B = -0.5 * J @ (D**2) @ J
    B = (B + B.T) / 2.0

    eigvals, eigvecs = eigh(B)
    order = np.argsort(eigvals)[::-1]
    eigvals = eigvals[order]
    eigvecs = eigvecs[:, order]

    lead = eigvecs[:, :k]
    scale = np.sqrt(np.clip(eigvals[:k], 0.0, None))
    coords = lead * scale

    for j in range(k):
        pivot = np.argmax(np.abs(coords[:, j]))
        if coords[pivot, j] < 0:
            coords[:, j] = -coords[:, j]

    return coords, eigvals


def proximity_mds(model: ForestModel, k: int = 2) -> MDSResult:
    """
    Embed the samples of a trained forest by classical MDS of 1 - proximity.

    Args:
        model: Trained forest with proximity computed
        k: Number of dimensions

    Returns:
        MDSResult with coordinates indexed by sample id
    """
    if model.proximity is None:
        raise ValueError("Model has no proximity matrix; fit with compute_proximity=True")

    coords, eigvals = classical_mds(proximity_distance(model.proximity), k=k)
    positive = np.clip(eigvals, 0.0, None)
    total = positive.sum()
    gof = float(positive[:k].sum() / total) if total > 0 else 0.0

    frame = pd.DataFrame(
        coords,
        index=model.sample_ids,
        columns=[f"Dim{j + 1}" for j in range(k)],
    )
    return MDSResult(coordinates=frame, eigenvalues=eigvals, goodness_of_fit=gof)
