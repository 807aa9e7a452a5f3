"""
ResultsWriter: Structured output directory management and results serialization.

Provides:
- OutputDirectories: Directory structure creation and path management
- ResultsWriter: High-level API for saving imputation, OOB, MDS, importance
  and tuning tables plus the model bundle
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from rhizo_rf.data.dataset import MetaboliteDataset
from rhizo_rf.data.io import write_dataset_table
from rhizo_rf.data.schema import (
    CONFUSION_MATRIX_FILE,
    DIR_CORE,
    DIR_DATA,
    DIR_DIAGNOSTICS,
    DIR_PLOTS,
    DIR_REPORTS,
    FEATURE_IMPORTANCE_FILE,
    IMPUTATION_HISTORY_FILE,
    IMPUTED_DATA_FILE,
    LABEL_COL,
    MDS_COORDS_FILE,
    MDS_EIGEN_FILE,
    MODEL_FILE,
    OOB_CURVE_FILE,
    OOB_PREDICTIONS_FILE,
    PROXIMITY_FILE,
    RUN_SETTINGS_FILE,
    TOP_FEATURES_FILE,
    TUNING_FILE,
)
from rhizo_rf.evaluation.embedding import MDSResult
from rhizo_rf.models.forest import ForestModel
from rhizo_rf.utils.serialization import library_versions, save_joblib, save_json

logger = logging.getLogger(__name__)


@dataclass
class OutputDirectories:
    """
    Structured output directory paths.

    Attributes:
        root: Base output directory
        core: Run settings, resolved config, model bundle
        data: Imputed table and imputation history
        diagnostics: OOB curve, confusion matrix, MDS, tuning, proximity
        reports: Feature importance tables
        plots: Figures
    """

    root: str
    core: str
    data: str
    diagnostics: str
    reports: str
    plots: str

    @classmethod
    def create(cls, root: str | Path, exist_ok: bool = True) -> "OutputDirectories":
        """
        Create output directory structure.

        Args:
            root: Base output directory path
            exist_ok: If True, do not raise if directories exist

        Returns:
            OutputDirectories instance with all paths created
        """
        root_path = Path(root)

        structure = {
            "core": DIR_CORE,
            "data": DIR_DATA,
            "diagnostics": DIR_DIAGNOSTICS,
            "reports": DIR_REPORTS,
            "plots": DIR_PLOTS,
        }

        paths = {"root": str(root_path)}
        for key, rel_path in structure.items():
            abs_path = root_path / rel_path
            abs_path.mkdir(parents=True, exist_ok=exist_ok)
            paths[key] = str(abs_path)

        logger.debug(f"Created output structure at: {root}")
        return cls(**paths)

    def get_path(self, category: str, filename: str) -> str:
        """
        Construct full path for a file in a specific category.

        Raises:
            ValueError: If category is invalid
        """
        if category not in ("root", "core", "data", "diagnostics", "reports", "plots"):
            raise ValueError(f"Unknown output category: {category}")
        return os.path.join(getattr(self, category), filename)


class ResultsWriter:
    """
    High-level API for writing pipeline results.

    Usage:
        writer = ResultsWriter(OutputDirectories.create("results"))
        writer.save_oob_curve(model.oob_error_curve)
        writer.save_model_bundle(model, config_dict)
    """

    def __init__(self, output_dirs: OutputDirectories):
        self.dirs = output_dirs

    def _save_frame(self, df: pd.DataFrame, category: str, filename: str, index: bool) -> str:
        path = self.dirs.get_path(category, filename)
        df.to_csv(path, index=index)
        logger.info(f"Saved {filename}: {path}")
        return path

    # ========== Settings ==========

    def save_run_settings(self, settings: dict[str, Any]) -> str:
        """Save run configuration and dataset summary to core/run_settings.json."""
        path = self.dirs.get_path("core", RUN_SETTINGS_FILE)
        save_json(settings, path)
        logger.info(f"Saved run settings: {path}")
        return path

    # ========== Imputation ==========

    def save_imputed_data(self, dataset: MetaboliteDataset, label_col: str = LABEL_COL) -> str:
        path = self.dirs.get_path("data", IMPUTED_DATA_FILE)
        write_dataset_table(dataset, path, label_col=label_col)
        return path

    def save_imputation_history(self, history: pd.DataFrame) -> str:
        return self._save_frame(history, "data", IMPUTATION_HISTORY_FILE, index=False)

    # ========== Diagnostics ==========

    def save_oob_curve(self, curve: pd.DataFrame) -> str:
        return self._save_frame(curve, "diagnostics", OOB_CURVE_FILE, index=True)

    def save_confusion_matrix(self, cm: pd.DataFrame) -> str:
        return self._save_frame(cm, "diagnostics", CONFUSION_MATRIX_FILE, index=True)

    def save_oob_predictions(self, model: ForestModel) -> str:
        """Per-sample true label, OOB prediction, vote shares and OOB tree count."""
        df = pd.concat(
            [
                model.y.astype(str).rename("true"),
                model.oob_predictions.astype(object).rename("predicted"),
                model.oob_votes.add_prefix("votes_"),
                model.n_oob_trees,
            ],
            axis=1,
        )
        return self._save_frame(df, "diagnostics", OOB_PREDICTIONS_FILE, index=True)

    def save_mds(self, mds: MDSResult, labels: pd.Series) -> tuple[str, str]:
        coords = mds.coordinates.copy()
        coords.insert(0, "label", labels.astype(str))
        coords_path = self._save_frame(coords, "diagnostics", MDS_COORDS_FILE, index=True)
        eigen_path = self._save_frame(
            mds.eigenvalue_frame(), "diagnostics", MDS_EIGEN_FILE, index=False
        )
        return coords_path, eigen_path

    def save_tuning(self, history: pd.DataFrame) -> str:
        return self._save_frame(history, "diagnostics", TUNING_FILE, index=False)

    def save_proximity(self, model: ForestModel) -> str:
        return self._save_frame(model.proximity_frame(), "diagnostics", PROXIMITY_FILE, index=True)

    # ========== Reports ==========

    def save_feature_importance(self, ranked: pd.DataFrame, top_k: int | None = None) -> list[str]:
        """Save the full ranking and, if top_k is given, the top-K subset."""
        paths = [self._save_frame(ranked, "reports", FEATURE_IMPORTANCE_FILE, index=False)]
        if top_k is not None:
            paths.append(
                self._save_frame(ranked.head(top_k), "reports", TOP_FEATURES_FILE, index=False)
            )
        return paths

    # ========== Model ==========

    def save_model_bundle(self, model: ForestModel, config: dict[str, Any]) -> str:
        """
        Save the trained model with the resolved config and library versions.

        Read it back with ``load_model_bundle``, which checks the versions.
        """
        bundle = {
            "model": model,
            "config": config,
            "versions": library_versions(),
        }
        path = self.dirs.get_path("core", MODEL_FILE)
        save_joblib(bundle, path)
        logger.info(f"Saved model bundle: {path}")
        return path
