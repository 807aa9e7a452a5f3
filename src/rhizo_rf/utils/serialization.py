"""
Persistence of the trained forest bundle and run settings.

The model bundle is a joblib-compressed dict with three keys:

    model     the ForestModel (estimator plus OOB, importance and proximity)
    config    resolved PipelineConfig as plain JSON types
    versions  sklearn / pandas / numpy versions at save time

Trees pickled under one scikit-learn release are not guaranteed to load
identically under another, so ``load_model_bundle`` compares versions.
"""

import json
import logging
import warnings
from pathlib import Path
from typing import Any

import joblib
import numpy as np
import pandas as pd
import sklearn

logger = logging.getLogger(__name__)

BUNDLE_KEYS = ("model", "config", "versions")


def library_versions() -> dict[str, str]:
    """Versions of the libraries a saved model bundle depends on."""
    return {"sklearn": sklearn.__version__, "pandas": pd.__version__, "numpy": np.__version__}


def version_mismatches(saved: dict[str, str]) -> list[str]:
    """Describe each library whose saved version differs from the installed one."""
    current = library_versions()
    return [
        f"{lib}: saved={version}, current={current[lib]}"
        for lib, version in saved.items()
        if lib in current and version != current[lib]
    ]


def save_joblib(obj: Any, path: str | Path, compress: int = 3) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(obj, path, compress=compress)
    return path


def load_joblib(path: str | Path) -> Any:
    return joblib.load(path)


def load_model_bundle(path: str | Path, check_versions: bool = True) -> dict[str, Any]:
    """
    Load a bundle written by ``ResultsWriter.save_model_bundle``.

    Args:
        path: Path to forest_model.joblib
        check_versions: Warn when the saving environment's library versions
            differ from the current ones

    Returns:
        Dict with keys model, config, versions

    Raises:
        ValueError: If the file does not hold a model bundle
    """
    bundle = load_joblib(path)
    if not isinstance(bundle, dict) or set(bundle) != set(BUNDLE_KEYS):
        raise ValueError(f"{path} is not a model bundle (expected keys {list(BUNDLE_KEYS)})")

    if check_versions:
        mismatches = version_mismatches(bundle["versions"])
        if mismatches:
            warnings.warn(
                f"Model bundle version mismatch in {Path(path).name}: "
                + "; ".join(mismatches)
                + ". OOB statistics may not be reproducible.",
                UserWarning,
                stacklevel=2,
            )
    return bundle


def save_json(obj: Any, path: str | Path, indent: int = 2) -> Path:
    """Write JSON, rendering paths and other non-JSON values with str()."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=indent, default=str))
    return path


def load_json(path: str | Path) -> Any:
    return json.loads(Path(path).read_text())
