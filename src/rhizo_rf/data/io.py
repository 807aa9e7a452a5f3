"""
Data I/O utilities for the metabolomics table.

Reads the tab-separated export (sample id, label column, numeric metabolite
abundances) with row-width checks, label coercion and numeric validation.
"""

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from rhizo_rf.data.dataset import MetaboliteDataset
from rhizo_rf.data.schema import LABEL_COL, NA_VALUES, SAMPLE_ID, VALID_LABELS

logger = logging.getLogger(__name__)


class DataLoadError(ValueError):
    """Raised when the input table violates the expected schema."""

    pass


def _normalize_sep(sep: str) -> str:
    # "\t" typed on a command line arrives as a literal backslash-t
    return "\t" if sep == "\\t" else sep


def check_row_widths(filepath: str | Path, sep: str = "\t", max_report: int = 5) -> int:
    """
    Verify that every row has the same number of fields as the header.

    Args:
        filepath: Path to the delimited text file
        sep: Field separator
        max_report: Maximum number of offending lines listed in the error

    Returns:
        Number of columns in the header

    Raises:
        DataLoadError: If any row has a different field count, or the file is empty
    """
    sep = _normalize_sep(sep)
    bad_lines: list[tuple[int, int]] = []
    n_header = 0

    with open(filepath, newline="") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\r\n")
            if lineno == 1:
                n_header = len(line.split(sep))
                continue
            if not line.strip():
                continue
            n_fields = len(line.split(sep))
            if n_fields != n_header:
                bad_lines.append((lineno, n_fields))

    if n_header == 0:
        raise DataLoadError(f"Empty input file: {filepath}")

    if bad_lines:
        listed = ", ".join(f"line {ln} ({n} fields)" for ln, n in bad_lines[:max_report])
        more = f" and {len(bad_lines) - max_report} more" if len(bad_lines) > max_report else ""
        raise DataLoadError(
            f"{len(bad_lines)} row(s) in {filepath} do not have {n_header} fields: {listed}{more}"
        )

    return n_header


def coerce_labels(labels: pd.Series, valid_labels: list[str]) -> pd.Series:
    """
    Convert raw label strings to an ordered categorical Series.

    Args:
        labels: Raw label column
        valid_labels: Fixed label set (category order)

    Returns:
        Categorical Series with categories == valid_labels

    Raises:
        DataLoadError: If a label is missing or not in valid_labels
    """
    stripped = labels.astype("string").str.strip()

    missing = stripped.isna() | (stripped == "")
    if missing.any():
        raise DataLoadError(
            f"{int(missing.sum())} sample(s) have no label: {list(labels.index[missing][:5])}"
        )

    unknown = sorted(set(stripped) - set(valid_labels))
    if unknown:
        raise DataLoadError(f"Unknown label value(s) {unknown}; expected one of {valid_labels}")

    return pd.Series(
        pd.Categorical(stripped.astype(str), categories=valid_labels),
        index=labels.index,
        name=labels.name,
    )


def coerce_numeric_features(
    df: pd.DataFrame, na_values: list[str] | None = None
) -> pd.DataFrame:
    """
    Convert raw feature columns to float64.

    Cells matching one of ``na_values`` (after stripping whitespace) become
    NaN; every other cell must parse as a finite number.

    Raises:
        DataLoadError: If any cell is non-numeric or infinite
    """
    na_tokens = set(NA_VALUES if na_values is None else na_values)
    out = {}
    for col in df.columns:
        raw = df[col].astype(str).str.strip()
        raw = raw.mask(raw.isin(na_tokens))
        converted = pd.to_numeric(raw, errors="coerce")
        bad = converted.isna() & raw.notna()
        if bad.any():
            examples = df.loc[bad, col].astype(str).unique()[:3].tolist()
            raise DataLoadError(f"Non-numeric values in feature column '{col}': {examples}")
        converted = converted.astype(np.float64)
        infinite = np.isinf(converted)
        if infinite.any():
            examples = df.loc[infinite, col].astype(str).unique()[:3].tolist()
            raise DataLoadError(f"Non-finite values in feature column '{col}': {examples}")
        out[col] = converted
    return pd.DataFrame(out, index=df.index)


def read_metabolomics_table(
    filepath: str | Path,
    *,
    id_col: str | None = None,
    label_col: str = LABEL_COL,
    labels: list[str] | None = None,
    sep: str = "\t",
    expected_n_features: int | None = None,
) -> MetaboliteDataset:
    """
    Read the metabolomics table into a MetaboliteDataset.

    Args:
        filepath: Path to the tab-separated file
        id_col: Sample identifier column (default: first column)
        label_col: Label column name (default: "Factor")
        labels: Fixed label set (default: leaf, root, rhizosphere)
        sep: Field separator (default: tab)
        expected_n_features: Enforce this many feature columns (optional)

    Returns:
        MetaboliteDataset indexed by sample identifier

    Raises:
        FileNotFoundError: If filepath does not exist
        DataLoadError: On malformed rows, unknown labels, non-numeric features,
            duplicate sample identifiers, or an unexpected feature count

    Example:
        >>> ds = read_metabolomics_table("data/metabolites.tsv")
        >>> ds.classes
        ['leaf', 'root', 'rhizosphere']
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    labels = list(labels) if labels is not None else list(VALID_LABELS)
    sep = _normalize_sep(sep)

    logger.info(f"Reading table: {filepath}")
    n_cols = check_row_widths(filepath, sep=sep)

    df = pd.read_csv(
        filepath,
        sep=sep,
        dtype=str,
        keep_default_na=False,
        na_filter=False,
        skip_blank_lines=True,
    )
    logger.info(f"Loaded {len(df):,} rows × {n_cols:,} columns")

    validate_required_columns(df, label_col=label_col, id_col=id_col)

    id_col = id_col or df.columns[0]
    if id_col == label_col:
        raise DataLoadError(f"Identifier and label column are both '{label_col}'")

    ids = df[id_col].astype(str).str.strip()
    blank = ids == ""
    if blank.any():
        raise DataLoadError(f"{int(blank.sum())} row(s) have an empty sample identifier")
    dupes = ids[ids.duplicated()].unique().tolist()
    if dupes:
        raise DataLoadError(f"Duplicate sample identifiers: {dupes[:5]}")

    df.index = pd.Index(ids, name=SAMPLE_ID)

    y = coerce_labels(df[label_col], labels)
    y.name = label_col

    feature_cols = [c for c in df.columns if c not in (id_col, label_col)]
    if not feature_cols:
        raise DataLoadError("No feature columns found")
    if expected_n_features is not None and len(feature_cols) != expected_n_features:
        raise DataLoadError(
            f"Expected {expected_n_features} feature columns, found {len(feature_cols)}"
        )

    X = coerce_numeric_features(df[feature_cols])

    dataset = MetaboliteDataset(X=X, y=y)
    stats = get_data_stats(dataset)
    logger.info(
        f"Samples: {stats['n_samples']} | Features: {stats['n_features']} | "
        f"Missing cells: {stats['n_missing']} ({stats['missing_frac']:.2%})"
    )
    logger.info(f"Class counts: {stats['class_counts']}")
    return dataset


def validate_required_columns(
    df: pd.DataFrame, label_col: str = LABEL_COL, id_col: str | None = None
) -> None:
    """
    Validate that the label (and explicit id) columns are present.

    Raises:
        DataLoadError: If a required column is missing
    """
    missing = [c for c in (label_col, id_col) if c is not None and c not in df.columns]
    if missing:
        raise DataLoadError(
            f"Required columns missing: {missing}. Available: {list(df.columns[:10])}..."
        )


def get_data_stats(dataset: MetaboliteDataset) -> dict[str, Any]:
    """
    Summary statistics used for logging and run settings.

    Returns:
        Dictionary with sample/feature counts, missingness, class counts, and
        the columns that contain missing values
    """
    missing_per_col = dataset.X.isna().sum()
    n_cells = dataset.n_samples * dataset.n_features
    n_missing = int(missing_per_col.sum())
    return {
        "n_samples": dataset.n_samples,
        "n_features": dataset.n_features,
        "n_missing": n_missing,
        "missing_frac": n_missing / n_cells if n_cells else 0.0,
        "n_features_with_missing": int((missing_per_col > 0).sum()),
        "class_counts": dataset.class_counts(),
    }


def write_dataset_table(
    dataset: MetaboliteDataset,
    filepath: str | Path,
    *,
    label_col: str = LABEL_COL,
    sep: str = "\t",
) -> Path:
    """
    Write a dataset back out in the input layout (id, label, features).

    Returns:
        Path written
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    out = dataset.X.copy()
    out.insert(0, label_col, dataset.y.astype(str))
    out.to_csv(filepath, sep=_normalize_sep(sep), index=True, index_label=SAMPLE_ID, na_rep="NA")
    logger.info(f"Wrote {dataset.n_samples} rows to {filepath}")
    return filepath
