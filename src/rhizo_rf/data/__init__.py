"""Data handling and schema definitions."""

from rhizo_rf.data.dataset import ImputedDataset, MetaboliteDataset
from rhizo_rf.data.io import (
    DataLoadError,
    check_row_widths,
    coerce_labels,
    get_data_stats,
    read_metabolomics_table,
    write_dataset_table,
)
from rhizo_rf.data.schema import (
    LABEL_COL,
    LEAF_LABEL,
    RHIZOSPHERE_LABEL,
    ROOT_LABEL,
    VALID_LABELS,
)

__all__ = [
    # Schema
    "LABEL_COL",
    "LEAF_LABEL",
    "ROOT_LABEL",
    "RHIZOSPHERE_LABEL",
    "VALID_LABELS",
    # Types
    "MetaboliteDataset",
    "ImputedDataset",
    # IO
    "DataLoadError",
    "check_row_widths",
    "coerce_labels",
    "get_data_stats",
    "read_metabolomics_table",
    "write_dataset_table",
]
