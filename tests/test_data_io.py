"""
Tests for data I/O module.
"""

import numpy as np
import pandas as pd
import pytest

from rhizo_rf.data.dataset import ImputedDataset, MetaboliteDataset
from rhizo_rf.data.io import (
    DataLoadError,
    check_row_widths,
    coerce_labels,
    get_data_stats,
    read_metabolomics_table,
    write_dataset_table,
)
from rhizo_rf.data.schema import EXPECTED_N_FEATURES, LABEL_COL, SAMPLE_ID, VALID_LABELS

from conftest import frame_to_dataset, write_tsv


class TestReadMetabolomicsTable:
    """Reading the tab-separated export."""

    def test_read_full_size_table(self, metabolite_tsv):
        """90 samples x 172 features with the fixed label set."""
        ds = read_metabolomics_table(metabolite_tsv, expected_n_features=EXPECTED_N_FEATURES)

        assert ds.n_samples == 90
        assert ds.n_features == 172
        assert ds.classes == VALID_LABELS
        assert ds.class_counts() == {"leaf": 30, "root": 30, "rhizosphere": 30}
        assert ds.X.index.name == SAMPLE_ID
        assert ds.X.dtypes.eq(np.float64).all()
        assert ds.y.name == LABEL_COL

    def test_feature_order_preserved(self, metabolite_tsv, metabolite_frame):
        ds = read_metabolomics_table(metabolite_tsv)
        expected = [c for c in metabolite_frame.columns if c not in ("sample", LABEL_COL)]
        assert ds.feature_names == expected

    def test_na_tokens_become_missing(self, metabolite_tsv_missing):
        ds = read_metabolomics_table(metabolite_tsv_missing)
        assert ds.n_missing > 0
        assert not isinstance(ds, ImputedDataset)

    def test_labels_are_trimmed(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nA\t leaf \t1.0\nB\troot\t2.0\n")
        ds = read_metabolomics_table(path)
        assert ds.y.tolist() == ["leaf", "root"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_metabolomics_table(tmp_path / "nonexistent.tsv")

    def test_short_row_rejected(self, tmp_path):
        """A row with fewer fields than the header names its line number."""
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\tM2\nA\tleaf\t1.0\t2.0\nB\troot\t2.0\n")
        with pytest.raises(DataLoadError, match="line 3"):
            read_metabolomics_table(path)

    def test_unknown_label_rejected(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nA\tleaf\t1.0\nB\tstem\t2.0\n")
        with pytest.raises(DataLoadError, match="stem"):
            read_metabolomics_table(path)

    def test_empty_label_rejected(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nA\tleaf\t1.0\nB\t\t2.0\n")
        with pytest.raises(DataLoadError, match="no label"):
            read_metabolomics_table(path)

    def test_non_numeric_feature_rejected(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\tM2\nA\tleaf\t1.0\t2.0\nB\troot\tabc\t2.0\n")
        with pytest.raises(DataLoadError, match="M1"):
            read_metabolomics_table(path)

    @pytest.mark.parametrize("token", ["inf", "-inf"])
    def test_infinite_feature_rejected(self, tmp_path, token):
        """Infinite abundances fail at load, naming the column, not inside the forest."""
        path = tmp_path / "t.tsv"
        path.write_text(f"id\tFactor\tM1\tM2\nA\tleaf\t1.0\t2.0\nB\troot\t3.0\t{token}\n")
        with pytest.raises(DataLoadError, match="Non-finite values in feature column 'M2'"):
            read_metabolomics_table(path)

    def test_na_token_ids_kept_as_strings(self, tmp_path):
        """Missing-value tokens only apply to feature columns."""
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nNA\tleaf\t1\nS2\troot\tNA\nNULL\trhizosphere\t2\n")
        ds = read_metabolomics_table(path)
        assert ds.sample_ids.tolist() == ["NA", "S2", "NULL"]
        assert ds.X.loc["NA", "M1"] == 1.0
        assert np.isnan(ds.X.loc["S2", "M1"])

    def test_na_token_ids_still_checked_for_duplicates(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nNA\tleaf\t1\nNA\troot\t2\n")
        with pytest.raises(DataLoadError, match="Duplicate"):
            read_metabolomics_table(path)

    def test_empty_id_rejected(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\n\tleaf\t1\nB\troot\t2\n")
        with pytest.raises(DataLoadError, match="empty sample identifier"):
            read_metabolomics_table(path)

    def test_na_label_rejected(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nA\tleaf\t1.0\nB\tNA\t2.0\n")
        with pytest.raises(DataLoadError, match="Unknown label"):
            read_metabolomics_table(path)

    def test_duplicate_ids_rejected(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nA\tleaf\t1.0\nA\troot\t2.0\n")
        with pytest.raises(DataLoadError, match="Duplicate"):
            read_metabolomics_table(path)

    def test_missing_label_column(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tClass\tM1\nA\tleaf\t1.0\n")
        with pytest.raises(DataLoadError, match="Factor"):
            read_metabolomics_table(path)

    def test_wrong_feature_count(self, metabolite_tsv):
        with pytest.raises(DataLoadError, match="Expected 100 feature columns"):
            read_metabolomics_table(metabolite_tsv, expected_n_features=100)

    def test_custom_separator_and_labels(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("id,Group,M1\nA,x,1.0\nB,y,2.0\n")
        ds = read_metabolomics_table(path, sep=",", label_col="Group", labels=["x", "y"])
        assert ds.classes == ["x", "y"]
        assert ds.n_features == 1

    def test_escaped_tab_separator(self, metabolite_tsv):
        """A separator typed as backslash-t on the command line means tab."""
        ds = read_metabolomics_table(metabolite_tsv, sep="\\t")
        assert ds.n_features == 172


class TestRowWidths:
    def test_returns_header_width(self, metabolite_tsv):
        assert check_row_widths(metabolite_tsv) == 174

    def test_blank_lines_ignored(self, tmp_path):
        path = tmp_path / "t.tsv"
        path.write_text("id\tFactor\tM1\nA\tleaf\t1\n\nB\troot\t2\n")
        assert check_row_widths(path) == 3

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.tsv"
        path.write_text("")
        with pytest.raises(DataLoadError, match="Empty"):
            check_row_widths(path)


def test_coerce_labels_category_order():
    """Categories follow the configured order, not order of appearance."""
    raw = pd.Series(["rhizosphere", "leaf", "root"])
    y = coerce_labels(raw, VALID_LABELS)
    assert list(y.cat.categories) == VALID_LABELS
    assert y.cat.codes.tolist() == [2, 0, 1]


class TestDatasetTypes:
    """MetaboliteDataset / ImputedDataset invariants."""

    def test_imputed_dataset_rejects_missing(self, small_dataset_missing):
        with pytest.raises(ValueError, match="missing"):
            ImputedDataset.from_complete(small_dataset_missing)

    def test_index_mismatch_rejected(self, small_frame):
        ds = frame_to_dataset(small_frame)
        with pytest.raises(ValueError, match="same sample index"):
            MetaboliteDataset(X=ds.X, y=ds.y.iloc[::-1])

    def test_labels_must_be_categorical(self, small_frame):
        ds = frame_to_dataset(small_frame)
        with pytest.raises(TypeError, match="categorical"):
            MetaboliteDataset(X=ds.X, y=ds.y.astype(str))


def test_get_data_stats(small_dataset_missing):
    stats = get_data_stats(small_dataset_missing)
    assert stats["n_samples"] == 60
    assert stats["n_features"] == 24
    assert stats["n_missing"] == small_dataset_missing.n_missing
    assert 0 < stats["missing_frac"] < 0.2
    assert sum(stats["class_counts"].values()) == 60


def test_write_then_read_preserves_table(tmp_path, small_dataset_missing):
    """Writing a dataset back out produces a readable table with the same content."""
    path = write_dataset_table(small_dataset_missing, tmp_path / "out" / "data.tsv")
    reread = read_metabolomics_table(path)

    pd.testing.assert_frame_equal(reread.X, small_dataset_missing.X)
    assert reread.y.tolist() == small_dataset_missing.y.tolist()


def test_write_tsv_helper_uses_na(tmp_path, small_frame):
    frame = small_frame.copy()
    frame.iloc[0, 2] = np.nan
    path = write_tsv(frame, tmp_path / "x.tsv")
    assert "\tNA" in path.read_text()
