"""Tests for utils.random module (seed derivation)."""

import numpy as np
import pytest

from rhizo_rf.utils.random import MAX_SEED, derive_seed, validate_seed


class TestValidateSeed:
    """Tests for validate_seed."""

    def test_accepts_numpy_integer(self):
        assert validate_seed(np.int64(7)) == 7
        assert isinstance(validate_seed(np.int64(7)), int)

    def test_bounds(self):
        assert validate_seed(0) == 0
        assert validate_seed(MAX_SEED) == MAX_SEED
        with pytest.raises(ValueError, match="out of valid range"):
            validate_seed(-1)
        with pytest.raises(ValueError, match="out of valid range"):
            validate_seed(MAX_SEED + 1)

    def test_rejects_non_integers(self):
        with pytest.raises(ValueError, match="integer"):
            validate_seed(1.5)
        with pytest.raises(ValueError, match="integer"):
            validate_seed(True)
        with pytest.raises(ValueError, match="integer"):
            validate_seed("42")


class TestDeriveSeed:
    """Tests for derive_seed."""

    def test_no_keys_returns_base(self):
        assert derive_seed(8675309) == 8675309

    def test_deterministic(self):
        assert derive_seed(8675309, "imputation", 3) == derive_seed(8675309, "imputation", 3)

    def test_keys_separate_streams(self):
        seeds = {derive_seed(8675309, "imputation", k) for k in range(10)}
        seeds.add(derive_seed(8675309, "tuning"))
        assert len(seeds) == 11

    def test_base_seed_changes_child(self):
        assert derive_seed(1, "tuning") != derive_seed(2, "tuning")

    def test_child_in_range(self):
        for k in range(20):
            assert 0 <= derive_seed(MAX_SEED, "x", k) <= MAX_SEED

    def test_does_not_touch_global_rng(self):
        """Deriving seeds leaves numpy's legacy global state untouched."""
        np.random.seed(123)
        expected = np.random.random(3)

        np.random.seed(123)
        derive_seed(8675309, "imputation", 0)
        actual = np.random.random(3)

        np.testing.assert_array_equal(actual, expected)
