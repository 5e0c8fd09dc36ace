"""
Tests for the ExpressionMatrix container.
"""

import numpy as np
import pandas as pd
import pytest

from varclust.core.matrix import ExpressionMatrix


@pytest.fixture
def matrix():
    data = np.arange(12, dtype=float).reshape(3, 4)
    sample_ids = pd.Index(["S1", "S2", "S3", "S4"])
    metadata = pd.DataFrame({'treatment': ["none", "AZA", "none", "AZA"]}, index=sample_ids)
    return ExpressionMatrix(data, pd.Index(["g1", "g2", "g3"]), sample_ids, metadata)


class TestConstruction:

    def test_properties(self, matrix):
        assert matrix.shape == (3, 4)
        assert matrix.n_features == 3
        assert matrix.n_samples == 4

    def test_default_metadata(self):
        m = ExpressionMatrix(np.ones((1, 2)), pd.Index(["g"]), pd.Index(["A", "B"]))
        assert m.sample_metadata.index.equals(m.sample_ids)
        assert m.sample_metadata.shape[1] == 0

    def test_rejects_list_data(self):
        with pytest.raises(TypeError):
            ExpressionMatrix([[1.0]], pd.Index(["g"]), pd.Index(["A"]))

    def test_rejects_shape_mismatch(self):
        with pytest.raises(ValueError, match="gene_ids length"):
            ExpressionMatrix(np.ones((2, 2)), pd.Index(["g"]), pd.Index(["A", "B"]))
        with pytest.raises(ValueError, match="sample_ids length"):
            ExpressionMatrix(np.ones((1, 2)), pd.Index(["g"]), pd.Index(["A"]))

    def test_rejects_misaligned_metadata(self):
        metadata = pd.DataFrame({'x': [1, 2]}, index=["B", "A"])
        with pytest.raises(ValueError, match="sample_metadata.index"):
            ExpressionMatrix(np.ones((1, 2)), pd.Index(["g"]), pd.Index(["A", "B"]), metadata)


class TestSubsetting:

    def test_select_features(self, matrix):
        subset = matrix.select_features(np.array([True, False, True]))
        assert list(subset.gene_ids) == ["g1", "g3"]
        np.testing.assert_array_equal(subset.data[1], [8.0, 9.0, 10.0, 11.0])
        assert subset.sample_metadata.equals(matrix.sample_metadata)

    def test_select_samples_keeps_metadata(self, matrix):
        subset = matrix.select_samples(matrix.sample_metadata['treatment'] == "AZA")
        assert list(subset.sample_ids) == ["S2", "S4"]
        assert list(subset.sample_metadata['treatment']) == ["AZA", "AZA"]
        np.testing.assert_array_equal(subset.data[0], [1.0, 3.0])

    def test_mask_length_checked(self, matrix):
        with pytest.raises(ValueError):
            matrix.select_features([True])
        with pytest.raises(ValueError):
            matrix.select_samples([True, False])

    def test_reorder_samples(self, matrix):
        reordered = matrix.reorder_samples(["S4", "S1", "S3", "S2"])
        assert list(reordered.sample_ids) == ["S4", "S1", "S3", "S2"]
        np.testing.assert_array_equal(reordered.data[0], [3.0, 0.0, 2.0, 1.0])
        assert list(reordered.sample_metadata['treatment']) == ["AZA", "none", "none", "AZA"]
        # Original untouched
        assert list(matrix.sample_ids) == ["S1", "S2", "S3", "S4"]

    def test_reorder_requires_permutation(self, matrix):
        with pytest.raises(ValueError, match="permutation"):
            matrix.reorder_samples(["S1", "S2", "S3"])
        with pytest.raises(ValueError, match="permutation"):
            matrix.reorder_samples(["S1", "S2", "S3", "S9"])


class TestConversion:

    def test_to_frame(self, matrix):
        frame = matrix.to_frame()
        assert list(frame.index) == ["g1", "g2", "g3"]
        assert list(frame.columns) == ["S1", "S2", "S3", "S4"]
        assert frame.loc["g2", "S3"] == 6.0

    def test_deep_copy_is_independent(self, matrix):
        clone = matrix.copy()
        clone.data[0, 0] = -1.0
        assert matrix.data[0, 0] == 0.0

    def test_repr(self, matrix):
        assert "3 genes × 4 samples" in repr(matrix)
        empty = matrix.select_features(np.zeros(3, dtype=bool))
        assert repr(empty) == "ExpressionMatrix(0 genes × 4 samples)"
