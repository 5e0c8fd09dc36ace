"""
Tests for loading and aligning the expression matrix and sample metadata.

Uses temporary TSV files with the refine.bio layout.
"""

import numpy as np
import pandas as pd
import pytest

from varclust.core.errors import AlignmentMismatchError
from varclust.core.matrix import ExpressionMatrix
from varclust.io.formats import DataFormat, PRESETS
from varclust.io.loaders import (
    align_samples,
    load_dataset,
    load_expression_matrix,
    load_metadata,
)

from conftest import write_expression_tsv, write_metadata_tsv


class TestLoadExpressionMatrix:
    """Reading the gene × sample TSV."""

    def test_load_shape_and_ids(self, dataset_files, expression_frame):
        expression_path, _ = dataset_files
        matrix = load_expression_matrix(expression_path)

        assert matrix.shape == (100, 19)
        assert list(matrix.gene_ids) == list(expression_frame.index)
        assert list(matrix.sample_ids) == list(expression_frame.columns)
        np.testing.assert_allclose(matrix.data, expression_frame.to_numpy())

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_expression_matrix(tmp_path / "missing.tsv")

    def test_missing_gene_column(self, tmp_path):
        path = tmp_path / "bad.tsv"
        path.write_text("ID\tS1\tS2\ng1\t1\t2\n")
        with pytest.raises(ValueError, match="no 'Gene' column"):
            load_expression_matrix(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.tsv"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_expression_matrix(path)

    def test_header_only_gives_zero_genes(self, tmp_path):
        path = tmp_path / "header.tsv"
        path.write_text("Gene\tS1\tS2\tS3\n")
        with pytest.warns(UserWarning, match="no genes"):
            matrix = load_expression_matrix(path)
        assert matrix.shape == (0, 3)
        assert list(matrix.sample_ids) == ["S1", "S2", "S3"]

    def test_non_numeric_values(self, tmp_path):
        path = tmp_path / "text.tsv"
        path.write_text("Gene\tS1\tS2\ng1\t1.0\thigh\ng2\t0.5\t0.7\n")
        with pytest.raises(ValueError, match="non-numeric"):
            load_expression_matrix(path)

    def test_infinite_values(self, tmp_path):
        path = tmp_path / "inf.tsv"
        path.write_text("Gene\tS1\tS2\ng1\t1.0\tinf\n")
        with pytest.raises(ValueError, match="infinite"):
            load_expression_matrix(path)

    def test_nan_values_warn(self, tmp_path):
        path = tmp_path / "nan.tsv"
        path.write_text("Gene\tS1\tS2\tS3\ng1\t1.0\tNA\t2.0\ng2\t0.5\t0.7\t0.9\n")
        with pytest.warns(UserWarning, match="NaN"):
            matrix = load_expression_matrix(path)
        assert np.isnan(matrix.data[0, 1])

    def test_duplicate_genes_keep_first(self, tmp_path):
        path = tmp_path / "dup.tsv"
        path.write_text("Gene\tS1\tS2\ng1\t1\t2\ng1\t3\t4\ng2\t5\t6\n")
        with pytest.warns(UserWarning, match="duplicate gene IDs"):
            matrix = load_expression_matrix(path)
        assert list(matrix.gene_ids) == ["g1", "g2"]
        np.testing.assert_array_equal(matrix.data[0], [1.0, 2.0])

    def test_duplicate_samples_keep_first(self, tmp_path):
        path = tmp_path / "dup_samples.tsv"
        path.write_text("Gene\tS1\tS2\tS1\ng1\t1\t2\t3\n")
        with pytest.warns(UserWarning, match="duplicate sample IDs"):
            matrix = load_expression_matrix(path)
        assert list(matrix.sample_ids) == ["S1", "S2"]
        np.testing.assert_array_equal(matrix.data[0], [1.0, 2.0])

    def test_missing_value_tokens_as_gene_ids(self, tmp_path):
        # "NA" and "nan" are real gene symbols in some annotations
        path = tmp_path / "na_genes.tsv"
        path.write_text("Gene\tS1\tS2\nNA\t1.0\t2.0\nnan\t3.0\tNA\n007\t5.0\t6.0\n")

        with pytest.warns(UserWarning, match="NaN"):
            matrix = load_expression_matrix(path)

        assert list(matrix.gene_ids) == ["NA", "nan", "007"]
        assert np.isnan(matrix.data[1, 1])
        assert matrix.data[0, 0] == 1.0

    def test_custom_gene_column(self, tmp_path):
        path = tmp_path / "geo.tsv"
        path.write_text("ID_REF\tGSM1\tGSM2\n1007_s_at\t5.1\t6.2\n")
        matrix = load_expression_matrix(path, DataFormat(gene_column="ID_REF"))
        assert list(matrix.gene_ids) == ["1007_s_at"]


class TestLoadMetadata:
    """Reading the per-sample metadata table."""

    def test_indexed_by_accession(self, dataset_files, metadata_frame):
        _, metadata_path = dataset_files
        metadata = load_metadata(metadata_path)

        assert metadata.index.name == 'refinebio_accession_code'
        assert list(metadata.index) == list(metadata_frame['refinebio_accession_code'][::-1])
        assert 'refinebio_title' in metadata.columns
        assert 'refinebio_treatment' in metadata.columns

    def test_values_pass_through_as_strings(self, tmp_path):
        metadata = pd.DataFrame({
            'refinebio_accession_code': ['S1', 'S2'],
            'refinebio_title': ['WT-ctrl2', 'NA'],
            'refinebio_treatment': ['', '001'],
        })
        path = write_metadata_tsv(metadata, tmp_path / "meta.tsv")

        loaded = load_metadata(path)
        assert loaded.loc['S2', 'refinebio_title'] == 'NA'
        assert loaded.loc['S1', 'refinebio_treatment'] == ''
        assert loaded.loc['S2', 'refinebio_treatment'] == '001'

    def test_missing_required_columns(self, tmp_path):
        metadata = pd.DataFrame({
            'refinebio_accession_code': ['S1'],
            'refinebio_title': ['TET2-a'],
        })
        path = write_metadata_tsv(metadata, tmp_path / "meta.tsv")
        with pytest.raises(ValueError, match="refinebio_treatment"):
            load_metadata(path)

    def test_duplicate_accessions(self, tmp_path):
        metadata = pd.DataFrame({
            'refinebio_accession_code': ['S1', 'S1'],
            'refinebio_title': ['TET2-a', 'IDH2-b'],
            'refinebio_treatment': ['none', 'none'],
        })
        path = write_metadata_tsv(metadata, tmp_path / "meta.tsv")
        with pytest.raises(ValueError, match="unique"):
            load_metadata(path)


class TestAlignSamples:
    """Matrix columns must follow metadata accession order exactly."""

    def test_columns_follow_metadata_order(self, dataset_files):
        expression_path, metadata_path = dataset_files
        matrix = load_expression_matrix(expression_path)
        metadata = load_metadata(metadata_path)

        aligned = align_samples(matrix, metadata)

        assert list(aligned.sample_ids) == list(metadata.index)
        assert aligned.sample_metadata.index.equals(metadata.index)
        # Values travel with their column
        for sample in metadata.index[:3]:
            original = matrix.data[:, matrix.sample_ids.get_loc(sample)]
            moved = aligned.data[:, aligned.sample_ids.get_loc(sample)]
            np.testing.assert_array_equal(original, moved)

    def test_input_matrix_unchanged(self, dataset_files):
        expression_path, metadata_path = dataset_files
        matrix = load_expression_matrix(expression_path)
        before = list(matrix.sample_ids)

        align_samples(matrix, load_metadata(metadata_path))

        assert list(matrix.sample_ids) == before

    def test_extra_metadata_sample(self):
        matrix = ExpressionMatrix(np.ones((2, 2)), pd.Index(["g1", "g2"]), pd.Index(["S1", "S2"]))
        metadata = pd.DataFrame({'refinebio_title': ['a', 'b', 'c']}, index=["S1", "S2", "S3"])

        with pytest.raises(AlignmentMismatchError) as excinfo:
            align_samples(matrix, metadata)

        assert excinfo.value.missing_in_matrix == ["S3"]
        assert excinfo.value.missing_in_metadata == []

    def test_extra_matrix_sample(self):
        matrix = ExpressionMatrix(
            np.ones((2, 3)), pd.Index(["g1", "g2"]), pd.Index(["S1", "S2", "S9"])
        )
        metadata = pd.DataFrame({'refinebio_title': ['a', 'b']}, index=["S2", "S1"])

        with pytest.raises(AlignmentMismatchError, match="without metadata") as excinfo:
            align_samples(matrix, metadata)

        assert excinfo.value.missing_in_metadata == ["S9"]

    def test_mismatch_is_a_value_error(self):
        matrix = ExpressionMatrix(np.ones((1, 1)), pd.Index(["g1"]), pd.Index(["S1"]))
        metadata = pd.DataFrame(index=["S2"])
        with pytest.raises(ValueError):
            align_samples(matrix, metadata)


class TestLoadDataset:

    def test_load_dataset_aligned(self, dataset_files, metadata_frame):
        expression_path, metadata_path = dataset_files
        matrix = load_dataset(expression_path, metadata_path)

        assert matrix.shape == (100, 19)
        assert list(matrix.sample_ids) == list(metadata_frame['refinebio_accession_code'][::-1])

    def test_load_dataset_mismatch(self, tmp_path, expression_frame, metadata_frame):
        expression_path = write_expression_tsv(expression_frame, tmp_path / "expr.tsv")
        metadata_path = write_metadata_tsv(metadata_frame.iloc[:-1], tmp_path / "meta.tsv")

        with pytest.raises(AlignmentMismatchError):
            load_dataset(expression_path, metadata_path)


class TestDataFormat:

    def test_refinebio_is_the_only_preset(self):
        assert set(PRESETS) == {'refinebio'}
        assert PRESETS['refinebio'] == DataFormat()

    def test_required_metadata_columns(self):
        fmt = DataFormat(accession_column="geo_accession", title_column="title")
        assert fmt.required_metadata_columns == ["geo_accession", "title", "refinebio_treatment"]
