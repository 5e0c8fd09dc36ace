"""
I/O module for loading and writing expression data.

Key Functions:
    - load_expression_matrix: Load a gene × sample expression TSV
    - load_metadata: Load the per-sample metadata table
    - align_samples: Reorder matrix columns to the metadata order
    - load_dataset: All three in one call
    - write_tsv_matrix: Write an ExpressionMatrix back to TSV
    - build_annotation_table: Mutation group + treatment per sample

Examples:
    >>> from varclust.io import load_dataset, write_tsv_matrix
    >>> from pathlib import Path
    >>>
    >>> matrix = load_dataset(Path("expression.tsv"), Path("metadata.tsv"))
    >>> write_tsv_matrix(matrix, Path("results/copy.tsv"))
"""

from varclust.io.formats import DataFormat, PRESETS
from varclust.io.loaders import (
    align_samples,
    load_dataset,
    load_expression_matrix,
    load_metadata,
)
from varclust.io.metadata import (
    MUTATION_PREFIXES,
    UNKNOWN_MUTATION,
    MutationAnnotator,
    build_annotation_table,
)
from varclust.io.writers import write_tsv_matrix

__all__ = [
    'DataFormat',
    'PRESETS',
    'load_expression_matrix',
    'load_metadata',
    'align_samples',
    'load_dataset',
    'write_tsv_matrix',
    'MutationAnnotator',
    'build_annotation_table',
    'MUTATION_PREFIXES',
    'UNKNOWN_MUTATION',
]
