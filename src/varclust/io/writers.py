"""
TSV writer for expression matrices.

Writes the filtered matrix in the same layout the loader reads, so results
can be reloaded with load_expression_matrix or opened directly in R/Excel.

Engineering Design:
    - Same column structure as the input: gene column, then one column per
      sample accession code
    - Scoped output target: the file appears only once fully written
    - Creates parent directories if they don't exist

Examples:
    >>> from pathlib import Path
    >>> from varclust.io.writers import write_tsv_matrix
    >>>
    >>> write_tsv_matrix(filtered, Path("results/SRP070849_filtered.tsv"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from varclust.core.errors import EmptyResultError
from varclust.core.matrix import ExpressionMatrix
from varclust.io.formats import DataFormat, PRESETS
from varclust.utils.fileio import atomic_output

logger = logging.getLogger(__name__)

__all__ = ['write_tsv_matrix']


def write_tsv_matrix(
    matrix: ExpressionMatrix,
    path: Path,
    fmt: Optional[DataFormat] = None,
) -> Path:
    """
    Write an ExpressionMatrix as a tab-separated table.

    Output layout:
    - Header: gene column name (``Gene``) followed by sample accession codes
    - One row per gene

    Args:
        matrix: ExpressionMatrix to write
        path: Output path (used exactly as provided)
        fmt: Column layout (default: refine.bio)

    Returns:
        The path written

    Raises:
        TypeError: If matrix is not an ExpressionMatrix
        EmptyResultError: If matrix has no genes
        OSError: If path is not writable
    """
    if not isinstance(matrix, ExpressionMatrix):
        raise TypeError(f"matrix must be ExpressionMatrix, got {type(matrix)}")

    if matrix.n_features == 0:
        raise EmptyResultError("Cannot write a matrix with no genes")

    fmt = fmt or PRESETS['refinebio']

    if not isinstance(path, Path):
        path = Path(path)

    if path.parent != Path('.') and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    df = matrix.to_frame()
    df.index.name = fmt.gene_column

    try:
        with atomic_output(path, "w", encoding=fmt.encoding) as fh:
            df.to_csv(fh, sep=fmt.delimiter)
    except Exception as e:
        raise OSError(f"Failed to write matrix file {path}: {e}") from e

    logger.info(f"Wrote {matrix.n_features:,} genes x {matrix.n_samples:,} samples to {path}")

    return path
