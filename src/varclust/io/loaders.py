"""
TSV loaders for the expression matrix and the sample metadata.

Biological Context:
    A processed RNA-seq download typically ships two tables:
    - An expression matrix: one row per gene, one column per sample,
      columns named by sample accession code
    - A metadata table: one row per sample, keyed by the same accession code

    The two are produced independently and their sample order is not
    guaranteed to agree. Every downstream step (filtering, annotation,
    clustering) assumes that column j of the matrix and row j of the metadata
    describe the same sample, so alignment is checked explicitly here rather
    than assumed.

Examples:
    >>> from pathlib import Path
    >>> from varclust.io.loaders import load_dataset
    >>>
    >>> matrix = load_dataset(
    ...     Path("data/SRP070849/SRP070849.tsv"),
    ...     Path("data/SRP070849/metadata_SRP070849.tsv"),
    ... )
    >>> print(f"Loaded {matrix.n_features} genes × {matrix.n_samples} samples")
    Loaded 17773 genes × 19 samples
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional
import warnings
import numpy as np
import pandas as pd

from varclust.core.errors import AlignmentMismatchError
from varclust.core.matrix import ExpressionMatrix
from varclust.io.formats import DataFormat, PRESETS

logger = logging.getLogger(__name__)

__all__ = [
    'load_expression_matrix',
    'load_metadata',
    'align_samples',
    'load_dataset',
]


def _resolve_path(path: Path, label: str) -> Path:
    if not isinstance(path, Path):
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"{label} file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    return path


def _read_table(path: Path, fmt: DataFormat, **kwargs) -> pd.DataFrame:
    read_kwargs = {
        'sep': fmt.delimiter,
        'encoding': fmt.encoding,
        'na_values': fmt.na_values,
        **kwargs,
    }
    try:
        return pd.read_csv(path, **read_kwargs)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"File is empty (a header row is required): {path}") from e
    except Exception as e:
        raise ValueError(f"Failed to read {path}: {e}") from e


def _read_header(path: Path, fmt: DataFormat) -> list[str]:
    """Raw header fields, before pandas renames repeated names."""
    with open(path, 'r', encoding=fmt.encoding) as fh:
        first_line = fh.readline().rstrip('\r\n')
    return [field.strip('"') for field in first_line.split(fmt.delimiter)]


def load_expression_matrix(
    path: Path,
    fmt: Optional[DataFormat] = None,
) -> ExpressionMatrix:
    """
    Load a tab-separated expression matrix into an ExpressionMatrix.

    Expected format:
    ```
    Gene<TAB>SRR3355217<TAB>SRR3355218
    ENSG00000000003<TAB>0.2761<TAB>0.4312
    ENSG00000000005<TAB>0.0000<TAB>0.0134
    ```

    A file holding only the header row loads as a matrix with zero genes;
    callers decide whether that is an error.

    Args:
        path: Path to the expression TSV
        fmt: Column layout (default: refine.bio)

    Returns:
        ExpressionMatrix with empty sample_metadata (see align_samples)

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is malformed (no header, missing gene column,
            no sample columns, non-numeric or infinite values)
    """
    fmt = fmt or PRESETS['refinebio']
    path = _resolve_path(path, "Expression matrix")

    # Missing-value tokens apply to sample columns only; gene ids stay verbatim
    header = _read_header(path, fmt)
    df = _read_table(
        path, fmt,
        dtype={fmt.gene_column: str} if fmt.gene_column in header else None,
        keep_default_na=False,
        na_values={column: fmt.na_values for column in header if column != fmt.gene_column},
    )

    if fmt.gene_column not in df.columns:
        raise ValueError(
            f"Expression matrix {path} has no '{fmt.gene_column}' column. "
            f"Found columns: {list(df.columns[:5])}"
        )

    df = df.set_index(fmt.gene_column)

    if df.shape[1] == 0:
        raise ValueError(f"Expression matrix contains no samples (columns): {path}")

    if df.shape[0] == 0:
        warnings.warn(f"Expression matrix contains no genes (rows): {path}", UserWarning)

    # Check for duplicate gene IDs
    if df.index.duplicated().any():
        n_duplicates = df.index.duplicated().sum()
        warnings.warn(
            f"Found {n_duplicates} duplicate gene IDs. "
            "Using first occurrence of each.",
            UserWarning
        )
        df = df[~df.index.duplicated(keep='first')]

    # Check for duplicate sample IDs (pandas renames repeats to "X.1")
    sample_header = pd.Index(
        [c for c in header if c != fmt.gene_column]
    )
    if len(sample_header) == df.shape[1] and sample_header.duplicated().any():
        n_duplicates = sample_header.duplicated().sum()
        warnings.warn(
            f"Found {n_duplicates} duplicate sample IDs. "
            "Using first occurrence of each.",
            UserWarning
        )
        keep_mask = ~sample_header.duplicated(keep='first')
        df = df.loc[:, keep_mask]
        df.columns = sample_header[keep_mask]

    # Convert to numerical matrix
    try:
        data = df.to_numpy(dtype=float)
    except (ValueError, TypeError) as e:
        non_numeric = []
        for column in df.columns:
            coerced = pd.to_numeric(df[column], errors='coerce')
            bad = df.index[coerced.isna() & df[column].notna()]
            for gene in bad[:5 - len(non_numeric)]:
                non_numeric.append(f"gene '{gene}', sample '{column}': {df.at[gene, column]}")
            if len(non_numeric) >= 5:
                break

        raise ValueError(
            "Expression matrix contains non-numeric values:\n" +
            "\n".join(f"  - {x}" for x in non_numeric)
        ) from e

    # Check for NaN values
    if np.isnan(data).any():
        n_nan = np.isnan(data).sum()
        warnings.warn(
            f"Found {n_nan:,} NaN values ({100 * n_nan / data.size:.2f}% of data). "
            "Genes with missing values get a variance computed over the observed samples.",
            UserWarning
        )

    # Check for infinite values
    if np.isinf(data).any():
        n_inf = np.isinf(data).sum()
        raise ValueError(
            f"Expression matrix contains {n_inf} infinite values. "
            "Please clean data before loading."
        )

    matrix = ExpressionMatrix(
        data=data,
        gene_ids=pd.Index(df.index.astype(str), name=fmt.gene_column),
        sample_ids=pd.Index(df.columns.astype(str)),
    )

    logger.info(f"Loaded expression matrix: {matrix.n_features:,} genes x "
                f"{matrix.n_samples:,} samples from {path}")

    return matrix


def load_metadata(
    path: Path,
    fmt: Optional[DataFormat] = None,
) -> pd.DataFrame:
    """
    Load the sample metadata table, indexed by accession code.

    All columns are read as strings so treatment labels and titles pass
    through unchanged.

    Args:
        path: Path to the metadata TSV
        fmt: Column layout (default: refine.bio)

    Returns:
        DataFrame indexed by accession code, in file order

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If required columns are missing or accession codes repeat
    """
    fmt = fmt or PRESETS['refinebio']
    path = _resolve_path(path, "Metadata")

    df = _read_table(path, fmt, dtype=str, keep_default_na=False, na_values=[])

    missing_cols = [c for c in fmt.required_metadata_columns if c not in df.columns]
    if missing_cols:
        raise ValueError(
            f"Metadata {path} is missing required columns: {missing_cols}"
        )

    accessions = df[fmt.accession_column]
    if (accessions == "").any():
        raise ValueError(
            f"Metadata {path} has {int((accessions == '').sum())} rows without "
            f"'{fmt.accession_column}'"
        )

    if accessions.duplicated().any():
        duplicated = sorted(accessions[accessions.duplicated()].unique())
        raise ValueError(
            f"Metadata accession codes must be unique; duplicated: {duplicated[:5]}"
        )

    metadata = df.set_index(fmt.accession_column)
    metadata.index = metadata.index.astype(str)

    logger.info(f"Loaded metadata for {len(metadata):,} samples from {path}")

    return metadata


def align_samples(matrix: ExpressionMatrix, metadata: pd.DataFrame) -> ExpressionMatrix:
    """
    Reorder matrix columns to the metadata's accession-code order.

    The column set and the accession set must be identical. Extra or missing
    samples on either side abort the analysis: a silent inner join would hide
    a wrong file pairing.

    Args:
        matrix: Expression matrix as loaded
        metadata: Metadata indexed by accession code

    Returns:
        New ExpressionMatrix with columns in metadata order and
        sample_metadata set to ``metadata``

    Raises:
        AlignmentMismatchError: If the sample sets differ
    """
    columns = pd.Index(matrix.sample_ids)
    accessions = pd.Index(metadata.index)

    missing_in_matrix = set(accessions.difference(columns))
    missing_in_metadata = set(columns.difference(accessions))

    if missing_in_matrix or missing_in_metadata:
        raise AlignmentMismatchError(
            "Expression matrix columns and metadata accession codes differ: "
            f"{len(missing_in_matrix)} accession(s) without expression data "
            f"{sorted(missing_in_matrix)[:5]}, "
            f"{len(missing_in_metadata)} expression column(s) without metadata "
            f"{sorted(missing_in_metadata)[:5]}",
            missing_in_matrix=missing_in_matrix,
            missing_in_metadata=missing_in_metadata,
        )

    aligned = matrix.reorder_samples(accessions, sample_metadata=metadata)

    if not aligned.sample_ids.equals(accessions):
        raise AlignmentMismatchError(
            "Internal error: reordered columns do not match metadata order"
        )

    if not columns.equals(accessions):
        logger.info("Reordered expression columns to match metadata order")

    return aligned


def load_dataset(
    expression_path: Path,
    metadata_path: Path,
    fmt: Optional[DataFormat] = None,
) -> ExpressionMatrix:
    """
    Load expression data and metadata and align their samples.

    Args:
        expression_path: Path to the expression TSV
        metadata_path: Path to the metadata TSV
        fmt: Column layout (default: refine.bio)

    Returns:
        Aligned ExpressionMatrix carrying the metadata as sample_metadata

    Raises:
        FileNotFoundError: If either file does not exist
        ValueError: If either file is malformed
        AlignmentMismatchError: If the sample sets differ
    """
    fmt = fmt or PRESETS['refinebio']
    matrix = load_expression_matrix(expression_path, fmt)
    metadata = load_metadata(metadata_path, fmt)
    return align_samples(matrix, metadata)
