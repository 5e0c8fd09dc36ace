"""
Format configuration for the expression matrix and sample metadata tables.

The column names used by the loaders, the annotation builder and the
writers all come from one DataFormat instance, so a dataset with a
different metadata layout only needs a different format, not new code.

The defaults describe a refine.bio RNA-seq download:

- Expression TSV: ``Gene`` column followed by one column per sample
  accession code.
- Metadata TSV: ``refinebio_accession_code``, ``refinebio_title`` and
  ``refinebio_treatment`` among many other columns.

Examples:
    >>> from varclust.io.formats import DataFormat, PRESETS
    >>>
    >>> fmt = PRESETS['refinebio']
    >>> fmt.accession_column
    'refinebio_accession_code'
    >>>
    >>> # Custom layout
    >>> fmt = DataFormat(
    ...     name="GEO series matrix export",
    ...     accession_column="geo_accession",
    ...     title_column="title",
    ...     treatment_column="treatment",
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    'DataFormat',
    'PRESETS',
    'DEFAULT_NA_VALUES',
]

DEFAULT_NA_VALUES = ['', 'NA', 'NaN', 'nan']


@dataclass(frozen=True)
class DataFormat:
    """
    Column layout of the input and output tables.

    Attributes:
        name: Human-readable format name
        delimiter: Column delimiter shared by all tables
        gene_column: Header of the gene identifier column in the expression
            matrix (and in the filtered output)
        accession_column: Metadata column holding the sample accession code
        title_column: Metadata column holding the free-text sample title
        treatment_column: Metadata column holding the treatment label
        encoding: File encoding
        na_values: Values to treat as missing
    """
    name: str = "refine.bio TSV"
    delimiter: str = '\t'
    gene_column: str = "Gene"
    accession_column: str = "refinebio_accession_code"
    title_column: str = "refinebio_title"
    treatment_column: str = "refinebio_treatment"
    encoding: str = "utf-8"
    na_values: list[str] = field(default_factory=lambda: list(DEFAULT_NA_VALUES))

    @property
    def required_metadata_columns(self) -> list[str]:
        """Metadata columns the analysis cannot run without."""
        return [self.accession_column, self.title_column, self.treatment_column]


PRESETS: dict[str, DataFormat] = {
    'refinebio': DataFormat(),
}
