"""
Core data structure for gene expression matrices.

ExpressionMatrix couples the numerical data (normalized expression levels)
with sample metadata so that subsetting and reordering never let the two
drift apart.

Biological Context:
    - Rows = genes (unique identifiers, e.g. Ensembl gene IDs)
    - Columns = samples (keyed by accession code, e.g. SRR3355217)
    - Values = normalized expression levels

    Sample metadata (title, treatment, ...) is indexed by the same accession
    codes as the columns; the constructor refuses any other arrangement.

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from varclust.core.matrix import ExpressionMatrix
    >>>
    >>> data = np.array([[10.0, 20.0], [30.0, 40.0]])
    >>> gene_ids = pd.Index(["ENSG001", "ENSG002"])
    >>> sample_ids = pd.Index(["SRR01", "SRR02"])
    >>> metadata = pd.DataFrame({'treatment': ['none', 'AZA']}, index=sample_ids)
    >>> matrix = ExpressionMatrix(data, gene_ids, sample_ids, metadata)
    >>>
    >>> treated = matrix.select_samples(matrix.sample_metadata['treatment'] == 'AZA')
"""

from __future__ import annotations

from typing import Optional, Sequence
import numpy as np
import pandas as pd

__all__ = ['ExpressionMatrix']


class ExpressionMatrix:
    """
    Immutable container for an expression matrix and its sample metadata.

    Attributes:
        data: Numerical expression matrix (genes × samples)
        gene_ids: Row identifiers
        sample_ids: Column identifiers (accession codes)
        sample_metadata: Per-sample annotations indexed by sample_ids

    Shape Invariants:
        - data.shape[0] == len(gene_ids)
        - data.shape[1] == len(sample_ids)
        - sample_metadata.index equals sample_ids
    """

    def __init__(
        self,
        data: np.ndarray,
        gene_ids: pd.Index,
        sample_ids: pd.Index,
        sample_metadata: Optional[pd.DataFrame] = None,
    ):
        """
        Initialize ExpressionMatrix with validation.

        Args:
            data: Expression matrix (genes × samples)
            gene_ids: Row identifiers
            sample_ids: Column identifiers
            sample_metadata: DataFrame indexed by sample_ids.
                Defaults to an empty frame over sample_ids.

        Raises:
            TypeError: If data types are incorrect
            ValueError: If shapes are inconsistent or indices don't match
        """
        if sample_metadata is None:
            sample_metadata = pd.DataFrame(index=sample_ids)

        # Type validation
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(gene_ids, pd.Index):
            raise TypeError(f"gene_ids must be pd.Index, got {type(gene_ids)}")
        if not isinstance(sample_ids, pd.Index):
            raise TypeError(f"sample_ids must be pd.Index, got {type(sample_ids)}")
        if not isinstance(sample_metadata, pd.DataFrame):
            raise TypeError(f"sample_metadata must be pd.DataFrame, got {type(sample_metadata)}")

        # Shape validation
        if data.ndim != 2:
            raise ValueError(f"data must be 2D, got shape {data.shape}")

        n_genes, n_samples = data.shape

        if len(gene_ids) != n_genes:
            raise ValueError(
                f"gene_ids length ({len(gene_ids)}) must match data rows ({n_genes})"
            )
        if len(sample_ids) != n_samples:
            raise ValueError(
                f"sample_ids length ({len(sample_ids)}) must match data columns ({n_samples})"
            )

        # Index validation
        if not sample_metadata.index.equals(sample_ids):
            raise ValueError(
                "sample_metadata.index must match sample_ids exactly. "
                f"Got {len(sample_metadata.index)} metadata rows for {len(sample_ids)} samples."
            )

        self._data = data
        self._gene_ids = gene_ids
        self._sample_ids = sample_ids
        self._sample_metadata = sample_metadata

    @property
    def data(self) -> np.ndarray:
        """Expression matrix (genes × samples)."""
        return self._data

    @property
    def gene_ids(self) -> pd.Index:
        """Row identifiers."""
        return self._gene_ids

    @property
    def sample_ids(self) -> pd.Index:
        """Column identifiers (accession codes)."""
        return self._sample_ids

    @property
    def sample_metadata(self) -> pd.DataFrame:
        """Per-sample annotations."""
        return self._sample_metadata

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_genes, n_samples)."""
        return self._data.shape

    @property
    def n_features(self) -> int:
        """Number of genes."""
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        """Number of samples."""
        return self._data.shape[1]

    def select_samples(self, mask: np.ndarray | pd.Series) -> ExpressionMatrix:
        """
        Subset matrix by samples (columns).

        Args:
            mask: Boolean array/Series indicating which samples to keep.
                If Series, uses values and ignores index.

        Raises:
            ValueError: If mask length doesn't match n_samples
        """
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_samples:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_samples ({self.n_samples})"
            )

        return ExpressionMatrix(
            data=self._data[:, mask],
            gene_ids=self._gene_ids,
            sample_ids=self._sample_ids[mask],
            sample_metadata=self._sample_metadata.loc[self._sample_ids[mask]],
        )

    def select_features(self, mask: np.ndarray | pd.Series) -> ExpressionMatrix:
        """
        Subset matrix by genes (rows).

        Args:
            mask: Boolean array/Series indicating which genes to keep.
                If Series, uses values and ignores index.

        Raises:
            ValueError: If mask length doesn't match n_features

        Examples:
            >>> variances = matrix.data.var(axis=1, ddof=1)
            >>> variable = matrix.select_features(variances > np.median(variances))
        """
        if isinstance(mask, pd.Series):
            mask = mask.values
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_features:
            raise ValueError(
                f"mask length ({len(mask)}) must match n_features ({self.n_features})"
            )

        return ExpressionMatrix(
            data=self._data[mask, :],
            gene_ids=self._gene_ids[mask],
            sample_ids=self._sample_ids,
            sample_metadata=self._sample_metadata,
        )

    def reorder_samples(
        self,
        order: Sequence[str] | pd.Index,
        sample_metadata: Optional[pd.DataFrame] = None,
    ) -> ExpressionMatrix:
        """
        Return a matrix whose columns follow ``order``.

        Args:
            order: Sample ids in the desired order. Must be a permutation of
                sample_ids.
            sample_metadata: Replacement metadata indexed by ``order``. If None,
                the current metadata is reordered.

        Raises:
            ValueError: If order is not a permutation of sample_ids
        """
        order = pd.Index(order)
        if len(order) != self.n_samples or not order.isin(self._sample_ids).all():
            raise ValueError("order must be a permutation of sample_ids")

        positions = self._sample_ids.get_indexer(order)
        if sample_metadata is None:
            sample_metadata = self._sample_metadata.loc[order]

        return ExpressionMatrix(
            data=self._data[:, positions],
            gene_ids=self._gene_ids,
            sample_ids=order,
            sample_metadata=sample_metadata,
        )

    def to_frame(self) -> pd.DataFrame:
        """Expression values as a genes × samples DataFrame."""
        return pd.DataFrame(self._data, index=self._gene_ids, columns=self._sample_ids)

    def copy(self, deep: bool = True) -> ExpressionMatrix:
        """
        Create a copy of this matrix.

        Args:
            deep: If True, copy all arrays. If False, share arrays.
        """
        if deep:
            return ExpressionMatrix(
                data=self._data.copy(),
                gene_ids=self._gene_ids.copy(),
                sample_ids=self._sample_ids.copy(),
                sample_metadata=self._sample_metadata.copy(),
            )
        return ExpressionMatrix(
            data=self._data,
            gene_ids=self._gene_ids,
            sample_ids=self._sample_ids,
            sample_metadata=self._sample_metadata,
        )

    def __repr__(self) -> str:
        if self.n_features and self.n_samples:
            return (
                f"ExpressionMatrix({self.n_features} genes × {self.n_samples} samples)\n"
                f"  Genes: {self.gene_ids[0]}...{self.gene_ids[-1]}\n"
                f"  Samples: {self.sample_ids[0]}...{self.sample_ids[-1]}\n"
                f"  Metadata columns: {list(self.sample_metadata.columns)}"
            )
        return f"ExpressionMatrix({self.n_features} genes × {self.n_samples} samples)"

    def __str__(self) -> str:
        return self.__repr__()
