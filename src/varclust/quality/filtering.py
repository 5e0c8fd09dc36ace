"""
Variance filtering for expression matrices.

Keeps the genes whose across-sample variance lies in the upper tail of the
variance distribution (by default: above the 75th percentile). Genes that
barely change between samples carry no information about sample structure
and only add noise to the clustering.

Implements the Transform interface for composable pipelines.

Engineering Design:
    - Sample variance per gene (ddof=1)
    - Threshold = linear-interpolation quantile of all gene variances
    - Strict comparison: a gene is kept iff its variance > threshold, so a
      matrix whose genes all share one variance keeps nothing
    - compute() returns full provenance; apply() returns the subset
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict
import numpy as np
import pandas as pd

from varclust.core.matrix import ExpressionMatrix
from varclust.core.transform import Transform

logger = logging.getLogger(__name__)

__all__ = ['VarianceFilter', 'VarianceFilterResult', 'gene_variances']


def gene_variances(matrix: ExpressionMatrix) -> pd.Series:
    """
    Sample variance (ddof=1) of each gene across samples.

    Missing values are skipped; genes with fewer than two observed values
    get NaN.
    """
    return matrix.to_frame().var(axis=1, ddof=1)


@dataclass
class VarianceFilterResult:
    """Results from variance filtering with full provenance."""
    variances: pd.Series
    threshold: float
    quantile: float
    keep_mask: np.ndarray
    parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed_genes(self) -> pd.Index:
        return self.variances.index[self.keep_mask]

    @property
    def n_passed(self) -> int:
        return int(self.keep_mask.sum())

    @property
    def n_failed(self) -> int:
        return len(self.keep_mask) - self.n_passed

    @property
    def pass_rate(self) -> float:
        total = len(self.keep_mask)
        return self.n_passed / total if total > 0 else 0.0


class VarianceFilter(Transform):
    """
    Keep genes whose variance exceeds a quantile of all gene variances.

    Re-applying the filter to its own output is not a no-op: the quantile
    is recomputed over the smaller set and removes further genes.

    Params:
        quantile: Quantile of the gene variances used as the threshold,
            in [0, 1). 0.75 keeps roughly the top quartile.

    Examples:
        >>> vfilter = VarianceFilter(quantile=0.75)
        >>> result = vfilter.compute(matrix)
        >>> print(f"threshold={result.threshold:.3f}, kept {result.n_passed}")
        >>> filtered = vfilter.apply(matrix)
    """

    def __init__(self, quantile: float = 0.75):
        if not 0 <= quantile < 1:
            raise ValueError(f"quantile must be in [0, 1), got {quantile}")

        super().__init__(
            name="VarianceFilter",
            params={"quantile": quantile}
        )
        self.quantile = quantile

    def compute(self, matrix: ExpressionMatrix) -> VarianceFilterResult:
        """
        Compute gene variances, the threshold and the keep mask.

        A matrix with no genes gives an empty result with a NaN threshold.
        """
        variances = gene_variances(matrix)

        if variances.notna().any():
            threshold = float(variances.quantile(self.quantile, interpolation='linear'))
        else:
            threshold = float('nan')

        # NaN variances and a NaN threshold both compare False
        keep_mask = (variances > threshold).to_numpy(dtype=bool)

        result = VarianceFilterResult(
            variances=variances,
            threshold=threshold,
            quantile=self.quantile,
            keep_mask=keep_mask,
            parameters=dict(self.params),
        )

        if matrix.n_features > 0 and result.n_passed == 0:
            logger.warning(
                f"No gene has variance above the {self.quantile:.0%} quantile "
                f"({threshold:.4g}); all gene variances are tied"
            )

        return result

    def apply(self, matrix: ExpressionMatrix) -> ExpressionMatrix:
        """
        Apply the variance filter.
        """
        logger.info(f"Applying {self!r} to {matrix.n_features:,} genes")

        result = self.compute(matrix)

        pct = 100 * result.pass_rate
        logger.info(f"Variance threshold ({self.quantile:.0%} quantile): {result.threshold:.4g}")
        logger.info(f"Filtering complete: Kept {result.n_passed}/{matrix.n_features} genes "
                    f"({pct:.1f}%), Removed {result.n_failed}")

        return matrix.select_features(result.keep_mask)

    def validate(self, matrix: ExpressionMatrix) -> list[str]:
        errors = super().validate(matrix)
        if matrix.n_samples < 2:
            errors.append("At least two samples are needed to compute gene variances")
        if np.any(matrix.data < 0):
            errors.append("Matrix contains negative values (expected normalized expression levels)")
        return errors
