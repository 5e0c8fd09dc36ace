"""
Gene selection for expression matrices.

Components:
    VarianceFilter: Keep genes whose variance exceeds a quantile of all gene
                    variances (default: 75th percentile)
    VarianceFilterResult: Variances, threshold and keep mask of one run

Examples:
    >>> from varclust.quality import VarianceFilter
    >>>
    >>> filtered = VarianceFilter(quantile=0.75).apply(matrix)
    >>> print(f"Kept {filtered.n_features} of {matrix.n_features} genes")
"""

from varclust.quality.filtering import VarianceFilter, VarianceFilterResult, gene_variances

__all__ = [
    'VarianceFilter',
    'VarianceFilterResult',
    'gene_variances',
]
