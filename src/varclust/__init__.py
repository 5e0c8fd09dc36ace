"""
varclust - variance-filtered, clustered heatmaps of RNA-seq expression data

Loads a gene expression matrix and its sample metadata, keeps the genes in
the upper quartile of variance and renders a hierarchically clustered
heatmap annotated by mutation group and treatment.
"""

__version__ = "0.1.0"

from varclust.core.errors import AlignmentMismatchError, EmptyResultError, VarclustError
from varclust.core.matrix import ExpressionMatrix
from varclust.core.transform import Transform

__all__ = [
    "ExpressionMatrix",
    "Transform",
    "VarclustError",
    "AlignmentMismatchError",
    "EmptyResultError",
]
