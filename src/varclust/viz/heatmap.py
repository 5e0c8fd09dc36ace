"""
Clustered, annotated expression heatmap.

Shows the variance-filtered genes as a grid of row-scaled expression values,
with genes and samples each reordered by hierarchical clustering and a color
bar above the columns giving every sample's mutation group and treatment.

Rendering steps:
    1. Row scaling: per-gene z-score across samples, so relative expression
       between samples (not absolute magnitude) drives the color
    2. Agglomerative clustering of genes and of samples on the scaled values
       (complete linkage, Euclidean distance by default)
    3. Grid drawn with a three-point diverging colormap in discrete bins,
       reordered by both dendrograms
    4. Column annotation bars (mutation, treatment) with legends
    5. Gene labels suppressed, sample labels kept

Examples:
    >>> from varclust.viz.heatmap import HeatmapRenderer
    >>>
    >>> renderer = HeatmapRenderer()
    >>> result = renderer.render(filtered, annotations)
    >>> result.sample_order[:3]
    ['SRR3355229', 'SRR3355221', 'SRR3355217']
    >>> result.save("plots/SRP070849_heatmap.png")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional
import numpy as np
import pandas as pd
import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import seaborn as sns
from scipy.cluster import hierarchy

from varclust.core.errors import AlignmentMismatchError, EmptyResultError
from varclust.core.matrix import ExpressionMatrix
from varclust.viz.core import Figure
from varclust.viz.styles import Palette, PALETTES, configure_style, heatmap_cmap

logger = logging.getLogger(__name__)

__all__ = ['HeatmapRenderer', 'HeatmapResult', 'scale_rows', 'cluster_order']


def scale_rows(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Z-score each row: subtract the row mean, divide by the row standard
    deviation (ddof=1).

    Rows with zero (or undefined) standard deviation become all zeros.
    Missing values are set to 0, i.e. the row mean.
    """
    means = frame.mean(axis=1)
    stds = frame.std(axis=1, ddof=1)
    stds = stds.where(stds > 0)
    scaled = frame.sub(means, axis=0).div(stds, axis=0)
    return scaled.fillna(0.0)


def cluster_order(
    values: np.ndarray,
    method: str = "complete",
    metric: str = "euclidean",
) -> tuple[Optional[np.ndarray], np.ndarray]:
    """
    Hierarchically cluster the rows of ``values``.

    Returns:
        (linkage, order): the scipy linkage matrix (None when there are fewer
        than two rows) and the dendrogram leaf order
    """
    n = values.shape[0]
    if n < 2:
        return None, np.arange(n)
    linkage = hierarchy.linkage(values, method=method, metric=metric)
    order = hierarchy.leaves_list(linkage)
    return linkage, order


@dataclass
class HeatmapResult:
    """
    Rendered heatmap plus the clustering that produced it.

    Attributes:
        figure: Figure wrapper around the seaborn ClusterGrid figure
        scaled: Row-scaled values in input order (genes × samples)
        gene_order: Gene ids in dendrogram display order (top to bottom)
        sample_order: Sample ids in dendrogram display order (left to right)
        row_linkage: Gene linkage matrix (None if not clustered)
        col_linkage: Sample linkage matrix (None if not clustered)
    """
    figure: Figure
    scaled: pd.DataFrame
    gene_order: list[str]
    sample_order: list[str]
    row_linkage: Optional[np.ndarray]
    col_linkage: Optional[np.ndarray]

    def save(self, path: Path | str, dpi: int = 300) -> Path:
        """Write the image and release the figure (also on failure)."""
        saved = self.figure.save(path, dpi=dpi, close=True)
        logger.info(f"Wrote heatmap ({len(self.gene_order)} genes x "
                    f"{len(self.sample_order)} samples) to {saved}")
        return saved


class HeatmapRenderer:
    """
    Renders the clustered, annotated heatmap of a filtered expression matrix.

    Parameters
    ----------
    palette : str or Palette, default "default"
        Colors for the expression scale and the annotation bars
    style : {"paper", "presentation", "notebook"}, default "paper"
        Matplotlib/seaborn style preset
    method : str, default "complete"
        scipy linkage method used for genes and samples
    metric : str, default "euclidean"
        Distance metric used for genes and samples
    n_colors : int, default 25
        Number of discrete bins in the expression colormap
    """

    def __init__(
        self,
        palette: str | Palette = "default",
        style: Literal["paper", "presentation", "notebook"] = "paper",
        method: str = "complete",
        metric: str = "euclidean",
        n_colors: int = 25,
    ):
        if isinstance(palette, str):
            self.palette = PALETTES.get(palette, PALETTES["default"])
        else:
            self.palette = palette
        self.style = style
        self.method = method
        self.metric = metric
        self.n_colors = n_colors
        self.cmap = heatmap_cmap(self.palette, n_colors)

    def _annotation_colors(self, annotations: pd.DataFrame) -> tuple[pd.DataFrame, dict]:
        """Per-sample color frame for clustermap plus the legend entries."""
        legends: dict[str, dict[str, str]] = {}
        color_columns = {}

        if 'mutation' in annotations.columns:
            labels = annotations['mutation'].astype(str)
            mapping = self.palette.for_labels(labels, known=self.palette.mutation)
            color_columns['Mutation'] = labels.map(mapping)
            legends['Mutation'] = mapping

        if 'treatment' in annotations.columns:
            labels = annotations['treatment'].fillna("").astype(str)
            mapping = self.palette.for_labels(labels)
            color_columns['Treatment'] = labels.map(mapping)
            legends['Treatment'] = mapping

        return pd.DataFrame(color_columns, index=annotations.index), legends

    def render(
        self,
        matrix: ExpressionMatrix,
        annotations: pd.DataFrame,
        title: str = "Annotated Heatmap",
        figsize: Optional[tuple[float, float]] = None,
    ) -> HeatmapResult:
        """
        Scale, cluster and draw the heatmap.

        Parameters
        ----------
        matrix : ExpressionMatrix
            Filtered expression matrix
        annotations : pd.DataFrame
            Annotation table indexed by sample id (``mutation``, ``treatment``)
        title : str
            Figure title
        figsize : tuple, optional
            Figure size in inches; grows with the number of samples if None

        Returns
        -------
        HeatmapResult

        Raises
        ------
        EmptyResultError
            If the matrix has no genes or no samples
        AlignmentMismatchError
            If some matrix samples have no annotation row
        """
        if matrix.n_features == 0 or matrix.n_samples == 0:
            raise EmptyResultError(
                f"Cannot render a heatmap of {matrix.n_features} genes x "
                f"{matrix.n_samples} samples"
            )

        missing = matrix.sample_ids.difference(annotations.index)
        if len(missing) > 0:
            raise AlignmentMismatchError(
                f"{len(missing)} sample(s) have no annotation: {list(missing[:5])}",
                missing_in_metadata=missing,
            )
        annotations = annotations.loc[matrix.sample_ids]

        configure_style(style=self.style, palette=self.palette)

        scaled = scale_rows(matrix.to_frame())

        row_linkage, row_order = cluster_order(scaled.values, self.method, self.metric)
        col_linkage, col_order = cluster_order(scaled.values.T, self.method, self.metric)
        logger.info(f"Clustered {matrix.n_features} genes and {matrix.n_samples} samples "
                    f"({self.method} linkage, {self.metric} distance)")

        col_colors, legends = self._annotation_colors(annotations)

        if figsize is None:
            figsize = (max(8.0, 4.0 + 0.35 * matrix.n_samples), 10.0)

        limit = float(np.abs(scaled.values).max()) or 1.0

        open_before = set(plt.get_fignums())
        try:
            grid = sns.clustermap(
                scaled,
                row_cluster=row_linkage is not None,
                col_cluster=col_linkage is not None,
                row_linkage=row_linkage,
                col_linkage=col_linkage,
                col_colors=col_colors if not col_colors.empty else None,
                cmap=self.cmap,
                vmin=-limit,
                vmax=limit,
                yticklabels=False,
                xticklabels=True,
                figsize=figsize,
                cbar_kws={"label": "Row z-score"},
                linewidths=0,
            )
            grid.ax_heatmap.set_xlabel("")
            grid.ax_heatmap.set_ylabel("")

            self._add_legends(grid, legends)
            grid.figure.suptitle(title, y=1.02)
        except Exception:
            # Release whatever figure the failed render left behind
            for number in set(plt.get_fignums()) - open_before:
                plt.close(number)
            raise

        # Display order as drawn by seaborn; matches leaves_list when clustered
        if grid.dendrogram_row is not None:
            row_order = np.asarray(grid.dendrogram_row.reordered_ind)
        if grid.dendrogram_col is not None:
            col_order = np.asarray(grid.dendrogram_col.reordered_ind)

        gene_order = [str(g) for g in scaled.index[row_order]]
        sample_order = [str(s) for s in scaled.columns[col_order]]

        figure = Figure(
            fig=grid.figure,
            title=title,
            description=(
                f"{matrix.n_features} high-variance genes (row z-scores) across "
                f"{matrix.n_samples} samples, {self.method} linkage on "
                f"{self.metric} distance"
            ),
            metadata={
                "n_genes": matrix.n_features,
                "n_samples": matrix.n_samples,
                "method": self.method,
                "metric": self.metric,
                "n_colors": self.n_colors,
            },
        )

        return HeatmapResult(
            figure=figure,
            scaled=scaled,
            gene_order=gene_order,
            sample_order=sample_order,
            row_linkage=row_linkage,
            col_linkage=col_linkage,
        )

    @staticmethod
    def _add_legends(grid: sns.matrix.ClusterGrid, legends: dict[str, dict[str, str]]) -> None:
        """One legend per annotation, stacked to the right of the heatmap."""
        y = 1.0
        for name, mapping in legends.items():
            handles = [
                mpatches.Patch(facecolor=color, edgecolor="none", label=label or "n/a")
                for label, color in mapping.items()
            ]
            grid.figure.legend(
                handles=handles,
                title=name,
                loc="upper left",
                bbox_to_anchor=(1.0, y),
                bbox_transform=grid.figure.transFigure,
                frameon=False,
            )
            y -= 0.06 * (len(handles) + 2)
