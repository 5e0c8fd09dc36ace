"""
Visualization module: the clustered, annotated expression heatmap.

Static figures are built with matplotlib/seaborn; clustering uses scipy.

Examples
--------
>>> from varclust.viz import HeatmapRenderer
>>>
>>> result = HeatmapRenderer(style="paper").render(filtered, annotations)
>>> result.save("plots/heatmap.png", dpi=300)
"""

from varclust.viz.core import Figure
from varclust.viz.heatmap import HeatmapRenderer, HeatmapResult, cluster_order, scale_rows
from varclust.viz.styles import PALETTES, Palette, configure_style, heatmap_cmap

__all__ = [
    # Core
    "Figure",
    # Styles
    "Palette",
    "PALETTES",
    "configure_style",
    "heatmap_cmap",
    # Heatmap
    "HeatmapRenderer",
    "HeatmapResult",
    "scale_rows",
    "cluster_order",
]
