"""
Consistent visual styles for the clustered heatmap.

Defines the color palettes, the heatmap colormap and the matplotlib/seaborn
configuration.

Domain Conventions
------------------
- Expression z-scores: three-point diverging scale, low = deep sky blue,
  mid = black, high = yellow, cut into 25 discrete bins
- Mutation groups: fixed qualitative colors (TET2, IDH2, WT, unknown = gray)
- Treatment: qualitative seaborn palette assigned in order of appearance
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence
import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap
import seaborn as sns

__all__ = [
    'Palette',
    'PALETTES',
    'configure_style',
    'heatmap_cmap',
]


@dataclass(frozen=True)
class Palette:
    """
    Color palette for the annotated heatmap.

    Attributes
    ----------
    low, mid, high : str
        The three anchor colors of the expression colormap
    tet2, idh2, wt : str
        Colors of the known mutation groups
    unknown : str
        Color for samples whose title matched no mutation prefix
    treatment : str
        Seaborn palette name used for treatment labels
    """
    low: str = "deepskyblue"
    mid: str = "black"
    high: str = "yellow"
    tet2: str = "#e41a1c"
    idh2: str = "#377eb8"
    wt: str = "#4daf4a"
    unknown: str = "#9ca3af"     # Gray-400
    treatment: str = "Set2"

    @property
    def mutation(self) -> dict[str, str]:
        """Color mapping for mutation groups."""
        return {"TET2": self.tet2, "IDH2": self.idh2, "WT": self.wt, "unknown": self.unknown}

    def for_labels(self, labels: Sequence[str], known: dict[str, str] | None = None) -> dict[str, str]:
        """
        Map each distinct label to a color.

        Labels found in ``known`` keep their fixed color; the rest draw from
        the treatment palette in order of first appearance.
        """
        known = known or {}
        distinct = list(dict.fromkeys(str(label) for label in labels))
        fallback = sns.color_palette(self.treatment, max(len(distinct), 1)).as_hex()

        colors: dict[str, str] = {}
        fallback_idx = 0
        for label in distinct:
            if label in known:
                colors[label] = known[label]
            else:
                colors[label] = fallback[fallback_idx % len(fallback)]
                fallback_idx += 1
        return colors


# Predefined palettes
PALETTES = {
    "default": Palette(),
    "colorblind": Palette(
        low="#0077bb",
        mid="#f7f7f7",
        high="#cc3311",
        tet2="#ee7733",
        idh2="#009988",
        wt="#33bbee",
        unknown="#bbbbbb",
        treatment="colorblind",
    ),
}


def heatmap_cmap(palette: Palette, n_colors: int = 25) -> LinearSegmentedColormap:
    """
    Three-point diverging colormap with ``n_colors`` discrete bins.

    Examples
    --------
    >>> cmap = heatmap_cmap(PALETTES["default"])
    >>> cmap.N
    25
    """
    if n_colors < 3:
        raise ValueError(f"n_colors must be at least 3, got {n_colors}")
    return LinearSegmentedColormap.from_list(
        "varclust_expression",
        [palette.low, palette.mid, palette.high],
        N=n_colors,
    )


def configure_style(
    style: Literal["paper", "presentation", "notebook"] = "paper",
    palette: str | Palette = "default",
    font_scale: float = 1.0
) -> Palette:
    """
    Configure matplotlib and seaborn for consistent visualization style.

    Parameters
    ----------
    style : {"paper", "presentation", "notebook"}
        Target medium.
    palette : str or Palette
        Color palette name or Palette instance.
    font_scale : float
        Multiplier for all font sizes.

    Returns
    -------
    Palette
        The configured color palette.
    """
    if isinstance(palette, str):
        palette = PALETTES.get(palette, PALETTES["default"])

    base_params = {
        "figure.facecolor": "white",
        "axes.facecolor": "white",
        "axes.edgecolor": "#333333",
        "axes.labelcolor": "#333333",
        "text.color": "#333333",
        "xtick.color": "#333333",
        "ytick.color": "#333333",
        "legend.frameon": False,
    }

    if style == "paper":
        style_params = {
            "font.size": 10 * font_scale,
            "axes.titlesize": 11 * font_scale,
            "xtick.labelsize": 8 * font_scale,
            "ytick.labelsize": 8 * font_scale,
            "legend.fontsize": 8 * font_scale,
            "savefig.dpi": 300,
        }
        context = "paper"
    elif style == "presentation":
        style_params = {
            "font.size": 14 * font_scale,
            "axes.titlesize": 18 * font_scale,
            "xtick.labelsize": 12 * font_scale,
            "ytick.labelsize": 12 * font_scale,
            "legend.fontsize": 12 * font_scale,
            "savefig.dpi": 150,
        }
        context = "talk"
    else:  # notebook
        style_params = {
            "font.size": 11 * font_scale,
            "axes.titlesize": 12 * font_scale,
            "xtick.labelsize": 10 * font_scale,
            "ytick.labelsize": 10 * font_scale,
            "legend.fontsize": 10 * font_scale,
            "savefig.dpi": 150,
        }
        context = "notebook"

    # No grid over the heatmap cells
    sns.set_theme(style="white", context=context, font_scale=font_scale)

    plt.rcParams.update({**base_params, **style_params})

    return palette
