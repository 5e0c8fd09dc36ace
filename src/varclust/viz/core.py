"""
Core visualization primitive: the Figure wrapper.

Wraps a matplotlib figure with a title, a description and run metadata, and
owns the figure's lifetime: saving goes through a scoped output target and
always releases the figure afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional
from datetime import datetime

import matplotlib.figure
import matplotlib.pyplot as plt

from varclust.utils.fileio import atomic_output

OutputFormat = Literal["png", "pdf", "svg"]


@dataclass
class Figure:
    """
    Wrapper around a matplotlib figure.

    Attributes
    ----------
    fig : matplotlib.figure.Figure
        The underlying figure object
    title : str
        Human-readable title for the figure
    description : str
        Longer description explaining what the figure shows
    metadata : dict
        Additional metadata (creation time, parameters used, etc.)

    Examples
    --------
    >>> fig = Figure(
    ...     fig=plt.figure(),
    ...     title="Clustered heatmap",
    ...     description="Top-quartile variance genes, row z-scores",
    ... )
    >>> fig.save("plots/heatmap.png")
    """
    fig: matplotlib.figure.Figure
    title: str
    description: str = ""
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if "created_at" not in self.metadata:
            self.metadata["created_at"] = datetime.now().isoformat()

    @property
    def is_open(self) -> bool:
        """Whether the figure is still registered with pyplot."""
        return plt.fignum_exists(self.fig.number)

    def save(
        self,
        path: Path | str,
        format: Optional[OutputFormat] = None,
        dpi: int = 300,
        close: bool = True,
        **kwargs
    ) -> Path:
        """
        Save figure to file.

        The image is rendered into a temporary file next to ``path`` and moved
        into place only after rendering completed, so a failed render never
        leaves a truncated image behind.

        Parameters
        ----------
        path : Path or str
            Output file path. Format inferred from extension if not specified.
        format : str, optional
            Output format. If None, inferred from path extension.
        dpi : int, default 300
            DPI for raster formats. Ignored for vector formats.
        close : bool, default True
            Close the figure afterwards, whether or not saving succeeded.
        **kwargs
            Additional arguments passed to ``savefig``.

        Returns
        -------
        Path
            The path where the figure was saved.
        """
        path = Path(path)

        if format is None:
            format = path.suffix.lstrip(".").lower()
            if format not in ("png", "pdf", "svg"):
                format = "png"

        path.parent.mkdir(parents=True, exist_ok=True)

        save_kwargs = {
            "dpi": dpi,
            "bbox_inches": "tight",
            "facecolor": "white",
            **kwargs
        }

        try:
            with atomic_output(path, "wb") as fh:
                self.fig.savefig(fh, format=format, **save_kwargs)
        finally:
            if close:
                self.close()

        return path

    def close(self):
        """Close the figure to free memory."""
        plt.close(self.fig)
