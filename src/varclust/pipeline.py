"""
The analysis run: load, filter, annotate, render.

One linear pass:

    load_dataset ─► VarianceFilter ─► write filtered TSV
         │                                   │
         └─► MutationAnnotator ──────► HeatmapRenderer ─► write PNG

Output directories are created up front. Nothing is written when the
inputs do not align or no gene survives the variance filter.

Examples:
    >>> from pathlib import Path
    >>> from varclust.pipeline import AnalysisConfig, run_analysis
    >>>
    >>> config = AnalysisConfig(
    ...     expression=Path("data/SRP070849/SRP070849.tsv"),
    ...     metadata=Path("data/SRP070849/metadata_SRP070849.tsv"),
    ... )
    >>> result = run_analysis(config)
    >>> result.heatmap_path
    PosixPath('plots/SRP070849_heatmap.png')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import numpy as np
import pandas as pd

from varclust.core.errors import EmptyResultError
from varclust.core.matrix import ExpressionMatrix
from varclust.io.formats import DataFormat
from varclust.io.loaders import load_dataset
from varclust.io.metadata import MUTATION_PREFIXES, MutationAnnotator
from varclust.io.writers import write_tsv_matrix
from varclust.quality.filtering import VarianceFilter, VarianceFilterResult
from varclust.viz.heatmap import HeatmapRenderer, HeatmapResult

logger = logging.getLogger(__name__)

__all__ = ['AnalysisConfig', 'AnalysisResult', 'run_analysis', 'prepare_output_dirs']


@dataclass
class AnalysisConfig:
    """
    Everything one analysis run needs.

    Output files are named after ``stem`` (default: the expression file's
    stem): ``<results_dir>/<stem>_filtered.tsv`` and
    ``<plots_dir>/<stem>_heatmap.png``. Relative ``data_dir``, ``plots_dir``
    and ``results_dir`` are resolved against ``output_dir``.
    """
    expression: Path
    metadata: Path
    output_dir: Path = Path(".")
    data_dir: Path = Path("data")
    plots_dir: Path = Path("plots")
    results_dir: Path = Path("results")
    stem: Optional[str] = None
    quantile: float = 0.75
    mutation_prefixes: List[str] = field(default_factory=lambda: list(MUTATION_PREFIXES))
    cluster_method: str = "complete"
    cluster_metric: str = "euclidean"
    n_colors: int = 25
    dpi: int = 300
    style: str = "paper"
    palette: str = "default"
    title: str = "Annotated Heatmap"
    seed: int = 12345
    data_format: DataFormat = field(default_factory=DataFormat)

    def __post_init__(self):
        for name in ('expression', 'metadata', 'output_dir', 'data_dir',
                     'plots_dir', 'results_dir'):
            setattr(self, name, Path(getattr(self, name)))
        if not 0 <= self.quantile < 1:
            raise ValueError(f"quantile must be in [0, 1), got {self.quantile}")
        if self.n_colors < 3:
            raise ValueError(f"n_colors must be at least 3, got {self.n_colors}")
        if self.dpi <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")

    @property
    def output_stem(self) -> str:
        return self.stem or self.expression.stem

    def _resolve(self, directory: Path) -> Path:
        return directory if directory.is_absolute() else self.output_dir / directory

    @property
    def output_dirs(self) -> list[Path]:
        """data, plots and results directories."""
        return [self._resolve(d) for d in (self.data_dir, self.plots_dir, self.results_dir)]

    @property
    def filtered_path(self) -> Path:
        return self._resolve(self.results_dir) / f"{self.output_stem}_filtered.tsv"

    @property
    def heatmap_path(self) -> Path:
        return self._resolve(self.plots_dir) / f"{self.output_stem}_heatmap.png"


@dataclass
class AnalysisResult:
    """Intermediate tables and output paths of one run."""
    matrix: ExpressionMatrix
    filter_result: VarianceFilterResult
    filtered: ExpressionMatrix
    annotations: pd.DataFrame
    heatmap: HeatmapResult
    filtered_path: Path
    heatmap_path: Path


def prepare_output_dirs(config: AnalysisConfig) -> list[Path]:
    """Create the data, plots and results directories (idempotent)."""
    for directory in config.output_dirs:
        directory.mkdir(parents=True, exist_ok=True)
    return config.output_dirs


def run_analysis(config: AnalysisConfig) -> AnalysisResult:
    """
    Run the full analysis described by ``config``.

    Raises:
        FileNotFoundError: If an input file is missing
        ValueError: If an input file is malformed
        AlignmentMismatchError: If matrix columns and metadata accessions differ
        EmptyResultError: If no gene passes the variance filter
        OSError: If an output cannot be written
    """
    np.random.seed(config.seed)
    prepare_output_dirs(config)

    fmt = config.data_format

    # 1. Load and align
    matrix = load_dataset(config.expression, config.metadata, fmt)

    # 2. Variance filter
    vfilter = VarianceFilter(quantile=config.quantile)
    for problem in vfilter.validate(matrix):
        logger.warning(f"{vfilter.name}: {problem}")
    filter_result = vfilter.compute(matrix)
    filtered = matrix.select_features(filter_result.keep_mask)
    logger.info(
        f"Kept {filter_result.n_passed}/{matrix.n_features} genes with variance > "
        f"{filter_result.threshold:.4g} ({config.quantile:.0%} quantile)"
    )

    if filtered.n_features == 0:
        raise EmptyResultError(
            f"No genes passed the variance filter ({matrix.n_features} input genes, "
            f"threshold {filter_result.threshold:.4g}); nothing to cluster"
        )

    filtered_path = write_tsv_matrix(filtered, config.filtered_path, fmt)

    # 3. Annotations
    annotator = MutationAnnotator(prefixes=tuple(config.mutation_prefixes))
    annotations = annotator.build(filtered.sample_metadata, fmt)

    # 4. Heatmap
    renderer = HeatmapRenderer(
        palette=config.palette,
        style=config.style,
        method=config.cluster_method,
        metric=config.cluster_metric,
        n_colors=config.n_colors,
    )
    heatmap = renderer.render(filtered, annotations, title=config.title)
    heatmap_path = heatmap.save(config.heatmap_path, dpi=config.dpi)

    return AnalysisResult(
        matrix=matrix,
        filter_result=filter_result,
        filtered=filtered,
        annotations=annotations,
        heatmap=heatmap,
        filtered_path=filtered_path,
        heatmap_path=heatmap_path,
    )
