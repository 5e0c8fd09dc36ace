"""
Run subcommand: the full variance-filter + clustered-heatmap analysis.

Usage:
    varclust run --expression data/SRP070849/SRP070849.tsv \\
                 --metadata data/SRP070849/metadata_SRP070849.tsv
    varclust run --config analysis.yaml --quantile 0.9
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from varclust.cli._validators import _color_bins, _positive_int, _quantile
from varclust.cli.config import (
    VALID_METHODS,
    VALID_STYLES,
    explicit_dests,
    load_config,
    merge_config_with_args,
    validate_config,
)
from varclust.core.errors import VarclustError
from varclust.io.formats import DataFormat
from varclust.io.metadata import MUTATION_PREFIXES

logger = logging.getLogger(__name__)

DESCRIPTION = """
Load an expression matrix and its sample metadata, keep the genes whose
variance is above the chosen quantile, write them to <results>/<stem>_filtered.tsv
and render a clustered heatmap annotated by mutation group and treatment to
<plots>/<stem>_heatmap.png.

Examples:
  varclust run -e data/SRP070849/SRP070849.tsv -m data/SRP070849/metadata_SRP070849.tsv
  varclust run --config analysis.yaml --dpi 150
        """


def register_parser(subparsers):
    """Register the run subcommand."""
    parser = subparsers.add_parser(
        "run",
        help="Filter high-variance genes and render the clustered heatmap",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESCRIPTION,
    )
    _add_arguments(parser)
    parser.set_defaults(func=run_command)


def build_parser() -> argparse.ArgumentParser:
    """Standalone parser with the same options as ``varclust run``."""
    parser = argparse.ArgumentParser(
        prog="varclust run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESCRIPTION,
    )
    _add_arguments(parser)
    return parser


def _add_arguments(parser: argparse.ArgumentParser) -> None:
    io_group = parser.add_argument_group("Input/output")
    io_group.add_argument(
        "--expression", "-e", type=Path,
        help="Expression matrix TSV (Gene column + one column per sample)"
    )
    io_group.add_argument(
        "--metadata", "-m", type=Path,
        help="Sample metadata TSV (accession code, title, treatment)"
    )
    io_group.add_argument(
        "--output-dir", "-o", type=Path, default=Path("."),
        help="Directory holding data/, plots/ and results/ (default: .)"
    )
    io_group.add_argument(
        "--stem", default=None,
        help="Output file name stem (default: expression file stem)"
    )
    io_group.add_argument(
        "--config", "-c", type=Path,
        help="YAML/JSON config file; explicit flags override its values"
    )

    analysis_group = parser.add_argument_group("Analysis")
    analysis_group.add_argument(
        "--quantile", "-q", type=_quantile, default=0.75,
        help="Variance quantile genes must exceed (default: 0.75)"
    )
    analysis_group.add_argument(
        "--prefixes", nargs="+", default=list(MUTATION_PREFIXES),
        help="Mutation title prefixes, checked in order (default: TET2 IDH2 WT)"
    )
    analysis_group.add_argument(
        "--method", choices=VALID_METHODS, default="complete",
        help="Linkage method for genes and samples (default: complete)"
    )
    analysis_group.add_argument(
        "--metric", default="euclidean",
        help="Distance metric for genes and samples (default: euclidean)"
    )
    analysis_group.add_argument(
        "--seed", type=int, default=12345,
        help="Random seed (default: 12345)"
    )

    plot_group = parser.add_argument_group("Plot")
    plot_group.add_argument(
        "--n-colors", type=_color_bins, default=25,
        help="Number of bins in the expression colormap (default: 25)"
    )
    plot_group.add_argument(
        "--dpi", type=_positive_int, default=300,
        help="DPI of the PNG (default: 300)"
    )
    plot_group.add_argument(
        "--style", choices=VALID_STYLES, default="paper",
        help="Visual style (default: paper)"
    )
    plot_group.add_argument(
        "--palette", choices=["default", "colorblind"], default="default",
        help="Color palette (default: default)"
    )
    plot_group.add_argument(
        "--title", default="Annotated Heatmap",
        help="Figure title"
    )

    columns_group = parser.add_argument_group("Columns")
    defaults = DataFormat()
    columns_group.add_argument("--gene-column", default=defaults.gene_column)
    columns_group.add_argument("--accession-column", default=defaults.accession_column)
    columns_group.add_argument("--title-column", default=defaults.title_column)
    columns_group.add_argument("--treatment-column", default=defaults.treatment_column)

    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Debug logging"
    )


def _command_argv(cli_args: List[str]) -> List[str]:
    """Arguments following the ``run`` subcommand name."""
    if "run" in cli_args:
        return cli_args[cli_args.index("run") + 1:]
    return cli_args


def run_command(args: argparse.Namespace, cli_args: Optional[List[str]] = None) -> int:
    """Execute the run subcommand."""
    from varclust.pipeline import AnalysisConfig, run_analysis

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        if args.config is not None:
            config = load_config(args.config)
            validate_config(config)
            argv = _command_argv(cli_args if cli_args is not None else sys.argv[1:])
            args = merge_config_with_args(
                config, args, explicit_dests(build_parser(), argv)
            )
            logger.info(f"Loaded config from {args.config}")

        if args.expression is None or args.metadata is None:
            logger.error("Both --expression and --metadata are required "
                         "(on the command line or in --config)")
            return 1

        analysis_config = AnalysisConfig(
            expression=args.expression,
            metadata=args.metadata,
            output_dir=args.output_dir,
            stem=args.stem,
            quantile=args.quantile,
            mutation_prefixes=list(args.prefixes),
            cluster_method=args.method,
            cluster_metric=args.metric,
            n_colors=args.n_colors,
            dpi=args.dpi,
            style=args.style,
            palette=args.palette,
            title=args.title,
            seed=args.seed,
            data_format=DataFormat(
                gene_column=args.gene_column,
                accession_column=args.accession_column,
                title_column=args.title_column,
                treatment_column=args.treatment_column,
            ),
        )

        result = run_analysis(analysis_config)
    except (VarclustError, FileNotFoundError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    logger.info(f"Filtered matrix: {result.filtered_path}")
    logger.info(f"Heatmap: {result.heatmap_path}")
    return 0
