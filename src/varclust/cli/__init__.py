"""
varclust CLI - variance-filtered, clustered expression heatmaps.

Commands:
    varclust run   - Filter high-variance genes and render the annotated heatmap
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for varclust."""
    from varclust import __version__

    parser = argparse.ArgumentParser(
        prog="varclust",
        description="Variance-filtered, clustered heatmaps of RNA-seq expression data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run           Filter high-variance genes and render the annotated heatmap

Examples:
  varclust run --expression data/SRP070849/SRP070849.tsv --metadata data/SRP070849/metadata_SRP070849.tsv
  varclust run --config analysis.yaml
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from varclust.cli import run
    run.register_parser(subparsers)

    raw_args = list(args) if args is not None else sys.argv[1:]
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    return parsed_args.func(parsed_args, raw_args)


if __name__ == "__main__":
    sys.exit(main())
