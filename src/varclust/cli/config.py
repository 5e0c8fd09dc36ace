"""
Configuration file support for the varclust CLI.

Supports YAML and JSON config files with CLI argument override.

Example config (YAML)::

    expression: data/SRP070849/SRP070849.tsv
    metadata: data/SRP070849/metadata_SRP070849.tsv
    output_dir: .
    filter:
      quantile: 0.75
    annotation:
      prefixes: [TET2, IDH2, WT]
    clustering:
      method: complete
      metric: euclidean
    plot:
      n_colors: 25
      dpi: 300
      style: paper
      palette: default
    columns:
      gene: Gene
      accession: refinebio_accession_code
      title: refinebio_title
      treatment: refinebio_treatment
    seed: 12345
"""

import json
from argparse import SUPPRESS, ArgumentParser, Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

# config section -> {config key: argparse dest}
SECTION_MAPPINGS: Dict[Optional[str], Dict[str, str]] = {
    None: {
        'expression': 'expression',
        'metadata': 'metadata',
        'output_dir': 'output_dir',
        'stem': 'stem',
        'seed': 'seed',
    },
    'filter': {'quantile': 'quantile'},
    'annotation': {'prefixes': 'prefixes'},
    'clustering': {'method': 'method', 'metric': 'metric'},
    'plot': {
        'n_colors': 'n_colors',
        'dpi': 'dpi',
        'style': 'style',
        'palette': 'palette',
        'title': 'title',
    },
    'columns': {
        'gene': 'gene_column',
        'accession': 'accession_column',
        'title': 'title_column',
        'treatment': 'treatment_column',
    },
}

PATH_ARGS = ('expression', 'metadata', 'output_dir')

VALID_METHODS = ['single', 'complete', 'average', 'weighted', 'centroid', 'median', 'ward']
VALID_STYLES = ['paper', 'presentation', 'notebook']


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("analysis.yaml"))
        >>> print(config['filter']['quantile'])
        0.75
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            else:
                config = json.load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If configuration is invalid
    """
    known_top = set(SECTION_MAPPINGS[None]) | {s for s in SECTION_MAPPINGS if s}
    unknown = sorted(set(config) - known_top)
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")

    for section, mapping in SECTION_MAPPINGS.items():
        if section is None or section not in config:
            continue
        values = config[section]
        if not isinstance(values, dict):
            raise ValueError(f"Config section '{section}' must be a mapping")
        unknown = sorted(set(values) - set(mapping))
        if unknown:
            raise ValueError(f"Unknown keys in config section '{section}': {unknown}")

    quantile = config.get('filter', {}).get('quantile')
    if quantile is not None:
        if not isinstance(quantile, (int, float)) or not 0 <= quantile < 1:
            raise ValueError(f"filter.quantile must be a number in [0, 1), got: {quantile}")

    method = config.get('clustering', {}).get('method')
    if method is not None and method not in VALID_METHODS:
        raise ValueError(
            f"Invalid clustering method '{method}'. "
            f"Choose from: {', '.join(VALID_METHODS)}"
        )

    plot = config.get('plot', {})
    if 'n_colors' in plot and (not isinstance(plot['n_colors'], int) or plot['n_colors'] < 3):
        raise ValueError(f"plot.n_colors must be an integer >= 3, got: {plot['n_colors']}")
    if 'dpi' in plot and (not isinstance(plot['dpi'], int) or plot['dpi'] <= 0):
        raise ValueError(f"plot.dpi must be a positive integer, got: {plot['dpi']}")
    if 'style' in plot and plot['style'] not in VALID_STYLES:
        raise ValueError(
            f"Invalid plot style '{plot['style']}'. Choose from: {', '.join(VALID_STYLES)}"
        )

    prefixes = config.get('annotation', {}).get('prefixes')
    if prefixes is not None:
        if not isinstance(prefixes, list) or not all(isinstance(p, str) for p in prefixes):
            raise ValueError(f"annotation.prefixes must be a list of strings, got: {prefixes}")


def explicit_dests(parser: ArgumentParser, argv: List[str]) -> Set[str]:
    """
    Destinations of the options actually given in ``argv``.

    ``argv`` is parsed a second time with every default replaced by a
    sentinel, so argparse itself resolves abbreviated long options
    (``--quant 0.9``), attached short values (``-q0.9``) and ``--opt=value``.

    Parameters:
        parser: Parser defining the command's options (e.g. run.build_parser())
        argv: Arguments for that parser (without the subcommand name)

    Examples:
        >>> explicit_dests(parser, ["-q0.9", "--config", "analysis.yaml"])
        {'quantile', 'config'}
    """
    unset = object()
    namespace = Namespace(**{
        action.dest: unset
        for action in parser._actions
        if action.dest != SUPPRESS
    })
    parsed, _ = parser.parse_known_args(argv, namespace=namespace)
    return {dest for dest, value in vars(parsed).items() if value is not unset}


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


def merge_config_with_args(
    config: Dict[str, Any],
    args: Namespace,
    explicit_args: Optional[Set[str]] = None,
) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        explicit_args: Destinations given on the command line, as returned
                       by explicit_dests(). If None, assumes all args are
                       defaults

    Returns:
        Updated Namespace with merged values
    """
    explicit_args = explicit_args or set()
    merged = Namespace(**vars(args))

    for section, mapping in SECTION_MAPPINGS.items():
        values = config if section is None else config.get(section, {})
        for config_key, arg_name in mapping.items():
            if config_key not in values:
                continue
            config_value = values[config_key]
            if config_value is not None and arg_name in PATH_ARGS:
                config_value = Path(config_value)
            setattr(merged, arg_name, _merge_value(
                getattr(merged, arg_name, None),
                config_value,
                arg_name in explicit_args,
            ))

    return merged
