"""Shared argparse type validators for CLI parameter bounds checking.

These validators produce clear error messages when users pass invalid
values (e.g., ``--quantile 1.5``, ``--dpi -5``). They are intended to be
used as the ``type=`` argument in ``add_argument()``.
"""

from __future__ import annotations

import argparse


def _positive_int(value: str) -> int:
    """argparse type for positive integers (> 0)."""
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return ivalue


def _quantile(value: str) -> float:
    """argparse type for quantiles in the half-open interval [0, 1)."""
    fvalue = float(value)
    if not (0 <= fvalue < 1):
        raise argparse.ArgumentTypeError(
            f"{value} is not a valid quantile (must be in [0, 1))"
        )
    return fvalue


def _color_bins(value: str) -> int:
    """argparse type for the number of colormap bins (>= 3)."""
    ivalue = int(value)
    if ivalue < 3:
        raise argparse.ArgumentTypeError(f"{value} colors cannot hold a three-point scale")
    return ivalue
