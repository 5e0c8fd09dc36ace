"""Utility modules for the analysis."""

from varclust.utils.fileio import atomic_output

__all__ = [
    # Atomic file-write utilities
    'atomic_output',
]
