"""
Exception types raised by the analysis.

Both analysis errors subclass ValueError so callers that already guard
against malformed input with ``except ValueError`` keep working.
"""

from __future__ import annotations

from typing import Iterable

__all__ = ['VarclustError', 'AlignmentMismatchError', 'EmptyResultError']


class VarclustError(Exception):
    """Base class for analysis errors."""


class AlignmentMismatchError(VarclustError, ValueError):
    """
    Expression matrix columns and metadata accession codes differ.

    Attributes:
        missing_in_matrix: Accession codes with no expression column
        missing_in_metadata: Expression columns with no metadata row
    """

    def __init__(
        self,
        message: str,
        missing_in_matrix: Iterable[str] = (),
        missing_in_metadata: Iterable[str] = (),
    ):
        super().__init__(message)
        self.missing_in_matrix = sorted(missing_in_matrix)
        self.missing_in_metadata = sorted(missing_in_metadata)


class EmptyResultError(VarclustError, ValueError):
    """No genes left to analyze (empty input or nothing passed the filter)."""
