"""
Base transformation framework for immutable matrix operations.

Transformations are pure: they take an ExpressionMatrix and return a new
one, leaving the input untouched. Parameters are recorded on the instance so
that every step of an analysis can be logged and reported.

Examples:
    >>> from varclust.core.matrix import ExpressionMatrix
    >>> from varclust.core.transform import Transform
    >>>
    >>> class Log2Transform(Transform):
    ...     def __init__(self, pseudocount: float = 1.0):
    ...         super().__init__(name="Log2Transform", params={"pseudocount": pseudocount})
    ...         self.pseudocount = pseudocount
    ...
    ...     def apply(self, matrix):
    ...         import numpy as np
    ...         return ExpressionMatrix(
    ...             np.log2(matrix.data + self.pseudocount),
    ...             matrix.gene_ids, matrix.sample_ids, matrix.sample_metadata,
    ...         )
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING
from datetime import datetime

if TYPE_CHECKING:
    from varclust.core.matrix import ExpressionMatrix

__all__ = ['Transform']


class Transform(ABC):
    """
    Abstract base class for matrix transformations.

    Attributes:
        name: Human-readable transformation name
        params: Parameters used for this transformation (JSON-serializable)
        timestamp: When this transform instance was created
    """

    def __init__(self, name: str, params: dict[str, Any]) -> None:
        self.name = name
        self.params = params
        self.timestamp = datetime.now()

    @abstractmethod
    def apply(self, matrix: ExpressionMatrix) -> ExpressionMatrix:
        """
        Execute transformation and return a new matrix.

        Must never modify the input matrix.
        """

    def validate(self, matrix: ExpressionMatrix) -> list[str]:
        """
        Check preconditions before applying the transformation.

        Subclasses should override and call super().validate() first.

        Returns:
            List of error messages (empty list = valid)
        """
        errors: list[str] = []

        if matrix.data.size == 0:
            errors.append("Cannot process empty matrix")

        return errors

    def __repr__(self) -> str:
        """
        String representation for logging.

        Examples:
            >>> print(VarianceFilter(quantile=0.75))
            VarianceFilter(quantile=0.75)
        """
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"
