"""
Core data structures shared by every stage of the analysis.

1. ExpressionMatrix: genes × samples matrix with aligned sample metadata
2. Transform: Abstract base class for immutable matrix transformations
3. Errors: AlignmentMismatchError, EmptyResultError

Design Philosophy:
    - Immutability: All operations return new instances
    - Validation: Shapes and indices are checked on construction
    - Composability: Transforms chain into the analysis run
"""

from varclust.core.errors import AlignmentMismatchError, EmptyResultError, VarclustError
from varclust.core.matrix import ExpressionMatrix
from varclust.core.transform import Transform

__all__ = [
    'ExpressionMatrix',
    'Transform',
    'VarclustError',
    'AlignmentMismatchError',
    'EmptyResultError',
]
