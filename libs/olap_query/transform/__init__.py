"""Output shapes for executed cell sets."""

from .base import ResultTransformationError, ResultTransformer, select_transformer
from .raw import CellSetProjection
from .tidy import TidyProjection

__all__ = [
    "CellSetProjection",
    "ResultTransformationError",
    "ResultTransformer",
    "TidyProjection",
    "select_transformer",
]
