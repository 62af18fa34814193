"""Result transformer interface and selection."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from ..cellset import CellSet


class ResultTransformationError(Exception):
    """Exception raised when a cell set cannot be transformed."""


class ResultTransformer(ABC):
    """
    Abstract base class for cell set output shapes.

    Transformers are pure: the same cell set and settings always produce
    an equal structure, so serialized output is byte-identical across
    requests.
    """

    @abstractmethod
    def transform(self, cell_set: CellSet) -> dict[str, Any]:
        """Convert a cell set into a JSON-serializable structure."""
        pass

    @abstractmethod
    def get_transformer_name(self) -> str:
        """Get the name of this output shape."""
        pass


def select_transformer(
    tidy: bool,
    simplify_names: bool = False,
    level_name_translation_map: Mapping[str, str] | None = None,
) -> ResultTransformer:
    """
    Pick the output shape for a request.

    Args:
        tidy: Produce the flattened one-row-per-cell form
        simplify_names: Use leaf names in tidy output
        level_name_translation_map: Tidy column renames keyed by level name

    Returns:
        ResultTransformer: Raw projection when ``tidy`` is false
    """
    from .raw import CellSetProjection
    from .tidy import TidyProjection

    if tidy:
        return TidyProjection(simplify_names, level_name_translation_map)
    return CellSetProjection()
