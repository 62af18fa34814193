"""
Tidy projection of a cell set.

Flattens the grid into one row per cell. Each row names, for every axis
member addressing the cell, the member at each level of its hierarchy
(outermost non-"all" ancestor first), plus the cell value under the
measure's column.
"""

from collections.abc import Mapping
from typing import Any

from ..cellset import CellSet, Member
from .base import ResultTransformationError, ResultTransformer

DEFAULT_VALUE_COLUMN = "Value"
CELL_VALUE_SOURCE = "cell value"


class TidyProjection(ResultTransformer):
    """One-row-per-cell denormalization of a cell set."""

    def __init__(
        self,
        simplify_names: bool = False,
        level_name_translation_map: Mapping[str, str] | None = None,
    ):
        """
        Initialize the tidy projection.

        Args:
            simplify_names: Use leaf level and member names instead of
                fully qualified unique names
            level_name_translation_map: Column renames; keys match either
                the level's name or its unique name
        """
        self.simplify_names = simplify_names
        self.level_name_translation_map = dict(level_name_translation_map or {})

    def transform(self, cell_set: CellSet) -> dict[str, Any]:
        rows = []
        for cell in cell_set.iter_cells():
            row: dict[str, Any] = {}
            sources: dict[str, str] = {}
            measure_found = False

            for position in cell_set.positions_for(cell.ordinal):
                for member in position.members:
                    if member.is_measure():
                        self._set(
                            row,
                            sources,
                            self._name(member),
                            cell.value,
                            member.level.unique_name,
                        )
                        measure_found = True
                        continue
                    for level_member in [*member.ancestors(), member]:
                        self._set(
                            row,
                            sources,
                            self._column(level_member),
                            self._name(level_member),
                            level_member.level.unique_name,
                        )

            if not measure_found:
                self._set(
                    row, sources, DEFAULT_VALUE_COLUMN, cell.value, CELL_VALUE_SOURCE
                )
            rows.append(row)

        return {"values": rows}

    def get_transformer_name(self) -> str:
        return "tidy"

    def _name(self, member: Member) -> str:
        return member.name if self.simplify_names else member.unique_name

    def _column(self, member: Member) -> str:
        level = member.level
        column = level.name if self.simplify_names else level.unique_name
        translations = self.level_name_translation_map
        if column in translations:
            return translations[column]
        return translations.get(level.name, column)

    @staticmethod
    def _set(
        row: dict[str, Any],
        sources: dict[str, str],
        column: str,
        value: Any,
        source: str,
    ) -> None:
        existing = sources.get(column)
        if existing is not None and existing != source:
            raise ResultTransformationError(
                f"Tidy column '{column}' is produced by both {existing} and "
                f"{source}; translate one of the level names or disable "
                "simplifyNames"
            )
        sources[column] = source
        row[column] = value
