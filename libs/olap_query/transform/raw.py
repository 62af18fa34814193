"""Direct structural projection of a cell set."""

from typing import Any

from ..cellset import Axis, Cell, CellSet, Member
from .base import ResultTransformer


class CellSetProjection(ResultTransformer):
    """
    Raw projection: axes, positions, members and cells as returned by the
    engine, with axis and cell ordering preserved.
    """

    def transform(self, cell_set: CellSet) -> dict[str, Any]:
        return {
            "axes": [self._axis(axis) for axis in cell_set.axes],
            "filterAxis": (
                self._axis(cell_set.filter_axis)
                if cell_set.filter_axis is not None
                else None
            ),
            "cells": [self._cell(cell_set, cell) for cell in cell_set.iter_cells()],
        }

    def get_transformer_name(self) -> str:
        return "raw"

    def _axis(self, axis: Axis) -> dict[str, Any]:
        return {
            "ordinal": axis.ordinal,
            "name": axis.name.value,
            "positions": [
                {
                    "ordinal": position.ordinal,
                    "members": [self._member(m) for m in position.members],
                }
                for position in axis.positions
            ],
        }

    @staticmethod
    def _member(member: Member) -> dict[str, Any]:
        return {
            "name": member.name,
            "uniqueName": member.unique_name,
            "caption": member.caption,
            "levelName": member.level.name,
            "levelUniqueName": member.level.unique_name,
            "levelDepth": member.level.depth,
            "hierarchyName": member.hierarchy_name,
            "dimensionName": member.dimension_name,
            "memberType": member.member_type.value,
            "parentUniqueName": (
                member.parent.unique_name if member.parent is not None else None
            ),
        }

    @staticmethod
    def _cell(cell_set: CellSet, cell: Cell) -> dict[str, Any]:
        return {
            "ordinal": cell.ordinal,
            "coordinates": cell_set.coordinates_for(cell.ordinal),
            "value": cell.value,
            "formattedValue": cell.formatted_value,
            "error": cell.error,
        }
