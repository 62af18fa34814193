"""
Cell set structures returned by OLAP engines.

This module defines the immutable, engine-neutral representation of an
executed multidimensional query: axes of positions, positions of members,
and a grid of cells addressed by axis coordinates.
"""

from collections.abc import Iterator
from enum import Enum
from math import prod
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class MemberType(str, Enum):
    """Kinds of hierarchy members an engine can return."""

    REGULAR = "regular"
    ALL = "all"
    MEASURE = "measure"
    FORMULA = "formula"
    UNKNOWN = "unknown"


class AxisName(str, Enum):
    """Standard MDX axis names."""

    COLUMNS = "COLUMNS"
    ROWS = "ROWS"
    PAGES = "PAGES"
    CHAPTERS = "CHAPTERS"
    SECTIONS = "SECTIONS"
    FILTER = "FILTER"


class Level(BaseModel):
    """A level of a hierarchy (e.g. ``[Time].[Year]``)."""

    model_config = ConfigDict(frozen=True)

    name: str
    unique_name: str
    depth: int = 0
    is_all: bool = False


class Member(BaseModel):
    """A member of a hierarchy, with its ancestor chain."""

    model_config = ConfigDict(frozen=True)

    name: str
    unique_name: str
    caption: str | None = None
    level: Level
    hierarchy_name: str
    dimension_name: str
    member_type: MemberType = MemberType.REGULAR
    parent: "Member | None" = None

    def is_measure(self) -> bool:
        """Check if this member belongs to the measures dimension."""
        return self.member_type == MemberType.MEASURE

    def is_all(self) -> bool:
        """Check if this is the 'all' member of its hierarchy."""
        return self.member_type == MemberType.ALL or self.level.is_all

    def ancestors(self) -> list["Member"]:
        """Get non-'all' ancestors, outermost first."""
        chain = []
        parent = self.parent
        while parent is not None and not parent.is_all():
            chain.append(parent)
            parent = parent.parent
        chain.reverse()
        return chain


Member.model_rebuild()


class Position(BaseModel):
    """A tuple of members at one ordinal of an axis."""

    model_config = ConfigDict(frozen=True)

    ordinal: int
    members: tuple[Member, ...] = ()


class Axis(BaseModel):
    """An ordered sequence of positions."""

    model_config = ConfigDict(frozen=True)

    ordinal: int
    name: AxisName
    positions: tuple[Position, ...] = ()

    @property
    def size(self) -> int:
        return len(self.positions)


class Cell(BaseModel):
    """A single cell value addressed by its ordinal."""

    model_config = ConfigDict(frozen=True)

    ordinal: int
    value: Any = None
    formatted_value: str = ""
    error: bool = False


class CellSet(BaseModel):
    """
    Result of executing a multidimensional query.

    Cells are addressed by ordinal; axis 0 varies fastest, so the ordinal
    of coordinates ``(c0, c1, ...)`` is ``c0 + c1 * size0 + c2 * size0 *
    size1 + ...``. Engines may omit empty cells, which ``iter_cells``
    fills back in.
    """

    model_config = ConfigDict(frozen=True)

    axes: tuple[Axis, ...] = ()
    filter_axis: Axis | None = None
    cells: tuple[Cell, ...] = ()

    @model_validator(mode="after")
    def validate_cells(self) -> "CellSet":
        """Reject cells whose ordinals fall outside the grid or repeat."""
        count = self.cell_count
        seen: set[int] = set()
        for cell in self.cells:
            if not 0 <= cell.ordinal < count:
                raise ValueError(
                    f"Cell ordinal {cell.ordinal} outside of cell set with {count} cells"
                )
            if cell.ordinal in seen:
                raise ValueError(f"Duplicate cell ordinal {cell.ordinal}")
            seen.add(cell.ordinal)
        return self

    @property
    def cell_count(self) -> int:
        """Number of addressable cells (product of axis sizes)."""
        return prod(axis.size for axis in self.axes)

    def coordinates_for(self, ordinal: int) -> list[int]:
        """Convert a cell ordinal into per-axis position ordinals."""
        if not 0 <= ordinal < self.cell_count:
            raise IndexError(f"Cell ordinal {ordinal} out of range")

        coordinates = []
        remainder = ordinal
        for axis in self.axes:
            coordinates.append(remainder % axis.size)
            remainder //= axis.size
        return coordinates

    def ordinal_for(self, coordinates: list[int]) -> int:
        """Convert per-axis position ordinals into a cell ordinal."""
        if len(coordinates) != len(self.axes):
            raise ValueError(
                f"Expected {len(self.axes)} coordinates, got {len(coordinates)}"
            )

        ordinal = 0
        multiplier = 1
        for axis, coordinate in zip(self.axes, coordinates):
            if not 0 <= coordinate < axis.size:
                raise IndexError(
                    f"Coordinate {coordinate} out of range for axis {axis.name.value}"
                )
            ordinal += coordinate * multiplier
            multiplier *= axis.size
        return ordinal

    def iter_cells(self) -> Iterator[Cell]:
        """Yield every cell in ordinal order, including empty ones."""
        by_ordinal = {cell.ordinal: cell for cell in self.cells}
        for ordinal in range(self.cell_count):
            yield by_ordinal.get(ordinal) or Cell(ordinal=ordinal)

    def positions_for(self, ordinal: int) -> list[Position]:
        """Get the position on each axis that addresses a cell."""
        return [
            axis.positions[coordinate]
            for axis, coordinate in zip(self.axes, self.coordinates_for(ordinal))
        ]
