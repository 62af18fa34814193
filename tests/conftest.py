"""Pytest configuration and shared fixtures."""

import asyncio

import pytest

from libs.olap_query.cache import ResultCache
from libs.olap_query.cellset import (
    Axis,
    AxisName,
    Cell,
    CellSet,
    Level,
    Member,
    MemberType,
    Position,
)
from libs.olap_query.connections.base import ConnectionDefinition, OlapSession
from libs.olap_query.connections.registry import ConnectionRegistry
from libs.olap_query.service import QueryService

YEAR_LEVEL = Level(name="Year", unique_name="[Time].[Year]", depth=1)
QUARTER_LEVEL = Level(name="Quarter", unique_name="[Time].[Quarter]", depth=2)
MEASURES_LEVEL = Level(name="MeasuresLevel", unique_name="[Measures].[MeasuresLevel]")


def time_member(name: str, level: Level, parent: Member | None = None) -> Member:
    unique_name = f"{parent.unique_name}.[{name}]" if parent else f"[Time].[{name}]"
    return Member(
        name=name,
        unique_name=unique_name,
        caption=name,
        level=level,
        hierarchy_name="Time",
        dimension_name="Time",
        parent=parent,
    )


def measure(name: str) -> Member:
    return Member(
        name=name,
        unique_name=f"[Measures].[{name}]",
        caption=name,
        level=MEASURES_LEVEL,
        hierarchy_name="Measures",
        dimension_name="Measures",
        member_type=MemberType.MEASURE,
    )


def build_sales_cell_set() -> CellSet:
    """Unit/Store Sales on columns by 1997 quarters on rows."""
    year = time_member("1997", YEAR_LEVEL)
    q1 = time_member("Q1", QUARTER_LEVEL, year)
    q2 = time_member("Q2", QUARTER_LEVEL, year)

    columns = Axis(
        ordinal=0,
        name=AxisName.COLUMNS,
        positions=(
            Position(ordinal=0, members=(measure("Unit Sales"),)),
            Position(ordinal=1, members=(measure("Store Sales"),)),
        ),
    )
    rows = Axis(
        ordinal=1,
        name=AxisName.ROWS,
        positions=(
            Position(ordinal=0, members=(q1,)),
            Position(ordinal=1, members=(q2,)),
        ),
    )
    cells = (
        Cell(ordinal=0, value=100, formatted_value="100"),
        Cell(ordinal=1, value=250.5, formatted_value="250.50"),
        Cell(ordinal=2, value=110, formatted_value="110"),
        Cell(ordinal=3, value=270.25, formatted_value="270.25"),
    )
    return CellSet(axes=(columns, rows), cells=cells)


class FakeSession(OlapSession):
    """In-memory session returning canned results, like a mock connector."""

    def __init__(self, definition: ConnectionDefinition):
        super().__init__(definition)
        self.results: list[CellSet] = []
        self.error: BaseException | None = None
        self.executed: list[str] = []
        self.closed = False

    async def execute_olap_query(self, query: str) -> CellSet:
        self.executed.append(query)
        result = self.results.pop(0) if self.results else build_sales_cell_set()
        # Yield so concurrent requests interleave
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return result

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def sales_cell_set():
    return build_sales_cell_set()


@pytest.fixture
def connection_definition():
    return ConnectionDefinition(
        name="FoodMart",
        driver="fake",
        description="FoodMart sample",
        connection_string="fake://foodmart",
        schema_content='<Schema name="FoodMart">\\n  <Cube name="Sales"/>\\n</Schema>',
        is_demo=True,
    )


@pytest.fixture
def registry(connection_definition):
    registry = ConnectionRegistry()
    registry.register_driver("fake", FakeSession)
    registry.register(connection_definition)
    return registry


@pytest.fixture
def fake_session(registry) -> FakeSession:
    return registry.get("FoodMart").session


@pytest.fixture
def result_cache():
    return ResultCache()


@pytest.fixture
def query_service(registry, result_cache):
    return QueryService(registry, result_cache)
