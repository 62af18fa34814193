"""Tests for raw and tidy result transformers."""

import pytest

from conftest import QUARTER_LEVEL, measure, time_member
from libs.olap_query.cellset import Axis, AxisName, Cell, CellSet, Level, Position
from libs.olap_query.transform import (
    CellSetProjection,
    ResultTransformationError,
    TidyProjection,
    select_transformer,
)


class TestSelectTransformer:
    """Transformer selection by request flags."""

    def test_raw_when_tidy_disabled(self):
        transformer = select_transformer(False, simplify_names=True)
        assert isinstance(transformer, CellSetProjection)
        assert transformer.get_transformer_name() == "raw"

    def test_tidy_when_enabled(self):
        transformer = select_transformer(
            True, simplify_names=True, level_name_translation_map={"Year": "FY"}
        )
        assert isinstance(transformer, TidyProjection)
        assert transformer.simplify_names is True
        assert transformer.level_name_translation_map == {"Year": "FY"}


class TestCellSetProjection:
    """Raw projection shape."""

    def test_structure(self, sales_cell_set):
        result = CellSetProjection().transform(sales_cell_set)

        assert set(result) == {"axes", "filterAxis", "cells"}
        assert [axis["name"] for axis in result["axes"]] == ["COLUMNS", "ROWS"]
        assert result["filterAxis"] is None
        assert len(result["cells"]) == 4

    def test_member_fields(self, sales_cell_set):
        result = CellSetProjection().transform(sales_cell_set)
        q1 = result["axes"][1]["positions"][0]["members"][0]

        assert q1 == {
            "name": "Q1",
            "uniqueName": "[Time].[1997].[Q1]",
            "caption": "Q1",
            "levelName": "Quarter",
            "levelUniqueName": "[Time].[Quarter]",
            "levelDepth": 2,
            "hierarchyName": "Time",
            "dimensionName": "Time",
            "memberType": "regular",
            "parentUniqueName": "[Time].[1997]",
        }

    def test_cells_keep_ordinal_order(self, sales_cell_set):
        cells = CellSetProjection().transform(sales_cell_set)["cells"]

        assert [cell["ordinal"] for cell in cells] == [0, 1, 2, 3]
        assert cells[3] == {
            "ordinal": 3,
            "coordinates": [1, 1],
            "value": 270.25,
            "formattedValue": "270.25",
            "error": False,
        }


class TestTidyProjection:
    """Tidy projection rows and columns."""

    def test_one_row_per_cell(self, sales_cell_set):
        rows = TidyProjection().transform(sales_cell_set)["values"]
        assert len(rows) == sales_cell_set.cell_count

    def test_level_columns_and_values(self, sales_cell_set):
        rows = TidyProjection().transform(sales_cell_set)["values"]

        assert rows[0] == {
            "[Measures].[Unit Sales]": 100,
            "[Time].[Year]": "[Time].[1997]",
            "[Time].[Quarter]": "[Time].[1997].[Q1]",
        }
        assert rows[3] == {
            "[Measures].[Store Sales]": 270.25,
            "[Time].[Year]": "[Time].[1997]",
            "[Time].[Quarter]": "[Time].[1997].[Q2]",
        }

        level_columns = {key for row in rows for key in row} - {
            "[Measures].[Unit Sales]",
            "[Measures].[Store Sales]",
        }
        assert level_columns == {"[Time].[Year]", "[Time].[Quarter]"}

    def test_simplified_names(self, sales_cell_set):
        rows = TidyProjection(simplify_names=True).transform(sales_cell_set)["values"]

        assert rows[1] == {"Store Sales": 250.5, "Year": "1997", "Quarter": "Q1"}

    def test_translation_map_renames_level_column(self, sales_cell_set):
        transformer = TidyProjection(
            simplify_names=True, level_name_translation_map={"Year": "FY"}
        )
        rows = transformer.transform(sales_cell_set)["values"]

        assert all("FY" in row and "Year" not in row for row in rows)
        assert rows[0]["FY"] == "1997"

    def test_translation_map_matches_unique_level_name(self, sales_cell_set):
        transformer = TidyProjection(
            level_name_translation_map={"[Time].[Quarter]": "Quarter"}
        )
        rows = transformer.transform(sales_cell_set)["values"]
        assert rows[0]["Quarter"] == "[Time].[1997].[Q1]"

    def test_value_column_without_measures(self):
        year = time_member("1997", Level(name="Year", unique_name="[Time].[Year]"))
        axis = Axis(
            ordinal=0,
            name=AxisName.ROWS,
            positions=(Position(ordinal=0, members=(year,)),),
        )
        cell_set = CellSet(axes=(axis,), cells=(Cell(ordinal=0, value=7),))

        rows = TidyProjection(simplify_names=True).transform(cell_set)["values"]
        assert rows == [{"Year": "1997", "Value": 7}]

    def test_level_renamed_to_value_column_is_rejected(self):
        year = time_member("1997", Level(name="Year", unique_name="[Time].[Year]"))
        axis = Axis(
            ordinal=0,
            name=AxisName.ROWS,
            positions=(Position(ordinal=0, members=(year,)),),
        )
        cell_set = CellSet(axes=(axis,), cells=(Cell(ordinal=0, value=7),))
        transformer = TidyProjection(level_name_translation_map={"Year": "Value"})

        with pytest.raises(ResultTransformationError, match="'Value'"):
            transformer.transform(cell_set)

    def test_column_collision_is_rejected(self):
        other_quarter = Level(name="Quarter", unique_name="[Fiscal].[Quarter]")
        q1 = time_member("Q1", QUARTER_LEVEL)
        fq1 = time_member("FQ1", other_quarter)
        axis = Axis(
            ordinal=0,
            name=AxisName.ROWS,
            positions=(Position(ordinal=0, members=(q1, fq1)),),
        )
        columns = Axis(
            ordinal=1,
            name=AxisName.COLUMNS,
            positions=(Position(ordinal=0, members=(measure("Unit Sales"),)),),
        )
        cell_set = CellSet(axes=(axis, columns), cells=(Cell(ordinal=0, value=1),))

        with pytest.raises(ResultTransformationError, match="Quarter"):
            TidyProjection(simplify_names=True).transform(cell_set)

        # Fully qualified names keep the levels apart
        rows = TidyProjection().transform(cell_set)["values"]
        assert rows[0]["[Fiscal].[Quarter]"] == "[Time].[FQ1]"

    def test_deterministic_output(self, sales_cell_set):
        transformer = TidyProjection(simplify_names=True)
        first = transformer.transform(sales_cell_set)
        second = transformer.transform(sales_cell_set)

        assert first == second
        assert [list(row) for row in first["values"]] == [
            list(row) for row in second["values"]
        ]
