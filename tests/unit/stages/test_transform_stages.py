"""Unit tests for in-memory transform stages."""

from __future__ import annotations

import pytest

from laakhay.pipeline.models import Page, Record
from laakhay.pipeline.stages import FilterStage, MapStage, Stager, ValidateStage, stage_name


def make_page() -> Page:
    page = Page(number=2, total_rows=4, offset=4, index_field="id")
    page.rows.extend(Record(values=(i, i * 10)) for i in range(4, 8))
    return page


class TestTransformStages:
    """Test MapStage, FilterStage and ValidateStage."""

    def test_stages_satisfy_protocol(self):
        for stage in (MapStage(str), FilterStage(bool), ValidateStage(bool)):
            assert isinstance(stage, Stager)

    def test_map_stage(self):
        page = make_page()
        MapStage(lambda r: r.pack([r.values[0], r.values[1] + 1])).query_page(page)

        assert [r.values for r in page.rows] == [(4, 41), (5, 51), (6, 61), (7, 71)]

    def test_filter_stage(self):
        page = make_page()
        FilterStage(lambda r: r.values[0] % 2 == 1).query_page(page)

        assert [r.values[0] for r in page.rows] == [5, 7]

    def test_validate_stage_passes(self):
        page = make_page()
        ValidateStage(lambda r: r.values[1] >= 40).query_page(page)

        assert len(page.rows) == 4

    def test_validate_stage_fails(self):
        page = make_page()

        with pytest.raises(ValueError, match=r"negative price \(page 2, rows \[0, 1\]\)"):
            ValidateStage(lambda r: r.values[0] > 5, "negative price").query_page(page)

    def test_paginate_query(self):
        page = make_page()

        assert MapStage(str).paginate_query(page) == "page=2&limit=4&offset=4&order_by=id"

    def test_stage_names(self):
        def normalize(row):
            return row

        assert stage_name(MapStage(normalize)) == "map:normalize"
        assert stage_name(FilterStage(bool, name="keep")) == "keep"
        assert stage_name(object()) == "object"
