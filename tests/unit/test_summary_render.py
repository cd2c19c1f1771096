from __future__ import annotations

from variation_import.models.results import ClassificationCounts, ImportResult, PreviewResult
from variation_import.services.summary import (
    render_import_summary,
    render_preview_summary,
    render_preview_table,
)


def _preview() -> PreviewResult:
    return PreviewResult(
        success=True,
        variations=[
            {
                "sku": "A-1",
                "price": 10.0,
                "attributes": {"Color": "Red", "Size": "M"},
                "row_number": 2,
                "errors": [],
                "status": "update",
                "existing_id": 5,
                "old_price": 9.0,
            },
            {
                "sku": None,
                "price": 0.0,
                "attributes": {"Color": "Blue", "Size": ""},
                "row_number": 3,
                "errors": ["Row 3: Invalid or missing price"],
                "status": "new",
                "existing_id": None,
                "old_price": None,
            },
        ],
        untouched=[{"existing_id": 6}],
        variation_counts=ClassificationCounts(new=0, update=1, unchanged=0, invalid=1),
        attribute_counts=ClassificationCounts(new=1, update=1, unchanged=0),
    )


def test_render_preview_summary():
    assert render_preview_summary(_preview()) == (
        "SUMMARY rows=2 new=0 update=1 unchanged=0 invalid=1 untouched=1 "
        "attributes_new=1 attributes_update=1 attributes_unchanged=0"
    )


def test_render_import_summary():
    result = ImportResult(created=[1, 2], updated=[3], unchanged=[], converted=True).finalize()
    assert render_import_summary(result) == (
        "SUMMARY created=2 updated=1 unchanged=0 errors=0 converted=true"
    )


def test_render_import_summary_failure():
    result = ImportResult(aborted=True, errors=["Product not found: 9"]).finalize()
    assert render_import_summary(result) == (
        "SUMMARY created=0 updated=0 unchanged=0 errors=1 converted=false"
    )


def test_render_preview_table_columns_and_rows():
    table = render_preview_table(_preview())
    lines = table.splitlines()
    header = lines[0].split()
    assert header == ["row", "status", "price", "sku", "Color", "Size", "old_price", "errors"]
    assert len(lines) == 3
    assert "update" in lines[1]
    assert "invalid" in lines[2]
    assert "Row 3: Invalid or missing price" in lines[2]


def test_render_preview_table_empty():
    assert render_preview_table(PreviewResult(success=False)) == "(no rows)"
