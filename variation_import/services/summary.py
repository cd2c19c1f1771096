from __future__ import annotations

from typing import Any

import pandas as pd

from ..models.results import ImportResult, PreviewResult

"""SUMMARY line and preview table rendering.

Formats:
    SUMMARY rows={n} new={n} update={n} unchanged={n} invalid={n} untouched={n}
        attributes_new={n} attributes_update={n} attributes_unchanged={n}
    SUMMARY created={n} updated={n} unchanged={n} errors={n} converted=true|false

Both are emitted on a single line; the CLI logs them at SUMMARY level.
"""

__all__ = [
    "render_import_summary",
    "render_preview_summary",
    "render_preview_table",
]

PREVIEW_TABLE_COLUMNS = ["row", "status", "price", "sku"]


def render_preview_summary(preview: PreviewResult) -> str:
    """Render the SUMMARY line for a preview.

    Examples:
        >>> render_preview_summary(PreviewResult(success=True))
        'SUMMARY rows=0 new=0 update=0 unchanged=0 invalid=0 untouched=0 attributes_new=0 attributes_update=0 attributes_unchanged=0'
    """
    v = preview.variation_counts
    a = preview.attribute_counts
    return (
        f"SUMMARY rows={len(preview.variations)} "
        f"new={v.new} "
        f"update={v.update} "
        f"unchanged={v.unchanged} "
        f"invalid={v.invalid} "
        f"untouched={len(preview.untouched)} "
        f"attributes_new={a.new} "
        f"attributes_update={a.update} "
        f"attributes_unchanged={a.unchanged}"
    )


def render_import_summary(result: ImportResult) -> str:
    converted = "true" if result.converted else "false"
    return (
        f"SUMMARY created={len(result.created)} "
        f"updated={len(result.updated)} "
        f"unchanged={len(result.unchanged)} "
        f"errors={len(result.errors)} "
        f"converted={converted}"
    )


def _table_record(variation: dict[str, Any], attribute_names: list[str]) -> dict[str, Any]:
    record: dict[str, Any] = {
        "row": variation.get("row_number"),
        "status": "invalid" if variation.get("errors") else (variation.get("status") or ""),
        "price": variation.get("price"),
        "sku": variation.get("sku") or "",
    }
    attrs = variation.get("attributes", {})
    for name in attribute_names:
        record[name] = attrs.get(name, "")
    old_price = variation.get("old_price")
    record["old_price"] = "" if old_price is None else old_price
    record["errors"] = "; ".join(variation.get("errors", []))
    return record


def render_preview_table(preview: PreviewResult) -> str:
    """Render the preview rows as a plain text table (one line per input row)."""
    if not preview.variations:
        return "(no rows)"
    attribute_names: list[str] = []
    for variation in preview.variations:
        for name in variation.get("attributes", {}):
            if name not in attribute_names:
                attribute_names.append(name)
    df = pd.DataFrame(
        [_table_record(v, attribute_names) for v in preview.variations],
        columns=[*PREVIEW_TABLE_COLUMNS, *attribute_names, "old_price", "errors"],
    )
    return df.to_string(index=False)
