from __future__ import annotations

from variation_import.models.variation_row import VariationRow
from variation_import.services.indexer import attribute_preview, index_attribute_terms


def _row(n: int, **attrs: str) -> VariationRow:
    return VariationRow(row_number=n, price=1.0, attributes=dict(attrs))


def test_terms_first_seen_order():
    rows = [
        _row(2, Color="Red", Size="M"),
        _row(3, Color="Blue", Size="M"),
        _row(4, Color="Red", Size="L"),
    ]
    assert index_attribute_terms(rows) == {"Color": ["Red", "Blue"], "Size": ["M", "L"]}


def test_terms_dedup_is_case_sensitive():
    rows = [_row(2, Color="Red"), _row(3, Color="red")]
    assert index_attribute_terms(rows) == {"Color": ["Red", "red"]}


def test_empty_rows():
    assert index_attribute_terms([]) == {}


def test_attribute_preview_shape():
    preview = attribute_preview({"Color": ["Red", "Blue"], "Size": ["M"]})
    assert preview == [
        {"name": "Color", "terms": ["Red", "Blue"], "count": 2},
        {"name": "Size", "terms": ["M"], "count": 1},
    ]
