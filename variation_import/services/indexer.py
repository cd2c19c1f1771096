from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..models.variation_row import VariationRow

"""Attribute indexer: distinct terms per attribute across all rows.

Dedup is exact and case-sensitive ("Red" and "red" are two terms here);
the looser comparison only applies to match keys.
"""

__all__ = [
    "attribute_preview",
    "index_attribute_terms",
]


def index_attribute_terms(rows: Iterable[VariationRow]) -> dict[str, list[str]]:
    """Map attribute name -> terms in first-seen order.

    Rows are visited in order and each row's attributes in header order, so
    the result is deterministic for a given input.
    """
    term_set: dict[str, list[str]] = {}
    for row in rows:
        for name, value in row.attributes.items():
            terms = term_set.setdefault(name, [])
            if value not in terms:
                terms.append(value)
    return term_set


def attribute_preview(term_set: dict[str, list[str]]) -> list[dict[str, Any]]:
    return [
        {"name": name, "terms": list(terms), "count": len(terms)}
        for name, terms in term_set.items()
    ]
