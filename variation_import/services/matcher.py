from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..catalog.base import Catalog
from ..models.catalog_models import ExistingVariant, attribute_taxonomy_key
from ..models.config_models import DEFAULT_PRICE_TOLERANCE
from ..models.results import ClassificationCounts, ReconcileResult, UntouchedVariant
from ..models.variation_row import RowStatus, VariationRow
from .indexer import index_attribute_terms

"""Matcher / reconciler.

Classifies each input row against the product's existing variants:

    key found, |old - new| < tolerance  -> unchanged
    key found, otherwise                -> update
    key not found                       -> new

The match key is built from attribute values in the *input's* column order,
each value lowercased, whitespace-collapsed and trimmed, joined with "|".
Existing variants store slugs, so their values are resolved back to term
names through the catalog before keying. When two existing variants share a
key the later one wins.

Reconciliation only uses catalog lookups and can run any number of times
(preview, then import) without side effects.
"""

__all__ = [
    "KEY_SEPARATOR",
    "Matcher",
    "build_match_key",
    "normalize_key_part",
]

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"
_WHITESPACE = re.compile(r"\s+")


def normalize_key_part(value: str | None) -> str:
    """'  Twin   ROOM ' -> 'twin room'."""
    return _WHITESPACE.sub(" ", (value or "").strip().lower())


def build_match_key(values: Mapping[str, str], attribute_order: Sequence[str]) -> str:
    """Join normalised values in ``attribute_order``; missing attributes count as ''."""
    return KEY_SEPARATOR.join(normalize_key_part(values.get(name, "")) for name in attribute_order)


def _price_of(value: float | str | None) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class _ResolvedVariant:
    variant: ExistingVariant
    attributes: dict[str, str]  # display name -> term name


class Matcher:
    """Reconciles parsed rows with an existing-variant snapshot."""

    def __init__(self, catalog: Catalog, price_tolerance: float = DEFAULT_PRICE_TOLERANCE) -> None:
        self.catalog = catalog
        self.price_tolerance = price_tolerance

    def resolve_attributes(
        self, variant: ExistingVariant, attribute_order: Sequence[str]
    ) -> dict[str, str]:
        """Display-name view of a stored variant, limited to the input's attributes.

        Values stored under the taxonomy key are resolved slug -> term name;
        values stored under the display name (custom attributes) are used as-is.
        """
        resolved: dict[str, str] = {}
        stored = variant.attribute_values
        for name in attribute_order:
            key = attribute_taxonomy_key(name)
            if key in stored:
                resolved[name] = self.catalog.resolve_term_name(key, stored[key])
            elif name in stored:
                resolved[name] = stored[name]
            else:
                resolved[name] = ""
        return resolved

    def _existing_map(
        self, existing: Sequence[ExistingVariant], attribute_order: Sequence[str]
    ) -> dict[str, _ResolvedVariant]:
        by_key: dict[str, _ResolvedVariant] = {}
        for variant in existing:
            attrs = self.resolve_attributes(variant, attribute_order)
            key = build_match_key(attrs, attribute_order)
            if key in by_key:
                logger.warning(
                    "variations %d and %d share attributes %r; using %d",
                    by_key[key].variant.variant_id,
                    variant.variant_id,
                    key,
                    variant.variant_id,
                )
            by_key[key] = _ResolvedVariant(variant, attrs)
        return by_key

    def prices_equal(self, old: float, new: float) -> bool:
        return abs(old - new) < self.price_tolerance

    def reconcile(
        self,
        rows: list[VariationRow],
        existing: Sequence[ExistingVariant],
        attribute_order: Sequence[str],
    ) -> ReconcileResult:
        """Attach status / existing_id / old_price to each row.

        Args:
            rows: Parsed rows (mutated in place with the classification)
            existing: Snapshot of the product's variants
            attribute_order: Attribute names in input column order

        Returns:
            ReconcileResult with the rows, the existing variants nobody
            matched, the attribute term set and the per-row match keys
        """
        term_set = index_attribute_terms(rows)
        existing_map = self._existing_map(existing, attribute_order)

        matched: set[str] = set()
        keys: list[str] = []
        for row in rows:
            key = build_match_key(row.attributes, attribute_order)
            keys.append(key)
            hit = existing_map.get(key)
            if hit is None:
                row.status = RowStatus.NEW
                row.existing_id = None
                row.old_price = None
                continue
            old_price = _price_of(hit.variant.price)
            row.existing_id = hit.variant.variant_id
            row.old_price = old_price
            row.status = (
                RowStatus.UNCHANGED if self.prices_equal(old_price, row.price) else RowStatus.UPDATE
            )
            matched.add(key)

        untouched = [
            UntouchedVariant(
                variant_id=hit.variant.variant_id,
                price=_price_of(hit.variant.price),
                sku=hit.variant.sku,
                attributes=hit.attributes,
            )
            for key, hit in existing_map.items()
            if key not in matched
        ]
        return ReconcileResult(rows=rows, untouched=untouched, term_set=term_set, keys=keys)

    def classify_attributes(self, term_set: Mapping[str, Sequence[str]]) -> ClassificationCounts:
        """new = attribute unknown, update = known but gains a term, else unchanged."""
        new = update = unchanged = 0
        for name, terms in term_set.items():
            ref = self.catalog.find_attribute(name)
            if ref is None:
                new += 1
            elif any(self.catalog.find_term(ref.key, term) is None for term in terms):
                update += 1
            else:
                unchanged += 1
        return ClassificationCounts(new=new, update=update, unchanged=unchanged)
