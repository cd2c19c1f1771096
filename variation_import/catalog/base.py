from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from ..models.catalog_models import (
    AttributeRef,
    ConversionOutcome,
    ExistingVariant,
    Product,
    ProductAttribute,
    TermRef,
)

"""Catalog collaborator interface.

The engine never talks to a store directly; the caller hands it an object
implementing this protocol. Lookups (get_*/find_*/resolve_*) must not
mutate state, since preview runs only those.
"""

__all__ = [
    "Catalog",
    "CatalogError",
]


class CatalogError(Exception):
    """Raised by catalog implementations when a read or write fails."""


@runtime_checkable
class Catalog(Protocol):
    def get_product(self, product_id: int) -> Product | None: ...

    def get_existing_variants(self, product_id: int) -> list[ExistingVariant]: ...

    def find_product_id_by_sku(self, sku: str) -> int | None:
        """Owning product id; a variant's SKU resolves to its parent."""
        ...

    def find_attribute(self, name: str) -> AttributeRef | None:
        """Case-insensitive lookup by display label."""
        ...

    def get_or_create_attribute(self, name: str) -> AttributeRef:
        """Like find_attribute, creating a select-type attribute if absent."""
        ...

    def find_term(self, attribute_key: str, name: str) -> TermRef | None:
        """Case-insensitive lookup within one attribute."""
        ...

    def get_or_create_term(self, attribute_key: str, name: str) -> TermRef: ...

    def resolve_term_name(self, attribute_key: str, stored_value: str) -> str:
        """Slug -> display name; returns stored_value unchanged if unknown."""
        ...

    def set_product_attributes(
        self, product_id: int, attributes: list[ProductAttribute]
    ) -> None: ...

    def convert_to_multi_variant(self, product_id: int) -> ConversionOutcome: ...

    def create_variant(
        self,
        product_id: int,
        sku: str | None,
        price: float,
        attribute_slugs: Mapping[str, str],
    ) -> int: ...

    def update_variant(self, variant_id: int, price: float, sku: str | None) -> None: ...
