from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from slugify import slugify as _slugify

"""Catalog-side models exchanged with the Catalog collaborator.

These mirror what the store exposes about a product: its type, its
attribute set (attribute -> term ids) and the snapshot of its variants.
"""

__all__ = [
    "VARIABLE_PRODUCT_TYPE",
    "AttributeRef",
    "ConversionOutcome",
    "ExistingVariant",
    "Product",
    "ProductAttribute",
    "TermRef",
    "attribute_taxonomy_key",
    "slugify",
]

VARIABLE_PRODUCT_TYPE = "variable"
TAXONOMY_PREFIX = "pa_"


def slugify(text: str) -> str:
    """Transliterate, lowercase and join words with '-' ("King Room" -> "king-room", "Размер" -> "razmer")."""
    return _slugify(str(text or ""), lowercase=True)


def attribute_taxonomy_key(name: str) -> str:
    """Storage key of a global attribute ("Package Type" -> "pa_package-type")."""
    return TAXONOMY_PREFIX + slugify(name)


class ConversionOutcome(Enum):
    CONVERTED = "converted"
    ALREADY_CONVERTED = "already_converted"
    UNCONVERTIBLE = "unconvertible"


@dataclass(frozen=True)
class AttributeRef:
    id: int
    name: str  # display label
    key: str  # taxonomy key, e.g. pa_color


@dataclass(frozen=True)
class TermRef:
    id: int
    name: str
    slug: str


@dataclass(frozen=True)
class ProductAttribute:
    """One entry of a product's attribute set."""
    attribute_id: int
    key: str
    term_ids: tuple[int, ...]
    visible: bool = True
    used_for_variations: bool = True


@dataclass(frozen=True)
class ExistingVariant:
    """Snapshot of a stored variant.

    attribute_values maps a taxonomy key (or a custom attribute's display
    name) to the stored value, usually a term slug.
    """
    variant_id: int
    price: float | None
    sku: str | None
    attribute_values: dict[str, str] = field(default_factory=dict)


@dataclass
class Product:
    id: int
    type: str
    name: str = ""
    description: str = ""
    sku: str | None = None
    manage_stock: bool = False
    attributes: list[ProductAttribute] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)  # images, categories, stock, ...

    @property
    def is_variable(self) -> bool:
        return self.type == VARIABLE_PRODUCT_TYPE

    def attribute_by_key(self, key: str) -> ProductAttribute | None:
        for attr in self.attributes:
            if attr.key == key:
                return attr
        return None
