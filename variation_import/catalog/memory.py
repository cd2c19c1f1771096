from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..models.catalog_models import (
    VARIABLE_PRODUCT_TYPE,
    AttributeRef,
    ConversionOutcome,
    ExistingVariant,
    Product,
    ProductAttribute,
    TermRef,
    attribute_taxonomy_key,
    slugify,
)
from ..models.config_models import DEFAULT_CONVERTIBLE_TYPES
from .base import CatalogError

"""In-memory Catalog implementation.

Backs the CLI (persisted to a JSON file between runs) and the test suite.
Behaves like a small store: attribute labels and term names are matched
case-insensitively, SKUs are unique across products and variants, and
converting a product only changes its type.
"""

__all__ = [
    "InMemoryCatalog",
]

logger = logging.getLogger(__name__)


@dataclass
class _StoredVariant:
    id: int
    parent_id: int
    price: float | None
    sku: str | None
    attribute_values: dict[str, str] = field(default_factory=dict)


class InMemoryCatalog:
    """Dictionary-backed catalog with sequential ids shared by every entity."""

    def __init__(self, convertible_types: Iterable[str] = DEFAULT_CONVERTIBLE_TYPES) -> None:
        self.convertible_types = frozenset(convertible_types)
        self._products: dict[int, Product] = {}
        self._variants: dict[int, _StoredVariant] = {}
        self._attributes: dict[str, AttributeRef] = {}  # key -> ref
        self._terms: dict[str, list[TermRef]] = {}  # attribute key -> terms
        self._next_id = 1

    def _allocate_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------
    def add_product(
        self,
        type: str = "simple",
        name: str = "",
        *,
        product_id: int | None = None,
        **fields: Any,
    ) -> Product:
        pid = product_id if product_id is not None else self._allocate_id()
        self._next_id = max(self._next_id, pid + 1)
        product = Product(id=pid, type=type, name=name, **fields)
        self._products[pid] = product
        return product

    def add_variant(
        self,
        parent_id: int,
        price: float | None,
        attribute_values: Mapping[str, str],
        sku: str | None = None,
    ) -> int:
        """Store a variant as-is (values are stored slugs, no term lookup)."""
        if parent_id not in self._products:
            raise CatalogError(f"product {parent_id} not found")
        vid = self._allocate_id()
        self._variants[vid] = _StoredVariant(vid, parent_id, price, sku, dict(attribute_values))
        return vid

    def variant(self, variant_id: int) -> ExistingVariant | None:
        stored = self._variants.get(variant_id)
        return self._snapshot(stored) if stored is not None else None

    # ------------------------------------------------------------------
    # Catalog protocol: lookups
    # ------------------------------------------------------------------
    def get_product(self, product_id: int) -> Product | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        return replace(product, attributes=list(product.attributes), extra=dict(product.extra))

    @staticmethod
    def _snapshot(stored: _StoredVariant) -> ExistingVariant:
        return ExistingVariant(
            variant_id=stored.id,
            price=stored.price,
            sku=stored.sku,
            attribute_values=dict(stored.attribute_values),
        )

    def get_existing_variants(self, product_id: int) -> list[ExistingVariant]:
        return [
            self._snapshot(v)
            for v in sorted(self._variants.values(), key=lambda v: v.id)
            if v.parent_id == product_id
        ]

    def find_product_id_by_sku(self, sku: str) -> int | None:
        if not sku:
            return None
        for product in self._products.values():
            if product.sku == sku:
                return product.id
        for v in self._variants.values():
            if v.sku == sku:
                return v.parent_id
        return None

    def find_attribute(self, name: str) -> AttributeRef | None:
        wanted = name.strip().casefold()
        for ref in self._attributes.values():
            if ref.name.casefold() == wanted:
                return ref
        return None

    def find_term(self, attribute_key: str, name: str) -> TermRef | None:
        wanted = name.strip().casefold()
        for term in self._terms.get(attribute_key, []):
            if term.name.casefold() == wanted:
                return term
        return None

    def resolve_term_name(self, attribute_key: str, stored_value: str) -> str:
        for term in self._terms.get(attribute_key, []):
            if term.slug == stored_value:
                return term.name
        return stored_value

    # ------------------------------------------------------------------
    # Catalog protocol: writes
    # ------------------------------------------------------------------
    def get_or_create_attribute(self, name: str) -> AttributeRef:
        existing = self.find_attribute(name)
        if existing is not None:
            return existing
        key = attribute_taxonomy_key(name)
        if key == attribute_taxonomy_key(""):
            raise CatalogError(f"cannot derive attribute key from name {name!r}")
        if key in self._attributes:
            # same slug, different label ("T-Shirt Size" vs "T Shirt Size")
            return self._attributes[key]
        ref = AttributeRef(id=self._allocate_id(), name=name.strip(), key=key)
        self._attributes[key] = ref
        self._terms.setdefault(key, [])
        logger.debug("created attribute %s (%s)", ref.name, ref.key)
        return ref

    def get_or_create_term(self, attribute_key: str, name: str) -> TermRef:
        if attribute_key not in self._attributes:
            raise CatalogError(f"attribute {attribute_key} not found")
        existing = self.find_term(attribute_key, name)
        if existing is not None:
            return existing
        term_id = self._allocate_id()
        base = slugify(name) or f"term-{term_id}"
        taken = {t.slug for t in self._terms[attribute_key]}
        slug, n = base, 2
        while slug in taken:
            slug = f"{base}-{n}"
            n += 1
        term = TermRef(id=term_id, name=name.strip(), slug=slug)
        self._terms[attribute_key].append(term)
        return term

    def set_product_attributes(self, product_id: int, attributes: list[ProductAttribute]) -> None:
        product = self._products.get(product_id)
        if product is None:
            raise CatalogError(f"product {product_id} not found")
        for attr in attributes:
            if attr.key not in self._attributes:
                raise CatalogError(f"attribute {attr.key} not found")
        product.attributes = list(attributes)

    def convert_to_multi_variant(self, product_id: int) -> ConversionOutcome:
        product = self._products.get(product_id)
        if product is None:
            raise CatalogError(f"product {product_id} not found")
        if product.type == VARIABLE_PRODUCT_TYPE:
            return ConversionOutcome.ALREADY_CONVERTED
        if product.type not in self.convertible_types:
            return ConversionOutcome.UNCONVERTIBLE
        # only the type changes; name, description, sku, stock, extra survive
        product.type = VARIABLE_PRODUCT_TYPE
        return ConversionOutcome.CONVERTED

    def _check_sku_free(self, sku: str | None, owner_variant: int | None = None) -> None:
        if not sku:
            return
        for product in self._products.values():
            if product.sku == sku:
                raise CatalogError(f'SKU "{sku}" already used by product {product.id}')
        for v in self._variants.values():
            if v.sku == sku and v.id != owner_variant:
                raise CatalogError(f'SKU "{sku}" already used by variation {v.id}')

    def create_variant(
        self,
        product_id: int,
        sku: str | None,
        price: float,
        attribute_slugs: Mapping[str, str],
    ) -> int:
        product = self._products.get(product_id)
        if product is None:
            raise CatalogError(f"product {product_id} not found")
        if not product.is_variable:
            raise CatalogError(f"product {product_id} is not a variable product")
        self._check_sku_free(sku)
        vid = self._allocate_id()
        self._variants[vid] = _StoredVariant(vid, product_id, float(price), sku or None, dict(attribute_slugs))
        return vid

    def update_variant(self, variant_id: int, price: float, sku: str | None) -> None:
        stored = self._variants.get(variant_id)
        if stored is None:
            raise CatalogError(f"variation {variant_id} not found")
        if sku:
            self._check_sku_free(sku, owner_variant=variant_id)
            stored.sku = sku
        stored.price = float(price)

    # ------------------------------------------------------------------
    # Persistence (CLI store)
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "next_id": self._next_id,
            "convertible_types": sorted(self.convertible_types),
            "products": [
                {
                    "id": p.id,
                    "type": p.type,
                    "name": p.name,
                    "description": p.description,
                    "sku": p.sku,
                    "manage_stock": p.manage_stock,
                    "attributes": [
                        {
                            "attribute_id": a.attribute_id,
                            "key": a.key,
                            "term_ids": list(a.term_ids),
                            "visible": a.visible,
                            "used_for_variations": a.used_for_variations,
                        }
                        for a in p.attributes
                    ],
                    "extra": p.extra,
                }
                for p in self._products.values()
            ],
            "variants": [
                {
                    "id": v.id,
                    "parent_id": v.parent_id,
                    "price": v.price,
                    "sku": v.sku,
                    "attribute_values": v.attribute_values,
                }
                for v in self._variants.values()
            ],
            "attributes": [
                {
                    "id": ref.id,
                    "name": ref.name,
                    "key": ref.key,
                    "terms": [
                        {"id": t.id, "name": t.name, "slug": t.slug}
                        for t in self._terms.get(ref.key, [])
                    ],
                }
                for ref in self._attributes.values()
            ],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InMemoryCatalog:
        catalog = cls(data.get("convertible_types", DEFAULT_CONVERTIBLE_TYPES))
        for raw in data.get("attributes", []):
            ref = AttributeRef(id=int(raw["id"]), name=raw["name"], key=raw["key"])
            catalog._attributes[ref.key] = ref
            catalog._terms[ref.key] = [
                TermRef(id=int(t["id"]), name=t["name"], slug=t["slug"])
                for t in raw.get("terms", [])
            ]
        for raw in data.get("products", []):
            catalog._products[int(raw["id"])] = Product(
                id=int(raw["id"]),
                type=raw.get("type", "simple"),
                name=raw.get("name", ""),
                description=raw.get("description", ""),
                sku=raw.get("sku"),
                manage_stock=bool(raw.get("manage_stock", False)),
                attributes=[
                    ProductAttribute(
                        attribute_id=int(a["attribute_id"]),
                        key=a["key"],
                        term_ids=tuple(int(t) for t in a.get("term_ids", [])),
                        visible=a.get("visible", True),
                        used_for_variations=a.get("used_for_variations", True),
                    )
                    for a in raw.get("attributes", [])
                ],
                extra=dict(raw.get("extra", {})),
            )
        for raw in data.get("variants", []):
            vid = int(raw["id"])
            catalog._variants[vid] = _StoredVariant(
                id=vid,
                parent_id=int(raw["parent_id"]),
                price=raw.get("price"),
                sku=raw.get("sku"),
                attribute_values=dict(raw.get("attribute_values", {})),
            )
        known_ids = (
            [p for p in catalog._products]
            + [v for v in catalog._variants]
            + [a.id for a in catalog._attributes.values()]
            + [t.id for terms in catalog._terms.values() for t in terms]
        )
        catalog._next_id = max([int(data.get("next_id", 1)), *(i + 1 for i in known_ids)])
        return catalog

    @classmethod
    def load(cls, path: Path) -> InMemoryCatalog:
        if not path.exists():
            raise CatalogError(f"catalog file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CatalogError(f"invalid catalog file {path}: {e}") from e
        return cls.from_dict(data)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
