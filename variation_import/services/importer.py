from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..catalog.base import Catalog, CatalogError
from ..models.catalog_models import AttributeRef, ConversionOutcome, Product, ProductAttribute
from ..models.config_models import ImporterConfig
from ..models.error_record import ImportErrorKind
from ..models.results import ImportResult
from ..models.variation_row import RowStatus, VariationRow
from .indexer import index_attribute_terms
from .progress import RowProgressTracker

"""Import application: writes reconciled rows through the catalog.

Order of operations for one call:
1. Convert the product to a variable product if needed (at most once).
2. Ensure every attribute/term used by the valid rows exists and merge them
   into the product's attribute set (existing terms are never removed).
3. Per row: create (new), overwrite price/SKU (update) or skip (unchanged).

Steps 1 and 2 are prerequisites: a failure there aborts the call before any
variant is written. Both are skipped when no row is valid. In step 3 a
failing row is reported and the remaining rows still run; earlier writes
are not rolled back.
"""

__all__ = [
    "ImportAborted",
    "VariationImporter",
]

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[int, ImportErrorKind, str], None]


class ImportAborted(Exception):
    """Product-level failure that stops the import before any variant write."""

    def __init__(self, kind: ImportErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class _AttributeBinding:
    ref: AttributeRef
    term_slugs: dict[str, str]  # term name as typed -> stored slug


class VariationImporter:
    """Applies classified rows to one product."""

    def __init__(
        self,
        catalog: Catalog,
        config: ImporterConfig | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or ImporterConfig.default()
        self.on_error = on_error

    def _record(self, result: ImportResult, row: int, kind: ImportErrorKind, message: str) -> None:
        result.errors.append(message)
        if self.on_error is not None:
            self.on_error(row, kind, message)

    # ------------------------------------------------------------------
    # Step 1: product conversion
    # ------------------------------------------------------------------
    def ensure_variable(self, product: Product) -> bool:
        """Convert ``product`` to a variable product.

        Returns:
            True if a conversion happened, False if it was already variable

        Raises:
            ImportAborted: CONVERSION_FAILED for non-convertible types or store errors
        """
        if product.is_variable:
            logger.debug("product %d is already variable", product.id)
            return False
        if product.type not in self.config.convertible_types:
            raise ImportAborted(
                ImportErrorKind.CONVERSION_FAILED,
                f"Cannot convert {product.type} product to variable product.",
            )
        logger.info("converting product %d from %s to variable", product.id, product.type)
        try:
            outcome = self.catalog.convert_to_multi_variant(product.id)
        except CatalogError as e:
            raise ImportAborted(ImportErrorKind.CONVERSION_FAILED, str(e)) from e
        if outcome is ConversionOutcome.UNCONVERTIBLE:
            raise ImportAborted(
                ImportErrorKind.CONVERSION_FAILED,
                f"Cannot convert {product.type} product to variable product.",
            )
        return outcome is ConversionOutcome.CONVERTED

    # ------------------------------------------------------------------
    # Step 2: attributes and terms
    # ------------------------------------------------------------------
    def setup_attributes(
        self, product: Product, rows: list[VariationRow]
    ) -> dict[str, _AttributeBinding]:
        """Create/reuse attributes and terms and merge them into the product.

        Raises:
            ImportAborted: ATTRIBUTE_SETUP_FAILED on store errors or empty mapping
        """
        term_set = index_attribute_terms(rows)
        bindings: dict[str, _AttributeBinding] = {}
        merged: dict[str, ProductAttribute] = {a.key: a for a in product.attributes}
        try:
            for name, terms in term_set.items():
                ref = self.catalog.get_or_create_attribute(name)
                slugs: dict[str, str] = {}
                new_term_ids: list[int] = []
                for term_name in terms:
                    term = self.catalog.get_or_create_term(ref.key, term_name)
                    slugs[term_name] = term.slug
                    new_term_ids.append(term.id)
                current = merged.get(ref.key)
                existing_ids = list(current.term_ids) if current is not None else []
                all_ids = existing_ids + [t for t in new_term_ids if t not in existing_ids]
                merged[ref.key] = ProductAttribute(
                    attribute_id=ref.id,
                    key=ref.key,
                    term_ids=tuple(all_ids),
                    visible=True,
                    used_for_variations=True,
                )
                bindings[name] = _AttributeBinding(ref=ref, term_slugs=slugs)
                logger.debug(
                    "attribute %s -> %s (%d terms, %d existing)",
                    name, ref.key, len(all_ids), len(existing_ids),
                )
            if not bindings:
                raise ImportAborted(
                    ImportErrorKind.ATTRIBUTE_SETUP_FAILED, "Failed to setup product attributes."
                )
            self.catalog.set_product_attributes(product.id, list(merged.values()))
        except CatalogError as e:
            raise ImportAborted(
                ImportErrorKind.ATTRIBUTE_SETUP_FAILED,
                f"Failed to setup product attributes: {e}",
            ) from e
        return bindings

    # ------------------------------------------------------------------
    # Step 3: variants
    # ------------------------------------------------------------------
    @staticmethod
    def _slug_map(row: VariationRow, bindings: dict[str, _AttributeBinding]) -> dict[str, str]:
        slug_map: dict[str, str] = {}
        for name, value in row.attributes.items():
            binding = bindings.get(name)
            if binding is None:
                logger.warning("row %d: attribute %s not set up", row.row_number, name)
                continue
            slug_map[binding.ref.key] = binding.term_slugs[value]
        return slug_map

    def _apply_row(
        self,
        product: Product,
        row: VariationRow,
        bindings: dict[str, _AttributeBinding],
        result: ImportResult,
    ) -> None:
        if row.status is RowStatus.UNCHANGED and row.existing_id is not None:
            result.unchanged.append(row.existing_id)
            return
        if row.status is RowStatus.UPDATE and row.existing_id is not None:
            self.catalog.update_variant(row.existing_id, row.price, row.sku)
            logger.debug(
                "row %d: variation %d price %s -> %s",
                row.row_number, row.existing_id, row.old_price, row.price,
            )
            result.updated.append(row.existing_id)
            return
        variant_id = self.catalog.create_variant(
            product.id, row.sku, row.price, self._slug_map(row, bindings)
        )
        logger.debug("row %d: created variation %d", row.row_number, variant_id)
        result.created.append(variant_id)

    def apply(self, product: Product, rows: list[VariationRow]) -> ImportResult:
        """Write ``rows`` (already validated and reconciled) to ``product``.

        Returns:
            ImportResult; product-level failures yield a single error and no writes
        """
        result = ImportResult()
        valid_rows = [r for r in rows if not r.has_errors]
        bindings: dict[str, _AttributeBinding] = {}
        try:
            # nothing to write: leave the product as it is
            if valid_rows:
                result.converted = self.ensure_variable(product)
                bindings = self.setup_attributes(product, valid_rows)
        except ImportAborted as e:
            logger.error("import aborted for product %d: %s", product.id, e.message)
            self._record(result, -1, e.kind, e.message)
            result.aborted = True
            return result.finalize()

        with RowProgressTracker(len(rows), description=f"Product {product.id}") as progress:
            for row in rows:
                progress.start_row(row.row_number)
                if row.has_errors:
                    self._record(
                        result,
                        row.row_number,
                        ImportErrorKind.ROW_INVALID,
                        f"Row {row.row_number} has validation errors",
                    )
                    progress.finish_row(success=False)
                    continue
                try:
                    self._apply_row(product, row, bindings, result)
                except CatalogError as e:
                    logger.error("row %d failed: %s", row.row_number, e)
                    self._record(
                        result,
                        row.row_number,
                        ImportErrorKind.VARIANT_WRITE_FAILED,
                        f"Row {row.row_number} error: {e}",
                    )
                    progress.finish_row(success=False)
                    continue
                progress.finish_row(success=True)
                progress.set_postfix(
                    created=len(result.created),
                    updated=len(result.updated),
                    unchanged=len(result.unchanged),
                )

        logger.info(
            "import complete for product %d: created=%d updated=%d unchanged=%d errors=%d",
            product.id,
            len(result.created),
            len(result.updated),
            len(result.unchanged),
            len(result.errors),
        )
        return result.finalize()
