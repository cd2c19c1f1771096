from __future__ import annotations

import logging

from ..catalog.base import Catalog
from ..models.error_record import RowError
from ..models.results import ValidationResult
from ..models.variation_row import VariationRow

"""Row validator.

Each row is checked independently and failures are appended to row.errors:
- price must be > 0
- a non-empty SKU must not belong to another product, nor repeat an SKU
  used by an earlier row of the same input
- at least one attribute, and no attribute value blank after trimming
  (only the first blank attribute is reported)

Nothing is raised; rows with errors remain in the preview and are skipped
at import time.
"""

__all__ = [
    "Validator",
]

logger = logging.getLogger(__name__)


class Validator:
    """Validates parsed rows against local rules and the catalog's SKU index."""

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog

    def validate(self, rows: list[VariationRow], product_id: int) -> ValidationResult:
        """Attach errors to ``rows`` in place and report overall validity.

        Args:
            rows: Parsed rows (header = row 1)
            product_id: Target product; SKUs it already owns are not duplicates

        Returns:
            ValidationResult(valid, rows) where valid means no row has errors
        """
        seen_skus: set[str] = set()
        all_valid = True
        for row in rows:
            ok = self._check_price(row)
            ok = self._check_sku(row, product_id, seen_skus) and ok
            ok = self._check_attributes(row) and ok
            if not ok:
                all_valid = False
                logger.debug("row %d invalid: %s", row.row_number, row.error_messages)
        return ValidationResult(valid=all_valid, rows=rows)

    @staticmethod
    def _check_price(row: VariationRow) -> bool:
        if not row.price or row.price <= 0:
            row.add_error(RowError.invalid_price(row.row_number))
            return False
        return True

    def _check_sku(self, row: VariationRow, product_id: int, seen: set[str]) -> bool:
        if not row.sku:
            return True
        owner = self.catalog.find_product_id_by_sku(row.sku)
        duplicate = row.sku in seen or (owner is not None and owner != product_id)
        seen.add(row.sku)
        if duplicate:
            row.add_error(RowError.duplicate_sku(row.row_number, row.sku))
            return False
        return True

    @staticmethod
    def _check_attributes(row: VariationRow) -> bool:
        if not row.attributes:
            row.add_error(RowError.no_attributes(row.row_number))
            return False
        for name, value in row.attributes.items():
            if not value.strip():
                # one attribute error per row is enough
                row.add_error(RowError.empty_attribute_value(row.row_number, name))
                return False
        return True
