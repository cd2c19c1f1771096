from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ..catalog.base import Catalog, CatalogError
from ..db.import_log import (
    STATUS_ERROR,
    STATUS_SUCCESS,
    ImportLog,
    ImportLogError,
    NullImportLog,
)
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImporterConfig
from ..models.error_record import ErrorRecord, ImportErrorKind
from ..models.results import ImportResult, PreviewResult, ReconcileResult
from ..models.variation_row import VariationRow
from ..tabular.parser import attribute_names, parse
from .importer import VariationImporter
from .indexer import attribute_preview, index_attribute_terms
from .matcher import Matcher
from .validator import Validator

"""Caller-facing operations.

parse_and_preview(): parse -> validate -> reconcile, read-only.
run_import():        the same pipeline, then apply through the catalog.

Both take the catalog (and for imports the audit log and error log)
explicitly; nothing here keeps module-level state.
"""

__all__ = [
    "parse_and_preview",
    "run_import",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _product_not_found(product_id: int) -> str:
    return f"Product not found: {product_id}"


def _reconcile(
    catalog: Catalog,
    config: ImporterConfig,
    rows: list[VariationRow],
    headers: list[str],
    product_id: int,
) -> tuple[Matcher, ReconcileResult]:
    matcher = Matcher(catalog, price_tolerance=config.price_tolerance)
    existing = catalog.get_existing_variants(product_id)
    return matcher, matcher.reconcile(rows, existing, attribute_names(headers))


def parse_and_preview(
    raw_input: str,
    product_id: int,
    catalog: Catalog,
    config: ImporterConfig | None = None,
) -> PreviewResult:
    """Parse, validate and classify input without writing anything.

    A missing product is reported as an error but the rows are still
    returned (all classified new) so the user can fix the input first.
    """
    config = config or ImporterConfig.default()
    parsed = parse(raw_input)
    if not parsed.success:
        return PreviewResult(success=False, errors=parsed.error_messages)

    rows = parsed.rows
    errors: list[str] = []
    product = None
    try:
        Validator(catalog).validate(rows, product_id)
        product = catalog.get_product(product_id)
        if product is None:
            errors.append(_product_not_found(product_id))
            matcher = Matcher(catalog, price_tolerance=config.price_tolerance)
            reconciled = matcher.reconcile(rows, [], attribute_names(parsed.headers))
        else:
            matcher, reconciled = _reconcile(catalog, config, rows, parsed.headers, product_id)
        valid_terms = index_attribute_terms(r for r in rows if not r.has_errors)
        attribute_counts = matcher.classify_attributes(valid_terms)
    except CatalogError as e:
        logger.error("preview failed for product %d: %s", product_id, e)
        return PreviewResult(
            success=False,
            variations=[r.to_dict() for r in rows],
            errors=[*errors, str(e)],
        )

    valid_count = sum(1 for r in rows if not r.has_errors)
    return PreviewResult(
        success=product is not None,
        variations=[r.to_dict() for r in rows],
        untouched=[u.to_dict() for u in reconciled.untouched],
        attributes=attribute_preview(reconciled.term_set),
        variation_counts=reconciled.variation_counts,
        attribute_counts=attribute_counts,
        message=f"{valid_count} variations and {len(valid_terms)} attributes will be imported.",
        errors=errors,
    )


def _safe_audit(action: str, fn: Callable[..., T], *args: Any) -> T | None:
    """Audit log failures must never break an import."""
    try:
        return fn(*args)
    except ImportLogError as e:
        logger.warning("audit log %s failed: %s", action, e)
        return None


def run_import(
    raw_input: str,
    product_id: int,
    catalog: Catalog,
    config: ImporterConfig | None = None,
    import_log: ImportLog | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Parse, validate, reconcile and apply ``raw_input`` to ``product_id``.

    Returns:
        ImportResult. success is True only when at least one variation was
        created, updated or confirmed unchanged and no error occurred.
    """
    config = config or ImporterConfig.default()
    import_log = import_log or NullImportLog()

    def record(row: int, kind: ImportErrorKind | str, message: str) -> None:
        if error_log is not None:
            error_type = kind.value if isinstance(kind, ImportErrorKind) else kind
            error_log.append(ErrorRecord.create(product_id, row, error_type, message))

    try:
        parsed = parse(raw_input)
        if not parsed.success:
            for err in parsed.errors:
                record(-1, err.kind.value, err.message)
            return ImportResult(aborted=True, errors=parsed.error_messages).finalize()

        try:
            product = catalog.get_product(product_id)
        except CatalogError as e:
            message = f"Failed to load product {product_id}: {e}"
            logger.error(message)
            record(-1, ImportErrorKind.PRODUCT_NOT_FOUND, message)
            return ImportResult(aborted=True, errors=[message]).finalize()
        if product is None:
            message = _product_not_found(product_id)
            record(-1, ImportErrorKind.PRODUCT_NOT_FOUND, message)
            return ImportResult(aborted=True, errors=[message]).finalize()

        rows = parsed.rows
        try:
            Validator(catalog).validate(rows, product_id)
        except CatalogError as e:
            message = f"Failed to validate rows: {e}"
            logger.error(message)
            record(-1, "VALIDATION_FAILED", message)
            return ImportResult(aborted=True, errors=[message]).finalize()
        for row in rows:
            for err in row.errors:
                record(row.row_number, err.kind.value, err.message)

        log_id = _safe_audit("record", import_log.record_attempt, product_id, raw_input, len(rows))

        try:
            # a product that is not variable yet has no variations to match
            _, reconciled = _reconcile(catalog, config, rows, parsed.headers, product_id)
        except CatalogError as e:
            message = f"Failed to read existing variations: {e}"
            logger.error(message)
            record(-1, "SNAPSHOT_FAILED", message)
            result = ImportResult(aborted=True, errors=[message]).finalize()
        else:
            importer = VariationImporter(catalog, config, on_error=record)
            result = importer.apply(product, reconciled.rows)

        if log_id is not None:
            status = STATUS_SUCCESS if result.success else STATUS_ERROR
            _safe_audit("update", import_log.update_outcome, log_id, status, result.to_dict())
        return result
    finally:
        if error_log is not None:
            path = error_log.flush()
            if path is not None:
                logger.info("error log written: %s", path)
