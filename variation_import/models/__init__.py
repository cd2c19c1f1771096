"""Domain models for the bulk variation importer.

This package contains the row, error, catalog, result and configuration
models shared by the parser, validator, matcher and importer.
"""

from .catalog_models import (
    AttributeRef,
    ConversionOutcome,
    ExistingVariant,
    Product,
    ProductAttribute,
    TermRef,
    attribute_taxonomy_key,
)
from .config_models import AuditLogConfig, DatabaseConfig, ImporterConfig
from .error_record import (
    ErrorRecord,
    ImportErrorKind,
    InputError,
    InputErrorKind,
    RowError,
    RowErrorKind,
)
from .results import (
    ClassificationCounts,
    ImportResult,
    ParseResult,
    PreviewResult,
    ReconcileResult,
    UntouchedVariant,
    ValidationResult,
)
from .variation_row import RowStatus, VariationRow

__all__ = [
    # Configuration models
    "AuditLogConfig",
    "DatabaseConfig",
    "ImporterConfig",
    # Catalog models
    "AttributeRef",
    "ConversionOutcome",
    "ExistingVariant",
    "Product",
    "ProductAttribute",
    "TermRef",
    "attribute_taxonomy_key",
    # Errors
    "ErrorRecord",
    "ImportErrorKind",
    "InputError",
    "InputErrorKind",
    "RowError",
    "RowErrorKind",
    # Processing models
    "ClassificationCounts",
    "ImportResult",
    "ParseResult",
    "PreviewResult",
    "ReconcileResult",
    "RowStatus",
    "UntouchedVariant",
    "ValidationResult",
    "VariationRow",
]
