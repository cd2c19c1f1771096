from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum

"""Error models for the bulk variation importer.

Three families, all returned as data rather than raised:
- InputError: the whole input is unusable (empty, no rows, no Price column)
- RowError: one row failed validation; the row is kept for preview but not written
- ErrorRecord: JSON Lines record written to the error log after an import
"""

__all__ = [
    "InputErrorKind",
    "RowErrorKind",
    "ImportErrorKind",
    "InputError",
    "RowError",
    "ErrorRecord",
]


class InputErrorKind(Enum):
    EMPTY_INPUT = "EMPTY_INPUT"
    NO_VALID_ROWS = "NO_VALID_ROWS"
    MISSING_REQUIRED_COLUMN = "MISSING_REQUIRED_COLUMN"


class RowErrorKind(Enum):
    INVALID_PRICE = "INVALID_PRICE"
    DUPLICATE_SKU = "DUPLICATE_SKU"
    NO_ATTRIBUTES = "NO_ATTRIBUTES"
    EMPTY_ATTRIBUTE_VALUE = "EMPTY_ATTRIBUTE_VALUE"


class ImportErrorKind(Enum):
    """Import-level failures plus the per-row write failure."""
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    CONVERSION_FAILED = "CONVERSION_FAILED"
    ATTRIBUTE_SETUP_FAILED = "ATTRIBUTE_SETUP_FAILED"
    ROW_INVALID = "ROW_INVALID"
    VARIANT_WRITE_FAILED = "VARIANT_WRITE_FAILED"


@dataclass(frozen=True)
class InputError:
    kind: InputErrorKind
    message: str
    column: str | None = None

    @staticmethod
    def empty_input() -> InputError:
        return InputError(InputErrorKind.EMPTY_INPUT, "Input data is empty.")

    @staticmethod
    def no_valid_rows() -> InputError:
        return InputError(InputErrorKind.NO_VALID_ROWS, "No valid rows found.")

    @staticmethod
    def missing_required_column(column: str) -> InputError:
        return InputError(
            InputErrorKind.MISSING_REQUIRED_COLUMN,
            f"Missing required column: {column}",
            column=column,
        )

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class RowError:
    """A validation failure attached to one VariationRow.

    Attributes:
        kind: Error classification
        row_number: Row the error belongs to (header = 1)
        message: Human readable text shown in the preview
        sku: Offending SKU for DUPLICATE_SKU
        attribute: Offending attribute name for EMPTY_ATTRIBUTE_VALUE
    """
    kind: RowErrorKind
    row_number: int
    message: str
    sku: str | None = None
    attribute: str | None = None

    @staticmethod
    def invalid_price(row_number: int) -> RowError:
        return RowError(
            RowErrorKind.INVALID_PRICE,
            row_number,
            f"Row {row_number}: Invalid or missing price",
        )

    @staticmethod
    def duplicate_sku(row_number: int, sku: str) -> RowError:
        return RowError(
            RowErrorKind.DUPLICATE_SKU,
            row_number,
            f'Row {row_number}: SKU "{sku}" already exists',
            sku=sku,
        )

    @staticmethod
    def no_attributes(row_number: int) -> RowError:
        return RowError(
            RowErrorKind.NO_ATTRIBUTES,
            row_number,
            f"Row {row_number}: No attributes found",
        )

    @staticmethod
    def empty_attribute_value(row_number: int, attribute: str) -> RowError:
        return RowError(
            RowErrorKind.EMPTY_ATTRIBUTE_VALUE,
            row_number,
            f'Row {row_number}: Attribute "{attribute}" has an empty value',
            attribute=attribute,
        )

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        product_id: Target product of the import
        row: Row number (header = 1). -1 for import-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    product_id: int
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(product_id: int, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            product_id=product_id,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line without extra keys."""
        return json.dumps(asdict(self), ensure_ascii=False)
