from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .error_record import InputError
from .variation_row import RowStatus, VariationRow

"""Result models returned by the parser, validator, matcher and workflows.

Expected failures travel inside these objects; callers check ``success`` /
``errors`` instead of catching exceptions.
"""

__all__ = [
    "ClassificationCounts",
    "ImportResult",
    "ParseResult",
    "PreviewResult",
    "ReconcileResult",
    "UntouchedVariant",
    "ValidationResult",
]


@dataclass(frozen=True)
class ParseResult:
    success: bool
    headers: list[str] = field(default_factory=list)
    rows: list[VariationRow] = field(default_factory=list)
    errors: list[InputError] = field(default_factory=list)

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors]


@dataclass(frozen=True)
class ValidationResult:
    valid: bool  # True when no row carries an error
    rows: list[VariationRow]


@dataclass(frozen=True)
class ClassificationCounts:
    """new / update / unchanged tally for variations or attributes."""
    new: int = 0
    update: int = 0
    unchanged: int = 0
    invalid: int = 0  # rows excluded by validation (variations only)

    @staticmethod
    def from_rows(rows: list[VariationRow]) -> ClassificationCounts:
        counts = {status: 0 for status in RowStatus}
        invalid = 0
        for row in rows:
            if row.has_errors:
                invalid += 1
                continue
            counts[row.status or RowStatus.NEW] += 1
        return ClassificationCounts(
            new=counts[RowStatus.NEW],
            update=counts[RowStatus.UPDATE],
            unchanged=counts[RowStatus.UNCHANGED],
            invalid=invalid,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "new": self.new,
            "update": self.update,
            "unchanged": self.unchanged,
            "invalid": self.invalid,
        }


@dataclass(frozen=True)
class UntouchedVariant:
    """Existing variant that no input row matched; shown, never written."""
    variant_id: int
    price: float
    sku: str | None
    attributes: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "existing_id": self.variant_id,
            "price": self.price,
            "sku": self.sku,
            "attributes": dict(self.attributes),
            "status": RowStatus.UNCHANGED.value,
        }


@dataclass(frozen=True)
class ReconcileResult:
    rows: list[VariationRow]
    untouched: list[UntouchedVariant]
    term_set: dict[str, list[str]]
    keys: list[str]  # match key per input row, same order as rows

    @property
    def variation_counts(self) -> ClassificationCounts:
        return ClassificationCounts.from_rows(self.rows)


@dataclass(frozen=True)
class PreviewResult:
    success: bool
    variations: list[dict[str, Any]] = field(default_factory=list)
    untouched: list[dict[str, Any]] = field(default_factory=list)
    attributes: list[dict[str, Any]] = field(default_factory=list)
    variation_counts: ClassificationCounts = field(default_factory=ClassificationCounts)
    attribute_counts: ClassificationCounts = field(default_factory=ClassificationCounts)
    message: str = ""
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "variations": self.variations,
            "untouched": self.untouched,
            "attributes": self.attributes,
            "summary": {
                "variation_counts": self.variation_counts.as_dict(),
                "attribute_counts": self.attribute_counts.as_dict(),
                "message": self.message,
            },
            "errors": self.errors,
        }


@dataclass
class ImportResult:
    success: bool = False
    created: list[int] = field(default_factory=list)
    updated: list[int] = field(default_factory=list)
    unchanged: list[int] = field(default_factory=list)
    converted: bool = False
    aborted: bool = False  # product-level failure, no variant was written
    errors: list[str] = field(default_factory=list)

    @property
    def effective_count(self) -> int:
        return len(self.created) + len(self.updated) + len(self.unchanged)

    @property
    def partial(self) -> bool:
        """Some rows went through, some failed."""
        return self.effective_count > 0 and bool(self.errors)

    def finalize(self) -> ImportResult:
        self.success = self.effective_count > 0 and not self.errors
        return self

    @property
    def message(self) -> str:
        parts = []
        if self.created:
            n = len(self.created)
            parts.append(f"Created {n} variation" + ("" if n == 1 else "s"))
        if self.updated:
            n = len(self.updated)
            parts.append(f"Updated {n} variation" + ("" if n == 1 else "s"))
        if not parts:
            if self.success:
                parts.append("All variations are up to date")
            else:
                parts.append("Import failed")
        message = ". ".join(parts) + "."
        if self.converted:
            message += " The product was automatically converted to a variable product."
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "created": list(self.created),
            "updated": list(self.updated),
            "unchanged": list(self.unchanged),
            "converted": self.converted,
            "aborted": self.aborted,
            "errors": list(self.errors),
            "partial": self.partial,
            "message": self.message,
        }
