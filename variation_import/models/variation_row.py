from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .error_record import RowError

"""VariationRow model for the bulk variation importer.

A VariationRow is one parsed data line of the pasted/uploaded input after
header normalisation. The parser builds it, the validator attaches errors and
the matcher attaches the reconciliation status.
"""

__all__ = [
    "RowStatus",
    "VariationRow",
    "sanitize_price",
]

_NUMERIC_PREFIX = re.compile(r"\d+(?:\.\d*)?|\.\d+")


class RowStatus(Enum):
    """Reconciliation outcome for a row.

    - NEW: no existing variant has the same match key
    - UPDATE: existing variant found, price differs
    - UNCHANGED: existing variant found, price equal within tolerance
    """
    NEW = "new"
    UPDATE = "update"
    UNCHANGED = "unchanged"


def sanitize_price(raw: Any) -> float:
    """Turn a raw price cell into a float.

    Everything except digits and the decimal point is dropped ("$1,275.00"
    -> "1275.00"), then the leading numeric prefix is parsed. Anything that
    leaves no number behind becomes 0.0, which the validator rejects.
    """
    if raw is None:
        return 0.0
    cleaned = re.sub(r"[^0-9.]", "", str(raw))
    match = _NUMERIC_PREFIX.match(cleaned)
    if match is None:
        return 0.0
    return float(match.group(0))


@dataclass
class VariationRow:
    """One input line describing a variant.

    row_number counts the header as row 1, so the first data line is row 2.
    It is only used in messages, never as identity.
    """
    row_number: int
    price: float
    attributes: dict[str, str] = field(default_factory=dict)  # display name -> term, column order
    sku: str | None = None  # None = not specified
    errors: list[RowError] = field(default_factory=list)
    # Set by the matcher
    status: RowStatus | None = None
    existing_id: int | None = None
    old_price: float | None = None

    def __post_init__(self) -> None:
        if self.row_number < 0:
            raise ValueError(f"row_number must be >= 0, got {self.row_number}")
        if self.sku is not None:
            self.sku = self.sku.strip() or None
        self.price = float(self.price)

    @classmethod
    def from_cells(
        cls,
        row_number: int,
        price: Any,
        sku: str | None,
        attributes: dict[str, str],
    ) -> VariationRow:
        """Build a row from raw cell text (price sanitised, values trimmed)."""
        return cls(
            row_number=row_number,
            price=sanitize_price(price),
            sku=sku,
            attributes={name: value.strip() for name, value in attributes.items()},
        )

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors]

    def add_error(self, error: RowError) -> None:
        self.errors.append(error)

    def to_dict(self) -> dict[str, Any]:
        """Preview representation of the row."""
        return {
            "sku": self.sku,
            "price": self.price,
            "attributes": dict(self.attributes),
            "row_number": self.row_number,
            "errors": self.error_messages,
            "status": self.status.value if self.status is not None else None,
            "existing_id": self.existing_id,
            "old_price": self.old_price,
        }
