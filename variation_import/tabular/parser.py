from __future__ import annotations

import csv
import logging
import re

from ..models.error_record import InputError
from ..models.results import ParseResult
from ..models.variation_row import VariationRow

"""Tabular parser: pasted CSV/TSV text -> VariationRow list.

Rules:
- First non-blank line is always the header row, never data.
- Delimiter is chosen once from the first line: tab if tabs outnumber
  commas, comma otherwise. Mixed delimiters are not supported.
- Splitting is line based, so quoted fields cannot contain newlines.
- Headers are trimmed and Title Cased; a Price column is required.
- Short rows are padded with "", long rows truncated. Never an error.
- A row whose cells are all blank is skipped but still consumes a row number.

parse() is a pure function of its input.
"""

__all__ = [
    "PRICE_COLUMN",
    "SKU_COLUMN",
    "attribute_names",
    "detect_delimiter",
    "normalize_header",
    "parse",
]

logger = logging.getLogger(__name__)

PRICE_COLUMN = "Price"
SKU_COLUMN = "Sku"
HEADER_ROW_NUMBER = 1


def detect_delimiter(text: str) -> str:
    """Return "\\t" when the first line has more tabs than commas, else ","."""
    first_line = text.split("\n", 1)[0]
    return "\t" if first_line.count("\t") > first_line.count(",") else ","


def normalize_header(raw: str) -> str:
    """Trim and Title Case a header ("package  TYPE " -> "Package  Type")."""
    return re.sub(r"\S+", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), raw.strip())


def _is_price(header: str) -> bool:
    return header.lower() == PRICE_COLUMN.lower()


def _is_sku(header: str) -> bool:
    return header.lower() == SKU_COLUMN.lower()


def attribute_names(headers: list[str]) -> list[str]:
    """Headers that are attributes (everything except Price and Sku), in order."""
    return [h for h in headers if not _is_price(h) and not _is_sku(h)]


def _split_records(text: str, delimiter: str) -> list[list[str]]:
    records: list[list[str]] = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        # one csv record per physical line
        records.append(next(csv.reader([line], delimiter=delimiter, quotechar='"')))
    return records


def _fit_to_headers(cells: list[str], width: int) -> list[str]:
    if len(cells) < width:
        return cells + [""] * (width - len(cells))
    return cells[:width]


def _build_row(headers: list[str], cells: list[str], row_number: int) -> VariationRow:
    price: str = ""
    sku: str | None = None
    attributes: dict[str, str] = {}
    for header, value in zip(headers, _fit_to_headers(cells, len(headers)), strict=True):
        value = value.strip()
        if _is_price(header):
            price = value
        elif _is_sku(header):
            sku = value
        else:
            attributes[header] = value
    return VariationRow.from_cells(row_number, price=price, sku=sku, attributes=attributes)


def parse(raw_text: str | None) -> ParseResult:
    """Parse raw delimited text into header set and rows.

    Returns:
        ParseResult with success=False and a single InputError when the input
        is empty, lacks a Price column or contains no data rows.
    """
    text = (raw_text or "").replace("\r\n", "\n").replace("\r", "\n").strip()
    if not text:
        return ParseResult(success=False, errors=[InputError.empty_input()])

    delimiter = detect_delimiter(text)
    records = _split_records(text, delimiter)
    if not records:
        return ParseResult(success=False, errors=[InputError.no_valid_rows()])

    headers = [normalize_header(h) for h in records[0]]
    if not any(_is_price(h) for h in headers):
        logger.debug("missing Price column, headers=%s", headers)
        return ParseResult(
            success=False,
            headers=headers,
            errors=[InputError.missing_required_column(PRICE_COLUMN)],
        )

    rows: list[VariationRow] = []
    for offset, cells in enumerate(records[1:], start=1):
        row_number = HEADER_ROW_NUMBER + offset
        if all(not c.strip() for c in cells):
            continue
        rows.append(_build_row(headers, cells, row_number))

    if not rows:
        return ParseResult(success=False, headers=headers, errors=[InputError.no_valid_rows()])

    logger.debug(
        "parsed %d rows, delimiter=%r, headers=%s", len(rows), delimiter, headers
    )
    return ParseResult(success=True, headers=headers, rows=rows)
