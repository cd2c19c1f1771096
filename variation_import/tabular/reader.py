from __future__ import annotations

from pathlib import Path

import pandas as pd

"""Input file reader.

Spreadsheets (.xlsx / .xls) are read with pandas and re-emitted as
tab-delimited text so that parse() sees exactly what a user would paste
from the sheet. Everything else is read as UTF-8 text.
"""

__all__ = [
    "SPREADSHEET_SUFFIXES",
    "InputFileError",
    "read_input_file",
    "spreadsheet_to_text",
]

SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xls"})


class InputFileError(Exception):
    """Raised when an input file is missing or cannot be read."""


def spreadsheet_to_text(path: Path) -> str:
    """Read the first sheet of a workbook as tab-delimited text.

    All cells are read as strings and empty cells become "" (no NaN), so
    prices like "19.90" or SKUs like "007" keep their spelling.
    """
    try:
        df = pd.read_excel(path, sheet_name=0, header=None, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise InputFileError(f"failed reading spreadsheet {path}: {e}") from e
    # the parser is line based; embedded newlines would split a row
    df = df.replace(r"[\r\n]+", " ", regex=True)
    return df.to_csv(sep="\t", header=False, index=False, lineterminator="\n")


def read_input_file(path: Path) -> str:
    if not path.exists():
        raise InputFileError(f"input file not found: {path}")
    if path.suffix.lower() in SPREADSHEET_SUFFIXES:
        return spreadsheet_to_text(path)
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InputFileError(f"failed reading {path}: {e}") from e
