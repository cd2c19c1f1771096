"""Bulk product variation import.

Parses pasted CSV/TSV rows (or a spreadsheet), validates them, reconciles
them against a product's existing variations and applies the result
through a catalog.
"""

from .catalog import Catalog, CatalogError, InMemoryCatalog
from .services.workflow import parse_and_preview, run_import

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "CatalogError",
    "InMemoryCatalog",
    "parse_and_preview",
    "run_import",
]
