"""Catalog collaborator: interface and in-memory implementation."""

from .base import Catalog, CatalogError
from .memory import InMemoryCatalog

__all__ = [
    "Catalog",
    "CatalogError",
    "InMemoryCatalog",
]
