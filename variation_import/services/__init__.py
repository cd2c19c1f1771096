"""Import pipeline services: indexing, validation, matching, application."""

from .importer import ImportAborted, VariationImporter
from .indexer import attribute_preview, index_attribute_terms
from .matcher import Matcher, build_match_key
from .validator import Validator
from .workflow import parse_and_preview, run_import

__all__ = [
    "ImportAborted",
    "Matcher",
    "Validator",
    "VariationImporter",
    "attribute_preview",
    "build_match_key",
    "index_attribute_terms",
    "parse_and_preview",
    "run_import",
]
