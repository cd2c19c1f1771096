"""Tabular input: delimited text parsing and input file reading."""

from .parser import attribute_names, detect_delimiter, normalize_header, parse
from .reader import InputFileError, read_input_file

__all__ = [
    "InputFileError",
    "attribute_names",
    "detect_delimiter",
    "normalize_header",
    "parse",
    "read_input_file",
]
