"""
Statement Import Engine

Bank statement decoding, bank detection, and line normalization.
"""

__version__ = "0.1.0"

from .coercion import normalize_header, to_date, to_number
from .errors import StatementImportError, StatementValidationError
from .file_reader import detect_kind, read_rows
from .importers import (
    BankImporter,
    GenericImporter,
    ImporterRegistry,
    ParsedLine,
    RawRow,
    default_registry,
)

__all__ = [
    "normalize_header",
    "to_date",
    "to_number",
    "StatementImportError",
    "StatementValidationError",
    "detect_kind",
    "read_rows",
    "BankImporter",
    "GenericImporter",
    "ImporterRegistry",
    "ParsedLine",
    "RawRow",
    "default_registry",
]
