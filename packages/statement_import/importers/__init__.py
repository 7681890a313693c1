from .base import BankImporter, ParsedLine, RawRow
from .generic import GenericImporter
from .registry import ImporterRegistry, default_registry

__all__ = [
    "BankImporter",
    "ParsedLine",
    "RawRow",
    "GenericImporter",
    "ImporterRegistry",
    "default_registry",
]
