# packages/statement_import/importers/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Union

RawRow = Dict[str, Union[str, int, float, None]]


@dataclass
class ParsedLine:
    """One transaction line produced by an importer."""

    date: date
    amount: float  # sign convention is bank specific
    description: Optional[str] = None
    reference: Optional[str] = None
    balance: Optional[float] = None
    external_id: Optional[str] = None  # source-provided dedup key


class BankImporter(ABC):
    """
    Strategy that recognizes and parses one bank's export format.

    Subclasses set ``bank`` to the display name callers use to force the
    importer, e.g. "Bancolombia" or "Generic".
    """

    bank: str

    @abstractmethod
    def can_handle(self, file_name: str, sample: List[RawRow]) -> bool:
        """
        Decide from the file name and the first rows whether this importer
        understands the file.

        Must not raise; return False when unsure.
        """
        pass

    @abstractmethod
    def parse(self, rows: List[RawRow]) -> List[ParsedLine]:
        """
        Convert raw rows into parsed lines.

        Raises:
            StatementValidationError: if the rows are structurally unusable.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bank={self.bank!r})"
