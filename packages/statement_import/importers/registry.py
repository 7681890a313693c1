"""
Ordered registry of bank importers.

Selection prefers an explicitly named bank, then asks each importer in
registration order whether it recognizes the file. Register bank-specific
importers before GenericImporter so an exact format match beats the fallback.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..errors import StatementValidationError
from .base import BankImporter, RawRow
from .generic import GenericImporter

logger = logging.getLogger(__name__)


class ImporterRegistry:
    """Holds importers in the order they should be tried."""

    def __init__(self, importers: Optional[Iterable[BankImporter]] = None):
        self._importers: List[BankImporter] = []
        for importer in importers or ():
            self.register(importer)

    def register(self, importer: BankImporter) -> None:
        self._importers.append(importer)

    @property
    def importers(self) -> Tuple[BankImporter, ...]:
        return tuple(self._importers)

    def find_by_bank(self, bank: str) -> Optional[BankImporter]:
        """Case-insensitive lookup by display name."""
        wanted = bank.strip().lower()
        for importer in self._importers:
            if importer.bank.lower() == wanted:
                return importer
        return None

    def _accepts(self, importer: BankImporter, file_name: str, sample: List[RawRow]) -> bool:
        try:
            return bool(importer.can_handle(file_name, sample))
        except Exception:
            # can_handle is meant to be total; an exception here is a bug in the importer
            logger.warning(
                "Importer %r raised in can_handle; treating as no match",
                importer,
                exc_info=True,
            )
            return False

    def select(
        self,
        file_name: str,
        sample: List[RawRow],
        bank: Optional[str] = None,
    ) -> BankImporter:
        """
        Pick the importer for a file.

        An explicit bank that matches a registered importer always wins, even
        when another importer's heuristic would also accept the file. An
        unknown bank name falls back to heuristic detection.

        Raises:
            StatementValidationError: if no importer recognizes the file.
        """
        if bank:
            chosen = self.find_by_bank(bank)
            if chosen is not None:
                return chosen
            logger.info("No importer named %r; falling back to detection", bank)

        for importer in self._importers:
            if self._accepts(importer, file_name, sample):
                return importer

        raise StatementValidationError("No importer found that can handle this file")


def default_registry() -> ImporterRegistry:
    """Fresh registry with the built-in importers."""
    return ImporterRegistry([GenericImporter()])
