"""
Generic importer for statements with common column names.

Recognizes English and Spanish headers (date/fecha, description/descripcion,
reference/ref, amount/monto/valor, balance/saldo) in any case or accenting.
Registered last so bank-specific importers get the first chance at a file.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from ..coercion import normalize_header, to_date, to_number
from ..errors import StatementValidationError
from .base import BankImporter, ParsedLine, RawRow

logger = logging.getLogger(__name__)

_DATE_HEADER = re.compile(r"(^|_)(date|fecha)(_|$)")
_AMOUNT_HEADER = re.compile(r"(^|_)(amount|monto|valor)(_|$)")

# Ordered aliases per logical field; the first present value wins
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "date": ("date", "fecha"),
    "description": ("description", "descripcion", "detalle", "concepto"),
    "reference": ("reference", "ref", "referencia", "nro_documento"),
    "amount": ("amount", "monto", "valor", "importe", "debito_credito"),
    "balance": ("balance", "saldo"),
}


def _resolve(lookup: Dict[str, Any], field: str) -> Any:
    for alias in FIELD_ALIASES[field]:
        value = lookup.get(alias)
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class GenericImporter(BankImporter):
    """Fallback importer driven purely by header names."""

    bank = "Generic"

    def can_handle(self, file_name: str, sample: List[RawRow]) -> bool:
        if not sample:
            return False
        headers = [normalize_header(h) for h in sample[0].keys()]
        has_date = any(_DATE_HEADER.search(h) for h in headers)
        has_amount = any(_AMOUNT_HEADER.search(h) for h in headers)
        return has_date and has_amount

    def parse(self, rows: List[RawRow]) -> List[ParsedLine]:
        lines: List[ParsedLine] = []
        skipped = 0

        for row in rows:
            lookup = {normalize_header(k): v for k, v in row.items()}

            line_date = to_date(_resolve(lookup, "date"))
            amount = to_number(_resolve(lookup, "amount"))
            if line_date is None or amount is None:
                skipped += 1
                continue

            lines.append(
                ParsedLine(
                    date=line_date,
                    amount=amount,
                    description=_as_text(_resolve(lookup, "description")),
                    reference=_as_text(_resolve(lookup, "reference")),
                    balance=to_number(_resolve(lookup, "balance")),
                )
            )

        if skipped:
            logger.debug("Generic importer skipped %d unusable rows", skipped)

        if not lines:
            raise StatementValidationError(
                "No valid lines detected by the generic importer"
            )
        return lines
