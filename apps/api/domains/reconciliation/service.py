"""Reconciliation import service: statement import, listing and deletion.

The import runs start to finish in the caller's request:

    read rows -> pick importer -> parse -> re-normalize lines
    -> hash raw bytes -> dedup -> persist statement + lines -> summary

Any step can reject the upload; nothing is persisted unless every step
before persistence succeeded. The pre-insert hash lookup is only a fast
path: the store's unique constraint on ``file_hash`` is what actually
prevents duplicates, and both paths raise the same ConflictError.
"""

import hashlib
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

import structlog

from apps.api.core.errors import ConflictError, NotFoundError, ValidationError
from apps.api.domains.reconciliation.schemas import (
    DeleteResponse,
    ImportSummary,
    StatementLineOut,
    StatementLinesOut,
    StatementListOut,
    StatementOut,
)
from apps.api.domains.reconciliation.store import (
    DuplicateStatementError,
    NewStatement,
    StatementStore,
)
from packages.statement_import import (
    ImporterRegistry,
    ParsedLine,
    StatementValidationError,
    default_registry,
    read_rows,
    to_date,
    to_number,
)

logger = structlog.get_logger()

DEFAULT_SAMPLE_SIZE = 10
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class UploadedFile:
    """An upload already decoded by the transport layer."""

    content: bytes
    file_name: str
    mimetype: str = ""


def compute_file_hash(content: bytes) -> str:
    """SHA256 hex digest of the raw upload: the statement's idempotency key.

    Hashing bytes rather than parsed lines means a byte-identical re-upload is
    rejected even after an importer changes how it reads the file.
    """
    return hashlib.sha256(content).hexdigest()


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_parsed_line(line: ParsedLine) -> Optional[ParsedLine]:
    """Re-validate an importer's output; None if the line is unusable.

    The date must be a calendar date and the amount finite. Blank text
    fields become None.
    """
    line_date = line.date
    if isinstance(line_date, datetime):
        line_date = line_date.date()
    elif not isinstance(line_date, date):
        line_date = to_date(line_date)

    amount = to_number(line.amount)
    if line_date is None or amount is None or not math.isfinite(amount):
        return None

    return ParsedLine(
        date=line_date,
        amount=amount,
        description=_blank_to_none(line.description),
        reference=_blank_to_none(line.reference),
        balance=to_number(line.balance),
        external_id=_blank_to_none(line.external_id),
    )


def clamp_page(skip: int, take: int) -> tuple[int, int]:
    """skip >= 0, 1 <= take <= MAX_PAGE_SIZE."""
    return max(0, skip), min(MAX_PAGE_SIZE, max(1, take))


class StatementImportService:
    """Imports bank statements and serves the stored results."""

    def __init__(
        self,
        store: StatementStore,
        registry: Optional[ImporterRegistry] = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ):
        self.store = store
        self.registry = registry if registry is not None else default_registry()
        self.sample_size = sample_size

    def import_statement(
        self,
        upload: UploadedFile,
        bank: Optional[str] = None,
        account_number: Optional[str] = None,
        currency: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ImportSummary:
        """Import one uploaded statement file.

        Raises:
            ValidationError: empty file, no rows, no importer, or no valid lines.
            ConflictError: the same bytes were imported before.
        """
        if not upload.content:
            raise ValidationError("Empty file")

        log = logger.bind(file_name=upload.file_name, size=len(upload.content))
        log.info("statement_import_started", bank=bank)

        try:
            rows = read_rows(upload.content, upload.file_name, upload.mimetype)
            if not rows:
                raise ValidationError("No rows found")

            sample = rows[: self.sample_size]
            importer = self.registry.select(upload.file_name, sample, bank=bank)
            log.info("importer_selected", importer=importer.bank, rows=len(rows))

            parsed = importer.parse(rows)
        except StatementValidationError as e:
            log.info("statement_import_rejected", reason=str(e))
            raise ValidationError(str(e)) from e

        lines = [n for n in (normalize_parsed_line(p) for p in parsed) if n is not None]
        if not lines:
            log.info("statement_import_rejected", reason="no valid lines")
            raise ValidationError("No valid lines generated")

        file_hash = compute_file_hash(upload.content)
        if self.store.find_by_hash(file_hash) is not None:
            log.info("statement_duplicate", file_hash=file_hash)
            raise ConflictError("File already imported (duplicate hash)")

        dates = [line.date for line in lines]
        period_start = start_date or min(dates)
        period_end = end_date or max(dates)
        if period_start > period_end:
            raise ValidationError("start_date must not be after end_date")

        new_statement = NewStatement(
            bank=bank or importer.bank,
            account_number=_blank_to_none(account_number),
            currency=_blank_to_none(currency),
            original_file_name=upload.file_name,
            file_hash=file_hash,
            start_date=period_start,
            end_date=period_end,
        )

        try:
            statement = self.store.create_statement_if_absent(new_statement)
        except DuplicateStatementError as e:
            # Lost the race against a concurrent upload of the same bytes
            log.info("statement_duplicate", file_hash=file_hash, concurrent=True)
            raise ConflictError("File already imported (duplicate hash)") from e

        try:
            count = self.store.bulk_insert_lines(statement.id, lines)
        except Exception as insert_error:
            # No statement may outlive a failed line insert
            log.error("statement_lines_insert_failed", statement_id=statement.id)
            try:
                self.store.delete_by_id(statement.id)
            except Exception:
                log.error(
                    "statement_rollback_failed",
                    statement_id=statement.id,
                    file_hash=file_hash,
                    exc_info=True,
                )
            raise insert_error

        log.info(
            "statement_imported",
            statement_id=statement.id,
            bank=statement.bank,
            lines=count,
            skipped=len(parsed) - len(lines),
        )
        return ImportSummary(
            statement_id=statement.id,
            bank=statement.bank,
            start_date=statement.start_date,
            end_date=statement.end_date,
            lines_imported=count,
            status=statement.status,
        )

    def list_statements(
        self,
        bank: Optional[str] = None,
        skip: int = 0,
        take: int = DEFAULT_PAGE_SIZE,
    ) -> StatementListOut:
        skip, take = clamp_page(skip, take)
        total, items = self.store.list_statements(bank or None, skip, take)
        return StatementListOut(
            total=total,
            items=[StatementOut.model_validate(s) for s in items],
        )

    def get_statement_lines(self, statement_id: int) -> StatementLinesOut:
        statement = self.store.find_by_id(statement_id)
        if statement is None:
            raise NotFoundError("Statement not found")
        lines = self.store.list_lines(statement_id)
        return StatementLinesOut(
            statement=StatementOut.model_validate(statement),
            lines=[StatementLineOut.model_validate(line) for line in lines],
        )

    def delete_statement(self, statement_id: int) -> DeleteResponse:
        if self.store.find_by_id(statement_id) is None:
            raise NotFoundError("Statement not found")
        self.store.delete_by_id(statement_id)
        logger.info("statement_deleted", statement_id=statement_id)
        return DeleteResponse(deleted=True)
