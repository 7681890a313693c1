"""Statement storage: the port the import service persists through.

Two implementations:
- InMemoryStatementStore: process-local, used by tests and local dev.
- SupabaseStatementStore: PostgREST tables ``bank_statements`` and
  ``bank_statement_lines`` (see architecture/bank_statements.sql).

Both enforce uniqueness of ``file_hash`` and delete a statement's lines
together with the statement.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Sequence

import structlog
from postgrest.exceptions import APIError
from supabase import Client

from packages.statement_import import ParsedLine

logger = structlog.get_logger()

STATUS_PARSED = "parsed"

# Postgres SQLSTATE for unique_violation
_UNIQUE_VIOLATION = "23505"


class DuplicateStatementError(Exception):
    """A statement with the same file hash already exists."""

    def __init__(self, file_hash: str):
        self.file_hash = file_hash
        super().__init__(f"Statement with file hash {file_hash} already exists")


@dataclass(frozen=True)
class NewStatement:
    """Statement header as the import service hands it to the store."""

    bank: str
    original_file_name: str
    file_hash: str
    start_date: date
    end_date: date
    status: str = STATUS_PARSED
    account_number: Optional[str] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class BankStatement:
    id: int
    bank: str
    original_file_name: str
    file_hash: str
    start_date: date
    end_date: date
    status: str
    uploaded_at: datetime
    account_number: Optional[str] = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class BankStatementLine:
    id: int
    statement_id: int
    date: date
    amount: Decimal
    description: Optional[str] = None
    reference: Optional[str] = None
    balance: Optional[Decimal] = None
    external_id: Optional[str] = None
    # Reserved for reconciliation matching; never set on import
    match_score: Optional[float] = None
    matched_line_id: Optional[int] = None
    notes: Optional[str] = None


def to_decimal(value: Optional[float]) -> Optional[Decimal]:
    """Convert via str so 0.1 stays 0.1 instead of its binary expansion."""
    if value is None:
        return None
    return Decimal(str(value))


class StatementStore(ABC):
    """Persistence port for imported statements and their lines."""

    @abstractmethod
    def find_by_hash(self, file_hash: str) -> Optional[BankStatement]:
        pass

    @abstractmethod
    def create_statement_if_absent(self, statement: NewStatement) -> BankStatement:
        """
        Insert a statement header.

        Raises:
            DuplicateStatementError: if ``file_hash`` is already stored.
        """
        pass

    @abstractmethod
    def bulk_insert_lines(self, statement_id: int, lines: Sequence[ParsedLine]) -> int:
        """Insert all lines for a statement; returns the number inserted."""
        pass

    @abstractmethod
    def find_by_id(self, statement_id: int) -> Optional[BankStatement]:
        pass

    @abstractmethod
    def list_statements(
        self, bank: Optional[str], skip: int, take: int
    ) -> tuple[int, list[BankStatement]]:
        """Newest first; ``bank`` is a case-insensitive substring filter."""
        pass

    @abstractmethod
    def list_lines(self, statement_id: int) -> list[BankStatementLine]:
        """Lines ordered by (date, id)."""
        pass

    @abstractmethod
    def delete_by_id(self, statement_id: int) -> bool:
        """Delete a statement and its lines; False if it did not exist."""
        pass


class InMemoryStatementStore(StatementStore):
    """Thread-safe process-local store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._statements: dict[int, BankStatement] = {}
        self._lines: dict[int, BankStatementLine] = {}
        self._next_statement_id = 1
        self._next_line_id = 1

    def find_by_hash(self, file_hash: str) -> Optional[BankStatement]:
        with self._lock:
            for statement in self._statements.values():
                if statement.file_hash == file_hash:
                    return statement
        return None

    def create_statement_if_absent(self, statement: NewStatement) -> BankStatement:
        with self._lock:
            if any(s.file_hash == statement.file_hash for s in self._statements.values()):
                raise DuplicateStatementError(statement.file_hash)
            created = BankStatement(
                id=self._next_statement_id,
                bank=statement.bank,
                original_file_name=statement.original_file_name,
                file_hash=statement.file_hash,
                start_date=statement.start_date,
                end_date=statement.end_date,
                status=statement.status,
                uploaded_at=datetime.now(timezone.utc),
                account_number=statement.account_number,
                currency=statement.currency,
            )
            self._statements[created.id] = created
            self._next_statement_id += 1
        return created

    def bulk_insert_lines(self, statement_id: int, lines: Sequence[ParsedLine]) -> int:
        with self._lock:
            if statement_id not in self._statements:
                raise KeyError(f"Statement {statement_id} does not exist")
            for line in lines:
                stored = BankStatementLine(
                    id=self._next_line_id,
                    statement_id=statement_id,
                    date=line.date,
                    amount=to_decimal(line.amount),
                    description=line.description,
                    reference=line.reference,
                    balance=to_decimal(line.balance),
                    external_id=line.external_id,
                )
                self._lines[stored.id] = stored
                self._next_line_id += 1
        return len(lines)

    def find_by_id(self, statement_id: int) -> Optional[BankStatement]:
        with self._lock:
            return self._statements.get(statement_id)

    def list_statements(
        self, bank: Optional[str], skip: int, take: int
    ) -> tuple[int, list[BankStatement]]:
        with self._lock:
            items = list(self._statements.values())
        if bank:
            needle = bank.lower()
            items = [s for s in items if needle in s.bank.lower()]
        items.sort(key=lambda s: (s.uploaded_at, s.id), reverse=True)
        return len(items), items[skip : skip + take]

    def list_lines(self, statement_id: int) -> list[BankStatementLine]:
        with self._lock:
            lines = [line for line in self._lines.values() if line.statement_id == statement_id]
        return sorted(lines, key=lambda line: (line.date, line.id))

    def delete_by_id(self, statement_id: int) -> bool:
        with self._lock:
            if self._statements.pop(statement_id, None) is None:
                return False
            orphaned = [i for i, line in self._lines.items() if line.statement_id == statement_id]
            for line_id in orphaned:
                del self._lines[line_id]
        return True


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _escape_like(text: str) -> str:
    """Escape LIKE metacharacters so the filter matches literal text."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _optional_decimal(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def _statement_from_row(row: dict) -> BankStatement:
    return BankStatement(
        id=row["id"],
        bank=row["bank"],
        original_file_name=row["original_file_name"],
        file_hash=row["file_hash"],
        start_date=_parse_date(row["start_date"]),
        end_date=_parse_date(row["end_date"]),
        status=row["status"],
        uploaded_at=_parse_timestamp(row["uploaded_at"]),
        account_number=row.get("account_number"),
        currency=row.get("currency"),
    )


def _line_from_row(row: dict) -> BankStatementLine:
    return BankStatementLine(
        id=row["id"],
        statement_id=row["statement_id"],
        date=_parse_date(row["date"]),
        amount=Decimal(str(row["amount"])),
        description=row.get("description"),
        reference=row.get("reference"),
        balance=_optional_decimal(row.get("balance")),
        external_id=row.get("external_id"),
        match_score=row.get("match_score"),
        matched_line_id=row.get("matched_line_id"),
        notes=row.get("notes"),
    )


class SupabaseStatementStore(StatementStore):
    """Store backed by Supabase/PostgREST.

    The unique index on ``file_hash`` and the ``ON DELETE CASCADE`` foreign key
    on ``statement_id`` live in the database; this class relies on them.
    """

    STATEMENTS_TABLE = "bank_statements"
    LINES_TABLE = "bank_statement_lines"

    def __init__(self, client: Client):
        self.client = client

    def find_by_hash(self, file_hash: str) -> Optional[BankStatement]:
        result = (
            self.client.table(self.STATEMENTS_TABLE)
            .select("*")
            .eq("file_hash", file_hash)
            .limit(1)
            .execute()
        )
        return _statement_from_row(result.data[0]) if result.data else None

    def create_statement_if_absent(self, statement: NewStatement) -> BankStatement:
        payload = {
            "bank": statement.bank,
            "account_number": statement.account_number,
            "currency": statement.currency,
            "original_file_name": statement.original_file_name,
            "file_hash": statement.file_hash,
            "start_date": statement.start_date.isoformat(),
            "end_date": statement.end_date.isoformat(),
            "status": statement.status,
        }
        try:
            result = self.client.table(self.STATEMENTS_TABLE).insert(payload).execute()
        except APIError as e:
            if e.code == _UNIQUE_VIOLATION:
                raise DuplicateStatementError(statement.file_hash) from e
            raise
        return _statement_from_row(result.data[0])

    def bulk_insert_lines(self, statement_id: int, lines: Sequence[ParsedLine]) -> int:
        if not lines:
            return 0
        payload = [
            {
                "statement_id": statement_id,
                "date": line.date.isoformat(),
                "description": line.description,
                "reference": line.reference,
                "amount": str(to_decimal(line.amount)),
                "balance": None if line.balance is None else str(to_decimal(line.balance)),
                "external_id": line.external_id,
                "match_score": None,
                "matched_line_id": None,
                "notes": None,
            }
            for line in lines
        ]
        result = self.client.table(self.LINES_TABLE).insert(payload).execute()
        return len(result.data)

    def find_by_id(self, statement_id: int) -> Optional[BankStatement]:
        result = (
            self.client.table(self.STATEMENTS_TABLE)
            .select("*")
            .eq("id", statement_id)
            .limit(1)
            .execute()
        )
        return _statement_from_row(result.data[0]) if result.data else None

    def list_statements(
        self, bank: Optional[str], skip: int, take: int
    ) -> tuple[int, list[BankStatement]]:
        query = self.client.table(self.STATEMENTS_TABLE).select("*", count="exact")
        if bank:
            query = query.ilike("bank", f"%{_escape_like(bank)}%")
        result = (
            query.order("uploaded_at", desc=True)
            .order("id", desc=True)
            .range(skip, skip + take - 1)
            .execute()
        )
        items = [_statement_from_row(row) for row in result.data]
        return result.count or 0, items

    def list_lines(self, statement_id: int) -> list[BankStatementLine]:
        result = (
            self.client.table(self.LINES_TABLE)
            .select("*")
            .eq("statement_id", statement_id)
            .order("date")
            .order("id")
            .execute()
        )
        return [_line_from_row(row) for row in result.data]

    def delete_by_id(self, statement_id: int) -> bool:
        # bank_statement_lines rows go with it via ON DELETE CASCADE
        result = (
            self.client.table(self.STATEMENTS_TABLE)
            .delete()
            .eq("id", statement_id)
            .execute()
        )
        deleted = bool(result.data)
        if deleted:
            logger.debug("statement_row_deleted", statement_id=statement_id)
        return deleted
