"""Pydantic schemas for the reconciliation import domain."""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ImportSummary(BaseModel):
    """Result of a successful statement import."""

    statement_id: int
    bank: str
    start_date: dt.date
    end_date: dt.date
    lines_imported: int
    status: str


class StatementOut(BaseModel):
    """A stored statement header."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    bank: str
    account_number: Optional[str] = None
    currency: Optional[str] = None
    original_file_name: str
    file_hash: str
    start_date: dt.date
    end_date: dt.date
    status: str
    uploaded_at: dt.datetime


class StatementLineOut(BaseModel):
    """A stored statement line."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    statement_id: int
    date: dt.date
    description: Optional[str] = None
    reference: Optional[str] = None
    amount: Decimal
    balance: Optional[Decimal] = None
    external_id: Optional[str] = None
    match_score: Optional[float] = None
    matched_line_id: Optional[int] = None
    notes: Optional[str] = None


class StatementListOut(BaseModel):
    """One page of statements plus the unpaged total."""

    total: int
    items: list[StatementOut]


class StatementLinesOut(BaseModel):
    statement: StatementOut
    lines: list[StatementLineOut]


class DeleteResponse(BaseModel):
    deleted: bool = True
