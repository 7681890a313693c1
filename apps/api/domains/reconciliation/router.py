"""Reconciliation router: bank statement import and statement admin.

Endpoints:
    POST   /reconciliation/import                  multipart: file, bank?, ...
    GET    /reconciliation/statements              ?bank=&skip=&take=
    GET    /reconciliation/statements/{id}/lines
    DELETE /reconciliation/statements/{id}
"""

from datetime import date
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from apps.api.core.config import Settings
from apps.api.deps import get_app_settings, get_import_service
from apps.api.domains.reconciliation.schemas import (
    DeleteResponse,
    ImportSummary,
    StatementLinesOut,
    StatementListOut,
)
from apps.api.domains.reconciliation.service import (
    DEFAULT_PAGE_SIZE,
    StatementImportService,
    UploadedFile,
)

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])
logger = structlog.get_logger()


def _parse_int(value: Optional[str], default: int) -> int:
    """Lenient query int: anything unparseable falls back to the default."""
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


@router.post("/import", response_model=ImportSummary)
async def import_statement(
    file: UploadFile = File(...),
    bank: Optional[str] = Form(None),
    account_number: Optional[str] = Form(None),
    currency: Optional[str] = Form(None),
    start_date: Optional[date] = Form(None),
    end_date: Optional[date] = Form(None),
    service: StatementImportService = Depends(get_import_service),
    settings: Settings = Depends(get_app_settings),
):
    """Import a CSV or Excel bank statement.

    ``bank`` forces a specific importer by name (case-insensitive); without
    it the importer is detected from the file's headers.
    """
    contents = await file.read()
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large (max {settings.MAX_UPLOAD_BYTES} bytes)",
        )

    upload = UploadedFile(
        content=contents,
        file_name=file.filename or "",
        mimetype=file.content_type or "",
    )
    return service.import_statement(
        upload,
        bank=(bank or "").strip() or None,
        account_number=account_number,
        currency=currency,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/statements", response_model=StatementListOut)
async def list_statements(
    bank: Optional[str] = None,
    skip: Optional[str] = "0",
    take: Optional[str] = str(DEFAULT_PAGE_SIZE),
    service: StatementImportService = Depends(get_import_service),
):
    """Paged statements, newest upload first, optionally filtered by bank."""
    return service.list_statements(
        bank=bank,
        skip=_parse_int(skip, 0),
        take=_parse_int(take, DEFAULT_PAGE_SIZE),
    )


@router.get("/statements/{statement_id}/lines", response_model=StatementLinesOut)
async def get_statement_lines(
    statement_id: int,
    service: StatementImportService = Depends(get_import_service),
):
    """A statement and its lines ordered by date, then id."""
    return service.get_statement_lines(statement_id)


@router.delete("/statements/{statement_id}", response_model=DeleteResponse)
async def delete_statement(
    statement_id: int,
    service: StatementImportService = Depends(get_import_service),
):
    """Delete a statement together with all of its lines."""
    return service.delete_statement(statement_id)
