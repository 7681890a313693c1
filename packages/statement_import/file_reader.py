"""
Decode uploaded statement files into raw rows.

CSV and spreadsheet uploads both come out as a list of header -> value dicts
with trimmed string cells, so importers have one code path for both.
"""

import io
import logging
from datetime import date, datetime
from typing import Any, List, Literal, Optional

import pandas as pd

from .errors import StatementValidationError
from .importers.base import RawRow

logger = logging.getLogger(__name__)

FileKind = Literal["csv", "excel"]

_EXCEL_EXTENSIONS = (".xlsx", ".xls")


def detect_kind(file_name: Optional[str], mimetype: Optional[str] = None) -> FileKind:
    """Decide csv vs excel from the extension, then the mimetype; csv by default."""
    name = (file_name or "").lower()
    mime = (mimetype or "").lower()

    if name.endswith(".csv"):
        return "csv"
    if name.endswith(_EXCEL_EXTENSIONS):
        return "excel"
    if "spreadsheet" in mime:
        return "excel"
    if "csv" in mime or "text" in mime:
        return "csv"
    return "csv"


def _clean_cell(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _display_cell(value: Any) -> Optional[str]:
    """Render a spreadsheet cell the way the sheet shows it."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        if value.hour == value.minute == value.second == 0:
            return value.date().isoformat()
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return _clean_cell(value)


def _frame_to_rows(df: pd.DataFrame) -> List[RawRow]:
    rows: List[RawRow] = []
    for record in df.to_dict(orient="records"):
        if all(v is None for v in record.values()):
            continue
        rows.append(record)
    return rows


def _read_csv(content: bytes) -> List[RawRow]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise StatementValidationError(f"CSV file is not valid UTF-8: {e}") from e

    try:
        header = pd.read_csv(io.StringIO(text), nrows=0)
    except pd.errors.EmptyDataError:
        return []
    width = len(header.columns)

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            # rows wider than the header keep only the header's columns
            on_bad_lines=lambda fields: fields[:width],
        )
    except (pd.errors.ParserError, ValueError) as e:
        raise StatementValidationError(f"Could not parse CSV file: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    df = df.apply(lambda col: col.map(_clean_cell)).astype(object)
    df = df.where(df.notna(), None)
    return _frame_to_rows(df)


def _read_excel(content: bytes) -> List[RawRow]:
    try:
        workbook = pd.ExcelFile(io.BytesIO(content))
    except Exception as e:
        raise StatementValidationError(f"Could not read spreadsheet: {e}") from e

    with workbook:
        if not workbook.sheet_names:
            raise StatementValidationError("Spreadsheet contains no sheets")
        # Only the first worksheet carries the statement
        sheet = workbook.sheet_names[0]
        try:
            raw = workbook.parse(sheet, header=None, dtype=object)
        except Exception as e:
            raise StatementValidationError(f"Could not read sheet {sheet!r}: {e}") from e

    raw = raw.dropna(how="all")
    if raw.empty:
        return []

    cells = raw.apply(lambda col: col.map(_display_cell)).astype(object)
    cells = cells.where(cells.notna(), None)

    header_values = cells.iloc[0].tolist()
    headers = [
        h if h is not None else f"column_{idx + 1}"
        for idx, h in enumerate(header_values)
    ]
    body = cells.iloc[1:].copy()
    body.columns = headers
    return _frame_to_rows(body)


def read_rows(
    content: bytes, file_name: Optional[str], mimetype: Optional[str] = None
) -> List[RawRow]:
    """
    Decode an uploaded statement into raw rows.

    Raises:
        StatementValidationError: if the file cannot be decoded.
    """
    kind = detect_kind(file_name, mimetype)
    rows = _read_excel(content) if kind == "excel" else _read_csv(content)
    logger.debug("Read %d raw rows from %s (%s)", len(rows), file_name, kind)
    return rows
