"""
Value coercion helpers for bank statement cells.

Every function here is total: bad input yields None instead of raising, so the
caller decides whether a row without a usable date or amount is dropped.
"""

import math
import numbers
import re
import unicodedata
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import pandas as pd

_NON_NUMERIC = re.compile(r"[^0-9,.\-]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")

# 2024-03-01, 2024/03/01, and the "2024-03-01 00:00:00" form spreadsheets display
_ISO_DATE = re.compile(
    r"^(\d{4})[-/](\d{2})[-/](\d{2})(?:[ T]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?$"
)
# 31/01/2024, 31-01-2024 (always day first)
_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


def normalize_header(header: Any) -> str:
    """
    Canonicalize a raw column header into a lookup token.

    "Descripción", "descripcion" and "DESCRIPCION" all become "descripcion";
    "Fecha Válor" becomes "fecha_valor".
    """
    decomposed = unicodedata.normalize("NFD", str(header))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("_", stripped).strip("_").lower()


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # list-likes are never scalar cell values
        return False


def to_number(value: Any) -> Optional[float]:
    """
    Parse an amount written with either decimal convention.

    When both "," and "." appear the rightmost one is the decimal mark, so
    "1.234,56" and "1,234.56" both give 1234.56. A lone "," is a decimal mark.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (numbers.Real, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip()
    if not text:
        return None

    cleaned = _NON_NUMERIC.sub("", text)
    has_comma = "," in cleaned
    has_dot = "." in cleaned
    if has_comma and has_dot:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif has_comma:
        cleaned = cleaned.replace(",", ".", 1)

    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _safe_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def to_date(value: Any) -> Optional[date]:
    """
    Parse a statement date into a calendar date.

    ISO forms are read as year-month-day and DD/MM/YYYY forms are always read
    day first, so "31/01/2024" and "2024-01-31" agree. US-style MM/DD/YYYY
    exports with both parts <= 12 are misread.
    """
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    match = _ISO_DATE.match(text)
    if match:
        return _safe_date(match.group(1), match.group(2), match.group(3))

    match = _DAY_FIRST_DATE.match(text)
    if match:
        return _safe_date(match.group(3), match.group(2), match.group(1))

    # bare numbers are amounts or ids, not dates
    if text.lstrip("-").isdigit():
        return None

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()
