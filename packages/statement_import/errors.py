"""Exceptions raised by the statement import engine."""


class StatementImportError(Exception):
    """Base error for the statement import engine."""


class StatementValidationError(StatementImportError, ValueError):
    """The uploaded file cannot be turned into statement lines.

    Callers should fix the file and resubmit it.
    """
