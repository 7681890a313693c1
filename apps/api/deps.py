"""FastAPI dependencies for the statement store and import service.

The store is built once per process from settings and reused; tests swap
it out through ``app.dependency_overrides[get_statement_store]``.
"""
import threading

import structlog
from fastapi import Depends

from apps.api.core.config import Settings, get_settings
from apps.api.domains.reconciliation.service import StatementImportService
from apps.api.domains.reconciliation.store import (
    InMemoryStatementStore,
    StatementStore,
    SupabaseStatementStore,
)
from apps.api.supabase_client import get_supabase_client

logger = structlog.get_logger()

_store: StatementStore | None = None
_store_lock = threading.Lock()


def get_app_settings() -> Settings:
    from apps.api.core.config import settings

    return settings if settings is not None else get_settings()


def build_statement_store(settings: Settings) -> StatementStore:
    if settings.STATEMENT_STORE == "supabase":
        return SupabaseStatementStore(get_supabase_client(settings))
    return InMemoryStatementStore()


def get_statement_store(settings: Settings = Depends(get_app_settings)) -> StatementStore:
    """Process-wide statement store (double-checked lazy init)."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = build_statement_store(settings)
                logger.info("statement_store_initialized", backend=settings.STATEMENT_STORE)
    return _store


def get_import_service(
    store: StatementStore = Depends(get_statement_store),
    settings: Settings = Depends(get_app_settings),
) -> StatementImportService:
    return StatementImportService(store=store, sample_size=settings.IMPORT_SAMPLE_SIZE)
