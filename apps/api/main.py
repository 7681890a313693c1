"""Statement Import API: FastAPI entry point.

Serves the reconciliation import domain under /api/v1 with RFC 7807
error responses and structlog logging configured at startup.
"""

import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import get_settings, settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging
from apps.api.domains.reconciliation.router import router as reconciliation_router
from apps.api.routers import health

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup/shutdown hooks."""
    active = settings or get_settings()
    setup_logging(log_level=active.log_level, json_output=active.json_logs)
    logger.info(
        "app_starting",
        version=active.APP_VERSION,
        statement_store=active.STATEMENT_STORE,
    )
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Statement Import API",
    description="Imports bank statement exports into a deduplicated ledger of statement lines.",
    version=settings.APP_VERSION if settings else "0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if settings else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reconciliation_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
