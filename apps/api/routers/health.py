"""Health check router: liveness + readiness.

Readiness runs a one-row statement query in a worker thread with a 2s
timeout, so a hung database connection reports "timeout" instead of
blocking the probe.
"""

import asyncio
import structlog
from fastapi import APIRouter, Depends

from apps.api.deps import get_statement_store
from apps.api.domains.reconciliation.store import StatementStore

router = APIRouter(tags=["health"])
logger = structlog.get_logger()

STORE_TIMEOUT_SECONDS = 2


@router.get("/health")
async def health_liveness():
    """Liveness probe: returns 200 if the API process is running."""
    return {"status": "healthy", "service": "api"}


@router.get("/health/ready")
async def health_readiness(store: StatementStore = Depends(get_statement_store)):
    """Readiness probe: checks that the statement store answers queries."""
    status = {
        "status": "healthy",
        "services": {
            "api": "up",
            "statement_store": "unknown",
        },
    }

    try:
        loop = asyncio.get_running_loop()
        await asyncio.wait_for(
            loop.run_in_executor(None, store.list_statements, None, 0, 1),
            timeout=STORE_TIMEOUT_SECONDS,
        )
        status["services"]["statement_store"] = "up"
    except asyncio.TimeoutError:
        status["services"]["statement_store"] = "timeout"
        status["status"] = "degraded"
        logger.warning("statement_store_health_timeout", timeout_s=STORE_TIMEOUT_SECONDS)
    except Exception as e:
        status["services"]["statement_store"] = "down"
        status["status"] = "degraded"
        logger.warning("statement_store_health_failed", error=str(e))

    return status
