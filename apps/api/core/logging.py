"""Structured logging with structlog.

Configures JSON logging for production and colorized console for dev.
The import engine under packages/ logs through the stdlib ``logging``
module; those records go through the same root handler.

Usage:
    import structlog
    logger = structlog.get_logger()
    logger.info("statement_imported", statement_id=42, lines=120)
"""

import logging
import sys

import structlog


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Python log level string (DEBUG, INFO, WARNING, ERROR).
        json_output: If True, use JSON renderer (production). If False,
                     use colorized console renderer (development).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger("packages.statement_import").setLevel(level)
    # httpx logs every PostgREST call at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
