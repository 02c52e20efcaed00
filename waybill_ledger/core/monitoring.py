"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for tracing the
waybill server, including:
- API endpoint tracing
- Database operation monitoring
- Request metrics and error tracking

Logfire stays off unless ``LOGFIRE_ENABLED`` is set and a ``LOGFIRE_TOKEN``
is available. Until it has been configured the ``log_*`` helpers do nothing.
"""

import os
from typing import Optional

import logfire
from fastapi import FastAPI
from logfire import SamplingOptions
from sqlalchemy.ext.asyncio import AsyncEngine

from waybill_ledger.core.logging_config import get_logger

logger = get_logger(__name__)

_TRUTHY = ("true", "1", "yes")

# Logfire configuration from environment
LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in _TRUTHY
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "waybill-ledger")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "waybill-ledger-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.0.0")

# Sampling configuration
LOGFIRE_SAMPLE_RATE = float(os.getenv("LOGFIRE_SAMPLE_RATE", "1.0"))
LOGFIRE_TRACE_SAMPLE_RATE = float(os.getenv("LOGFIRE_TRACE_SAMPLE_RATE", "1.0"))

# Feature flags
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in _TRUTHY
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in _TRUTHY

_configured = False


def is_logfire_active() -> bool:
    return _configured


def initialize_logfire(app: Optional[FastAPI] = None, engine: Optional[AsyncEngine] = None) -> bool:
    """
    Initialize Logfire monitoring and tracing.

    Args:
        app: FastAPI application to trace endpoints of (optional)
        engine: Async engine whose queries are traced (optional)

    Returns:
        True when Logfire was configured
    """
    global _configured

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
            sampling=SamplingOptions(
                head=LOGFIRE_SAMPLE_RATE,
                tail=LOGFIRE_TRACE_SAMPLE_RATE,
            ),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False

    if LOGFIRE_TRACE_SQLALCHEMY:
        if engine is not None:
            try:
                logfire.instrument_sqlalchemy(engine=engine.sync_engine)
                logger.info("Logfire: SQLAlchemy instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument SQLAlchemy: {e}")
        else:
            logger.debug("Database engine not provided, skipping SQLAlchemy instrumentation")

    if LOGFIRE_TRACE_FASTAPI:
        if app is not None:
            try:
                logfire.instrument_fastapi(app=app)
                logger.info("Logfire: FastAPI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument FastAPI: {e}")
        else:
            logger.debug("FastAPI app instance not provided, skipping FastAPI instrumentation")

    _configured = True
    logger.info(
        f"Logfire monitoring initialized: "
        f"project={LOGFIRE_PROJECT_NAME}, "
        f"environment={LOGFIRE_ENVIRONMENT}, "
        f"service={LOGFIRE_SERVICE_NAME}"
    )
    return True


def log_api_request(
    method: str, path: str, status_code: int, duration_ms: float, request_id: Optional[str] = None
) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
        request_id: Request correlation ID
    """
    if not _configured:
        return
    try:
        logfire.info(
            "API request completed",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )
    except Exception:
        logger.debug(f"Could not log API request to Logfire: {method} {path}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _configured:
        return
    try:
        logfire.error(
            "{error_type}: {error_message}",
            error_type=error_type,
            error_message=error_message,
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
