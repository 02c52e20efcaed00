"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware
(CORS, request logging), sets up Logfire tracing, registers exception
handlers and includes all API routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from waybill_ledger.core.database import engine, init_db
from waybill_ledger.core.logging_config import get_logger, setup_logging
from waybill_ledger.core.monitoring import initialize_logfire

from .api.v1 import (
    audit,
    auth,
    blanks,
    dashboard,
    drivers,
    fuel_cards,
    health,
    organizations,
    period_locks,
    reset_rules,
    settings,
    stock,
    users,
    vehicles,
    waybills,
)
from .core import constant
from .core.config import settings as env_settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestLoggingMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Handles startup and shutdown events for the FastAPI application.
    """
    logger.info("Starting up Waybill Ledger Server...")
    await init_db()
    logger.info("Database initialized successfully")

    yield

    logger.info("Shutting down Waybill Ledger Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Waybill Ledger Server API

    Fleet waybill management: vehicles, drivers, fuel cards, strict-accountability
    blanks, the waybill lifecycle and the fuel stock ledger it posts to.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = env_settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(RequestLoggingMiddleware)
setup_exception_handlers(app)
initialize_logfire(app=app, engine=engine)


app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{constant.API_V1_STR}/auth", tags=["auth"])
app.include_router(organizations.router, prefix=f"{constant.API_V1_STR}/organizations", tags=["organizations"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/users", tags=["users"])
app.include_router(drivers.router, prefix=f"{constant.API_V1_STR}/drivers", tags=["drivers"])
app.include_router(vehicles.router, prefix=f"{constant.API_V1_STR}/vehicles", tags=["vehicles"])
app.include_router(fuel_cards.router, prefix=f"{constant.API_V1_STR}/fuel-cards", tags=["fuel-cards"])
app.include_router(stock.router, prefix=f"{constant.API_V1_STR}/stock", tags=["stock"])
app.include_router(blanks.router, prefix=f"{constant.API_V1_STR}/blanks", tags=["blanks"])
app.include_router(waybills.router, prefix=f"{constant.API_V1_STR}/waybills", tags=["waybills"])
app.include_router(period_locks.router, prefix=f"{constant.API_V1_STR}/period-locks", tags=["period-locks"])
app.include_router(
    reset_rules.router, prefix=f"{constant.API_V1_STR}/fuel-card-reset-rules", tags=["fuel-card-reset-rules"]
)
app.include_router(dashboard.router, prefix=f"{constant.API_V1_STR}/dashboard", tags=["dashboard"])
app.include_router(audit.router, prefix=f"{constant.API_V1_STR}/audit", tags=["audit"])
app.include_router(settings.router, prefix=f"{constant.API_V1_STR}/settings", tags=["settings"])
