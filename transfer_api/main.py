"""
FastAPI application factory and entry point.

create_app() builds and configures the application:
  1. Logging — structlog, JSON in production, console otherwise
  2. Database — one Database instance stored on app.state
  3. Lifespan manager — creates tables on startup (optional), disposes on shutdown
  4. Middleware — CORS, and request id / access logging
  5. Exception handlers — maps domain errors to HTTP responses
  6. Router registration — accounts, transactions, health

Running locally:
    uvicorn transfer_api.main:app --reload

Tests build their own instance with create_app(Settings(...), database=...).
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from transfer_api.config import Settings, settings as default_settings
from transfer_api.database import Database
from transfer_api.exceptions import register_exception_handlers
from transfer_api.logging_config import configure_logging
from transfer_api.middleware import request_context
from transfer_api.routers import accounts, health, transactions

logger = structlog.get_logger()


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or default_settings

    configure_logging(
        level=settings.LOG_LEVEL,
        log_format="json" if settings.ENVIRONMENT == "production" else settings.LOG_FORMAT,
    )

    if database is None:
        database = Database(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            sqlite_busy_timeout=settings.SQLITE_BUSY_TIMEOUT_SECONDS,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup:
          Creates missing tables when CREATE_TABLES_ON_STARTUP is set.

        Shutdown:
          Disposes of the database engine, closing all connections cleanly.
        """
        if settings.CREATE_TABLES_ON_STARTUP:
            await database.create_all()
        logger.info(
            "application_started",
            environment=settings.ENVIRONMENT,
            version=settings.APP_VERSION,
        )
        yield
        await database.close()
        logger.info("application_stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Internal transfers between accounts with atomic, concurrent-safe balances",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    # ---------------------------------------------------------------------------
    # Middleware
    # ---------------------------------------------------------------------------

    app.middleware("http")(request_context)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------------------------------------------------------
    # Exception handlers
    # ---------------------------------------------------------------------------

    register_exception_handlers(app)

    # ---------------------------------------------------------------------------
    # Routers
    # ---------------------------------------------------------------------------

    app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
    app.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])
    app.include_router(health.router)

    return app


app = create_app()
