"""
Current Visit API: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the VisitStore for the given database URL, wires
       the VisitService into app.state, registers middleware, exception
       handlers and routers.
Who:   uvicorn (`uvicorn visitapi.main:app`), `python -m visitapi`, and tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Access Log     │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes:                                            │
    │  ┌────────────────┐ ┌───────────────┐ ┌──────────┐  │
    │  │ GET  /current  │ │ POST /current │ │ /health  │  │
    │  └────────────────┘ └───────────────┘ └──────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ ValidationError→400 │ StoreError→503 │ *→500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, optionally create the schema
    Shutdown: dispose the store's engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from visitapi import __version__
from visitapi.config import settings
from visitapi.exceptions import VisitApiError
from visitapi.middleware.logging import RequestLoggingMiddleware, access_level, record_fault
from visitapi.middleware.request_id import RequestIDMiddleware, RequestIdFilter
from visitapi.routes import health, visits
from visitapi.services.visit_service import VisitService
from visitapi.services.visit_store import VisitStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(request_id)s] %(name)s: %(message)s"

# Third-party loggers that write a line per connection or statement at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "aiosqlite", "asyncpg")


def setup_logging(level: Optional[str] = None) -> None:
    """
    Send every logger to stdout with the request id in each line.

    RequestIdFilter sits on the handler, not on a logger, so records from
    third-party loggers carry `request_id` as well. SQL echo stays visible
    only at DEBUG.
    """
    level_name = level or settings.log_level
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if level_name != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown for the store owned by `app`."""
    setup_logging()
    logger.info("Current Visit API %s starting up...", __version__)

    store: VisitStore = app.state.visit_store
    if settings.create_schema_on_startup:
        await store.create_schema()
        logger.info("CurrentVisit schema ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Current Visit API shutting down...")
    await store.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application faults to HTTP responses whose body is the fault message.

        ValidationError → 400 Bad Request          (fault=invalid)
        StoreError      → 503 Service Unavailable  (fault=store)
        Exception       → 500 Internal Server Error (stack trace logged only)

    The fault category is recorded on the request for the access line; the
    error context goes to the application log and never into the response.
    """

    @app.exception_handler(VisitApiError)
    async def handle_visit_api_error(request: Request, exc: VisitApiError):
        record_fault(request, exc.fault)
        logger.log(
            access_level(exc.status_code),
            "%s fault: %s | Context: %s",
            exc.fault,
            exc.message,
            exc.context,
        )
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return PlainTextResponse(
            "An unexpected error occurred", status_code=500
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    database_url: Optional[str] = None,
    store: Optional[VisitStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database_url: connection URL for the visit store; defaults to
                      settings.database_url
        store: a ready VisitStore, used instead of building one from the URL
    """
    if store is None:
        store = VisitStore(database_url or settings.database_url)

    app = FastAPI(
        title="Current Visit API",
        description=(
            "Records visits to named places and finds a user's recent visits "
            "by fuzzy place name."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.visit_store = store
    app.state.visit_service = VisitService(store)

    # Last added runs first: RequestID sets the id before anything logs.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(visits.router)
    app.include_router(health.router)

    return app


app = create_app()
