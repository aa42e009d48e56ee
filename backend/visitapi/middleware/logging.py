"""
Current Visit API: Access Log Middleware
========================================

What:  One access line per HTTP request on the `visitapi.access` logger.
How:   Route handlers tag the request with the /current mode they ran, and the
       exception handlers tag it with a fault category; both travel in
       request.state, which the middleware reads after the response is built.

Access line:
    POST /current mode=create status=200 fault=- 3.2ms
    GET /current mode=- status=400 fault=invalid 0.4ms

Modes:   help | by-id | search | create      ("-" when no handler ran)
Faults:  invalid (400) | store (503)         ("-" on success)

Log level by status: 5xx → ERROR, 4xx → WARNING, else INFO.
Query strings and bodies are never logged: they carry user ids and place names.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("visitapi.access")

# Probes hit these every few seconds.
UNLOGGED_PATHS = frozenset({"/health"})

_UNSET = "-"


def record_mode(request: Request, mode: str) -> None:
    request.state.access_mode = mode


def record_fault(request: Request, fault: str) -> None:
    request.state.access_fault = fault


def access_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access line for every request outside UNLOGGED_PATHS."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in UNLOGGED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.log(
            access_level(response.status_code),
            "%s %s mode=%s status=%d fault=%s %.1fms",
            request.method,
            request.url.path,
            getattr(request.state, "access_mode", _UNSET),
            response.status_code,
            getattr(request.state, "access_fault", _UNSET),
            elapsed_ms,
        )
        return response
