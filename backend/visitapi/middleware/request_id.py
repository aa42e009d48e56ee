"""
Current Visit API: Request ID Middleware
========================================

What:  Tags each request with a short correlation id and echoes it back in
       the X-Request-ID response header.
How:   A client-supplied X-Request-ID is kept when it is a plain token (letters,
       digits, `.`, `_`, `-`, at most 64 characters); anything else is replaced
       by the first 8 characters of a fresh UUID, since the id is written into
       every log line. The id lives in a ContextVar, and RequestIdFilter copies
       it onto each log record as `%(request_id)s`.
When:  Outermost middleware, so the access line and the exception handlers
       already see the id.
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_ACCEPTED_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")

# Coroutine-local: concurrent requests on one event loop each see their own id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def choose_request_id(supplied: Optional[str]) -> str:
    if supplied and _ACCEPTED_ID.fullmatch(supplied):
        return supplied
    return uuid.uuid4().hex[:8]


class RequestIdFilter(logging.Filter):
    """Stamps every record with the current request id, or "-" outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID to every request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = choose_request_id(request.headers.get(REQUEST_ID_HEADER))
        request_id_var.set(rid)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
