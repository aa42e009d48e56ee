"""
Current Visit API: Exception Hierarchy
======================================

What:  Application-specific exceptions for the two fault kinds the service knows.
How:   Each exception carries a short human-readable message and an optional
       context dict. Global handlers registered in main.py turn them into HTTP
       responses whose body is the message.
Who:   Raised by the wire decoder, the request handler and the visit store.

Exception Hierarchy:
    VisitApiError (base)
    ├── ValidationError   → 400 Bad Request          ("your bad")
    └── StoreError        → 503 Service Unavailable  ("my bad")

No layer retries: the first fault ends the request.
"""

from typing import Any, Dict, Optional

INVALID_REQUEST = "Invalid request"
QUERY_FAILED = "Query failed"
UPDATE_FAILED = "Update failed"


class VisitApiError(Exception):
    """
    Base exception for all Current Visit API errors.

    Attributes:
        message:  Client-facing error description, returned as the response body
        context:  Additional debug info (logged but NOT returned to client)
        fault:    Category reported on the access line ("invalid", "store", ...)
    """

    status_code = 500
    fault = "unexpected"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VisitApiError):
    """
    Raised when the client sent something the service cannot act on.

    When:  Malformed or unknown query parameters, a create body that lacks
           `userId` or `name`.
    HTTP:  400 Bad Request
    """

    status_code = 400
    fault = "invalid"

    def __init__(
        self,
        message: str = INVALID_REQUEST,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(VisitApiError):
    """
    Raised when the backing database fails or misbehaves.

    When:  Any driver or SQL error, or an insert that reports a row count
           other than one.
    HTTP:  503 Service Unavailable

    The message stays generic ("Query failed" / "Update failed"); the original
    error type and statement parameters go into `context` for the server log.
    """

    status_code = 503
    fault = "store"

    def __init__(
        self,
        message: str = QUERY_FAILED,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
