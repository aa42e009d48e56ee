"""
Current Visit API: Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → Route Handler
    Response ← [Request ID] ← [Access Log] ← Route Handler

The request id is set before anything logs, so every record carries it via
RequestIdFilter. Route and exception handlers tag request.state with the mode
and fault category the access line reports.
"""
