"""
MMW — Request Context Middleware
=================================
Attaches a request id to every HTTP request.

The id is taken from the incoming request-id header when present, otherwise
a UUID v4 is generated.  It is bound into the structlog context variables for
the duration of the request and echoed back in the response header.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from mmw.core.config import get_settings


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        header_name = get_settings().request_id_header
        request_id = request.headers.get(header_name) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
            response.headers[header_name] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()
