"""
Request ID middleware: accept or generate `X-Request-ID` and echo it back.
"""

from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..log_context import request_id_context, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        request_id = set_request_id(incoming[:MAX_REQUEST_ID_LENGTH] or None)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            request_id_context.set(None)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
