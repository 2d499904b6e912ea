"""Middleware for request context."""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from chatpulse.core.tenant_context import clear_organization_context, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id to the logging context and the response."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with a fresh logging context.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler

        Returns:
            Response carrying the request id header
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_id(request_id)
        clear_organization_context()
        try:
            response = await call_next(request)
        finally:
            set_request_id(None)
            clear_organization_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
