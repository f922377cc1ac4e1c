import logging
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.config import settings

logger = logging.getLogger(__name__)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Middleware for request tracing and correlation IDs."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.trace_header = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Get or generate trace ID
        trace_id = request.headers.get(self.trace_header)
        if not trace_id:
            trace_id = str(uuid.uuid4())

        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers[self.trace_header] = trace_id

        if settings.ENVIRONMENT == "development":
            logger.info("Request %s: %s %s", trace_id, request.method, request.url.path)

        return response
