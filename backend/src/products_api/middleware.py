"""FastAPI middleware for request tracing and the error boundary."""

import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from products_api.context import (
    REQUEST_ID_HEADER,
    TRACEPARENT_HEADER,
    parse_traceparent,
    request_context,
)
from products_api.handlers import problem_response
from products_api.translator import ErrorTranslator


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request/trace IDs and translate anything that escapes the app.

    - Reads X-Request-ID from request headers, or generates a UUID if missing
    - Reads the W3C traceparent header as the trace ID (None when absent/invalid)
    - Binds both to structlog context (auto-included in all logs)
    - Translates exceptions the registered exception handlers did not handle
    - Adds X-Request-ID to response headers

    Usage:
        app.add_middleware(RequestContextMiddleware, translator=translator)
    """

    def __init__(self, app: ASGIApp, translator: ErrorTranslator) -> None:
        super().__init__(app)
        self.translator = translator

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        trace_id = parse_traceparent(request.headers.get(TRACEPARENT_HEADER))

        request.state.request_id = request_id
        request.state.trace_id = trace_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, trace_id=trace_id)

        try:
            response = await call_next(request)
        except Exception as exc:
            problem = self.translator.translate(exc, request_context(request))
            response = problem_response(problem)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
