"""Per-request identifiers shared by the middleware and the exception handlers."""

import re
import uuid

from starlette.requests import Request

from products_api.translator import RequestContext

REQUEST_ID_HEADER = "X-Request-ID"
TRACEPARENT_HEADER = "traceparent"

# W3C Trace Context: version-traceid-parentid-flags
_TRACEPARENT_RE = re.compile(r"^[0-9a-f]{2}-[0-9a-f]{32}-[0-9a-f]{16}-[0-9a-f]{2}$")


def parse_traceparent(value: str | None) -> str | None:
    """Return the traceparent header value if well-formed, else None."""
    if not value:
        return None
    value = value.strip().lower()
    return value if _TRACEPARENT_RE.match(value) else None


def request_context(request: Request) -> RequestContext:
    """Build the translator's view of ``request``.

    Prefers the identifiers bound by RequestContextMiddleware and falls back
    to the raw headers when the middleware did not run.
    """
    request_id = getattr(request.state, "request_id", None) or (
        request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    )
    if hasattr(request.state, "trace_id"):
        trace_id = request.state.trace_id
    else:
        trace_id = parse_traceparent(request.headers.get(TRACEPARENT_HEADER))
    return RequestContext(path=request.url.path, request_id=request_id, trace_id=trace_id)
