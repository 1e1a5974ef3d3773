"""
Request context middleware.

WHAT: Middleware that assigns every request an id, captures client details
and logs one line per request.

WHY: Ownership decisions are logged from services that never see the
request object. Putting the request id and client details in a ContextVar
lets any log line be correlated with the request that caused it.

HOW: Stores a RequestContext in request.state and in a ContextVar, echoes
the id in the X-Request-ID response header and logs method, path, status
and duration once the response is ready. RequestIdLogFilter, installed on
the root handler by create_app, copies the id onto every log record.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass(frozen=True)
class RequestContext:
    """
    Container for request-scoped context data.

    Fields:
    - request_id: Unique identifier for the request (for log correlation)
    - ip_address: Client's real IP (considering proxies)
    - user_agent: Client's browser/application identifier
    - path: Request path
    - method: HTTP method (GET, POST, etc.)
    """

    request_id: str
    ip_address: str
    user_agent: Optional[str]
    path: str
    method: str


# ContextVar keeps each concurrent request's context isolated
_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    Returns:
        RequestContext if within a request, None otherwise
    """
    return _request_context.get()


class RequestIdLogFilter(logging.Filter):
    """
    Logging filter that stamps every record with the current request id.

    Records emitted outside a request get ``request_id = "-"``, so a format
    string can always reference ``%(request_id)s``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get()
        record.request_id = context.request_id if context is not None else "-"
        return True


def get_client_ip(request: Request) -> str:
    """
    Extract the real client IP address from a request.

    HOW: Checks headers in order of trust:
    1. X-Real-IP (set by some proxies like nginx)
    2. X-Forwarded-For (comma-separated list, first is original client)
    3. request.client.host (direct connection IP)

    Security Note:
        These headers can be spoofed by clients if not behind a trusted proxy.

    Args:
        request: The incoming request

    Returns:
        Client IP address as string
    """
    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    # Format: "client, proxy1, proxy2"
    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    """Extract the User-Agent header from a request."""
    return request.headers.get("User-Agent")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures request context and logs each request.

    A client-supplied X-Request-ID is reused so ids can be traced across
    services; otherwise a UUID4 is generated.

    Example:
        @router.get("/example")
        async def example(request: Request):
            ctx = request.state.context
            # or
            ctx = get_request_context()
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and add context.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with request ID header added
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        context = RequestContext(
            request_id=request_id,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            path=request.url.path,
            method=request.method,
        )

        request.state.context = context
        token = _request_context.set(context)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            duration_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{context.method} {context.path} -> {response.status_code} "
                f"({duration_ms:.1f}ms) request_id={request_id} ip={context.ip_address}"
            )
            return response

        finally:
            _request_context.reset(token)
