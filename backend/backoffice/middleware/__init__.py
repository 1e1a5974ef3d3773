"""
Middleware package.

WHY: Middleware provides cross-cutting concerns like request correlation
and request logging that apply to all requests.
"""

from backoffice.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    get_client_ip,
    get_user_agent,
    RequestContext,
    RequestIdLogFilter,
)

__all__ = [
    "RequestContextMiddleware",
    "get_request_context",
    "get_client_ip",
    "get_user_agent",
    "RequestContext",
    "RequestIdLogFilter",
]
