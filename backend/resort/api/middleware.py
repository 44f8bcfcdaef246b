"""
Request middleware: correlation ids, access logging and route latency.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from resort.core.logging import get_logger
from resort.core.metrics import record_request

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Scraped every few seconds; not worth a log line each
QUIET_PATHS = frozenset({"/health", "/metrics"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds a request id to every log line emitted while handling the request.

    Channel managers and the front desk retry bookings with their own
    X-Request-ID; it is reused so their logs and ours line up. Refusals
    (409) are a normal booking outcome and log at info, server errors at error.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            record_request(request.method, _route_template(request), 500, duration)
            logger.error("request_failed", error=str(e), duration_ms=round(duration * 1000, 2))
            raise

        duration = time.perf_counter() - start_time
        duration_ms = round(duration * 1000, 2)
        record_request(request.method, _route_template(request), response.status_code, duration)

        if request.url.path not in QUIET_PATHS:
            log = logger.error if response.status_code >= 500 else logger.info
            log("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response


def _route_template(request: Request) -> str:
    """/stays/{resource_id}/quote rather than one label per chalet."""
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")
