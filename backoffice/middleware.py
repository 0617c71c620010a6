"""
Request-scoped middleware.

One middleware does both jobs the service needs per request:

- **Request ID**: honours an incoming ``X-Request-ID`` (from a gateway) or
  generates one, publishes it through :data:`request_id_var` so every log line
  written while serving the request carries it, and echoes it back.
- **Timing**: adds ``X-Process-Time`` and logs slow requests at WARNING.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from backoffice.core.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# Requests slower than this are logged at WARNING instead of DEBUG.
SLOW_REQUEST_MS = 500.0


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and time the request."""

    def __init__(self, app, slow_request_ms: float = SLOW_REQUEST_MS):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.2f}ms"

        log = logger.warning if elapsed_ms > self.slow_request_ms else logger.debug
        log(
            "%s %s -> %d in %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
        return response
