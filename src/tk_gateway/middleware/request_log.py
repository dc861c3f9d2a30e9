"""Access log for the ticketing API.

One line per request on the `tk.request` logger:

    INFO [POST] /api/v1/orders 201 41ms req_3f9a0c1d2e4b

The id is taken from an inbound X-Request-ID header when the caller sends
one, otherwise generated; it is exposed on request.state for ApiResponse
and echoed back in the X-Request-ID response header. Server errors are
logged at ERROR, client errors at WARNING.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("tk.request")

REQUEST_ID_HEADER = "X-Request-ID"


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s failed after %.0fms %s",
                request.method, request.url.path,
                (time.perf_counter() - started) * 1000, request_id,
            )
            raise

        logger.log(
            _level_for(response.status_code),
            "[%s] %s %d %.0fms %s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
