"""Access log plus request-id propagation.

One line per request, e.g.

    INFO mp.request: POST /api/v1/orders/checkout 201 23ms req_a1b2c3d4e5f6

An ``x-request-id`` from the edge proxy is reused, otherwise one is minted.
The id is stored on ``request.state`` for the response envelope and
echoed back in the response header. Server errors log at WARNING.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mp.request")

REQUEST_ID_HEADER = "x-request-id"
_QUIET_PATHS = frozenset({"/health", "/health/ready"})


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path not in _QUIET_PATHS:
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                "%s %s %d %dms %s",
                request.method,
                request.url.path,
                response.status_code,
                round((time.perf_counter() - started) * 1000),
                request_id,
            )
        return response
