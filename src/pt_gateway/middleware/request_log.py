"""Per-request access log and X-Request-ID propagation.

A caller-supplied X-Request-ID is kept (so a client can correlate retries of
the same buy), otherwise one is generated. Routers copy request.state.request_id
into ApiResponse.

    INFO    [POST] /api/v1/marketplace/listings/<id>/buy → 200 (23ms) req_a1b2c3d4e5f6
    WARNING [POST] /api/v1/marketplace/listings/<id>/buy → 409 (5012ms) req_...
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("pt.request")

_HEADER = "X-Request-ID"
_MAX_CLIENT_ID_LEN = 64


def _request_id(request: Request) -> str:
    supplied = request.headers.get(_HEADER, "")
    if supplied and len(supplied) <= _MAX_CLIENT_ID_LEN and supplied.isprintable():
        return supplied
    return f"req_{uuid.uuid4().hex[:12]}"


def _level(status_code: int) -> int:
    # 409: listing lock timeout or duplicate sign-up
    if status_code >= 500:
        return logging.ERROR
    if status_code == 409:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id
        route = f"[{request.method}] {request.url.path}"

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception("%s → unhandled error %s", route, request_id)
            raise

        logger.log(
            _level(response.status_code),
            "%s → %d (%.0fms) %s",
            route,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
        response.headers[_HEADER] = request_id
        return response
