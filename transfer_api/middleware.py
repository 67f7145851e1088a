"""
Request context middleware.

Every request gets a request id: the caller's X-Request-ID header if it sent
one, otherwise a fresh uuid4. The id, method and path are bound into
structlog's context variables, so every log line emitted while the request
is handled carries them. The id is echoed back in the X-Request-ID response
header.
"""

import time
import uuid

import structlog
from fastapi import Request

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger()


async def request_context(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start = time.perf_counter()
    try:
        response = await call_next(request)
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        structlog.contextvars.clear_contextvars()
