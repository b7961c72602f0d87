"""HTTP middleware for request correlation.

Every response carries the request id (taken from the incoming header or
generated) and the handling time, and every log line written while the
request is in flight carries the same id.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id to the request context and echo it on the response.

    Adds ``<LOG_REQUEST_ID_HEADER>`` (default ``X-Request-ID``) and
    ``X-Request-Duration-ms`` headers. The context is cleared afterwards so
    ids never leak between requests.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or uuid.uuid4().hex
    set_request_id(request_id)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{elapsed_ms:.2f}")
    return response
