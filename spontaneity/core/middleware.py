"""HTTP middleware for request correlation and access logging.

Every request/response pair carries a request id: the incoming header value
(``LOG_REQUEST_ID_HEADER``, default ``X-Request-ID``) or a fresh UUID. The id
is stored in the logging context so tenant, rate-limit and provider logs
emitted while serving the request can be correlated, and one
``request.completed`` line summarizes the request with its resolved tenant.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from spontaneity.core.config import settings
from spontaneity.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

MAX_REQUEST_ID_LENGTH = 128


def _incoming_request_id(request: Request, header_name: str) -> str:
    value = (request.headers.get(header_name) or "").strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH:
        return str(uuid.uuid4())
    return value


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a request id and total duration to every response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response with ``X-Request-ID`` and ``X-Request-Duration-ms`` headers.
    """
    header_name = settings.log.request_id_header
    request_id = _incoming_request_id(request, header_name)
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        tenant = getattr(request.state, "tenant", None)
        logger.info(
            "request.completed",
            extra={
                "request_method": request.method,
                "request_path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "tenant_id": tenant.tenant_id if tenant else None,
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
