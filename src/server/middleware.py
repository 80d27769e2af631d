"""Request logging middleware.

Every request gets an id (taken from ``X-Request-ID`` when the caller sends
one) that is echoed back in the response and attached to the access log line.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from src.core.logging import log_with_root_cause


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI, Request, Response


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with request id, status and latency."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        line = f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms}ms [req={request_id}]"

        if response.status_code == 404:
            log_with_root_cause(
                logger,
                "warning",
                f"[404_NOT_FOUND] {line}",
                root_cause="ENDPOINT_NOT_FOUND",
                status_code=404,
                request_id=request_id,
                duration_ms=elapsed_ms,
            )
        elif response.status_code >= 400:
            logger.warning(line, extra={"request_id": request_id, "status_code": response.status_code})
        else:
            logger.info(line, extra={"request_id": request_id, "duration_ms": elapsed_ms})

        return response


def setup_middleware(app: FastAPI, *, enable_logging: bool = True) -> None:
    if enable_logging:
        app.add_middleware(RequestLoggingMiddleware)
