"""HTTP-facing errors for the webhook endpoints.

Raised inside routers and rendered by the ``APIError`` handler in
``src.server.main`` as ``{"detail": ..., "error": ...}``.
"""

from __future__ import annotations


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int = 400, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail or message


class InvalidPayloadError(APIError):
    """Request body could not be decoded."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message, status_code=400, detail=detail)


class AuthenticationError(APIError):
    """Webhook signature missing, stale or wrong."""

    def __init__(self, message: str = "Authentication failed", detail: str | None = None):
        super().__init__(message, status_code=401, detail=detail)


class PayloadTooLargeError(APIError):
    """Request body exceeds WEBHOOK_MAX_BODY_BYTES."""

    def __init__(self, limit_bytes: int):
        super().__init__(f"Payload exceeds {limit_bytes} bytes", status_code=413)
        self.limit_bytes = limit_bytes
