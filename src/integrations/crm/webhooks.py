"""HubSpot webhook request verification.

HubSpot signs webhook deliveries with the app client secret (signature v3):

    base64(HMAC-SHA256(secret, method + uri + body + timestamp))

sent in ``X-HubSpot-Signature-v3`` together with ``X-HubSpot-Request-Timestamp``
(milliseconds since epoch). Timestamps more than five minutes from now, in
either direction, are rejected.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import time

from fastapi import Request

from src.conf.config import settings


logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-HubSpot-Signature-v3"
TIMESTAMP_HEADER = "X-HubSpot-Request-Timestamp"
MAX_TIMESTAMP_AGE_MS = 5 * 60 * 1000


def compute_signature_v3(secret: str, method: str, uri: str, body: bytes, timestamp: str) -> str:
    """Return the base64 v3 signature HubSpot would send for this request."""
    source = method.upper().encode("utf-8") + uri.encode("utf-8") + body + timestamp.encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), source, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature_v3(
    secret: str,
    method: str,
    uri: str,
    body: bytes,
    timestamp: str | None,
    signature: str | None,
    *,
    now_ms: int | None = None,
) -> bool:
    """Check a v3 signature and its timestamp freshness."""
    if not signature or not timestamp:
        return False

    try:
        sent_at = int(timestamp)
    except ValueError:
        return False

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if abs(now_ms - sent_at) > MAX_TIMESTAMP_AGE_MS:
        logger.warning("[WEBHOOK] HubSpot timestamp outside freshness window: %s", timestamp)
        return False

    expected = compute_signature_v3(secret, method, uri, body, timestamp)
    return hmac.compare_digest(expected, signature)


def signed_uri(request: Request) -> str:
    """Rebuild the URI HubSpot signed.

    Behind a proxy the request URL seen here differs from the public one, so
    PUBLIC_BASE_URL wins when configured.
    """
    base_url = settings.PUBLIC_BASE_URL.rstrip("/")
    if not base_url:
        return str(request.url)

    uri = f"{base_url}{request.url.path}"
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


def verify_request(request: Request, body: bytes) -> bool:
    """Verify a webhook request when a client secret is configured.

    Returns True when verification is disabled.
    """
    secret = settings.HUBSPOT_CLIENT_SECRET.get_secret_value()
    if not secret:
        return True

    return verify_signature_v3(
        secret,
        request.method,
        signed_uri(request),
        body,
        request.headers.get(TIMESTAMP_HEADER),
        request.headers.get(SIGNATURE_HEADER),
    )
