"""HubSpot webhook router.

HubSpot target URL: https://<public-host>/hubspot/webhook
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Request

from src.conf.config import settings
from src.core.logging import log_event, safe_preview
from src.integrations.crm.webhooks import verify_request
from src.server.exceptions import AuthenticationError, InvalidPayloadError, PayloadTooLargeError
from src.workflows.dispatcher import run_workflows
from src.workflows.events import parse_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hubspot", tags=["hubspot"])


async def _read_body(request: Request) -> bytes:
    limit = settings.WEBHOOK_MAX_BODY_BYTES

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(limit)

    body = await request.body()
    if len(body) > limit:
        raise PayloadTooLargeError(limit)
    return body


@router.post("/webhook")
async def hubspot_webhook(request: Request, background_tasks: BackgroundTasks) -> dict[str, Any]:
    """Receive a batch of HubSpot events and run the workflows after responding.

    HubSpot retries deliveries that are not acknowledged quickly, so the
    response is sent before any workflow runs.
    """
    body = await _read_body(request)

    if not verify_request(request, body):
        log_event(logger, event="webhook_signature_rejected", level="warning")
        raise AuthenticationError("Invalid HubSpot signature")

    try:
        payload = json.loads(body) if body else []
    except ValueError as e:
        raise InvalidPayloadError("Invalid JSON payload", detail=f"Invalid JSON payload: {e}")

    events = parse_events(payload)

    log_event(
        logger,
        event="webhook_received",
        event_count=len(events),
        preview=safe_preview([e.summary() for e in events[:3]], max_len=500),
    )

    if events:
        background_tasks.add_task(run_workflows, events)
        log_event(logger, event="webhook_scheduled", event_count=len(events))

    return {"status": "ok", "received": len(events)}
