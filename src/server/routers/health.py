"""Health check router."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from src.conf.config import settings
from src.workflows.dispatcher import WORKFLOWS, workflow_name

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness probe for the hosting platform."""
    return "OK"


@router.get("/health")
async def health() -> dict[str, Any]:
    """Health check with the registered workflows and configuration state."""
    return {
        "status": "ok",
        "workflows": [workflow_name(wf) for wf in WORKFLOWS],
        "hubspot_configured": settings.hubspot_configured,
    }
