"""Workflow dispatcher.

Fans one webhook batch out to every registered workflow concurrently. A
failing workflow is logged under its name and never affects the others or
the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

from src.core.logging import log_event, log_with_root_cause
from src.workflows.events import HubSpotEvent
from src.workflows.owner_role import primary_secondary_owner_role
from src.workflows.task_mirror import task_mirror_to_associated_contacts

logger = logging.getLogger(__name__)

Workflow = Callable[[Sequence[HubSpotEvent]], Awaitable[None]]

WORKFLOWS: list[Workflow] = [
    primary_secondary_owner_role,
    task_mirror_to_associated_contacts,
]


def workflow_name(workflow: Workflow) -> str:
    return getattr(workflow, "__name__", repr(workflow))


async def _run_isolated(workflow: Workflow, events: Sequence[HubSpotEvent]) -> bool:
    """Run one workflow, logging instead of raising. Returns True on success."""
    name = workflow_name(workflow)
    try:
        await workflow(events)
    except Exception as e:
        log_with_root_cause(
            logger,
            "error",
            f"[WORKFLOW ERROR] {name}: {e}",
            error=e,
            workflow=name,
        )
        return False
    return True


async def run_workflows(
    events: Sequence[HubSpotEvent] | None,
    workflows: Sequence[Workflow] | None = None,
) -> None:
    """Run every registered workflow over the same batch and wait for all of them."""
    if not events:
        return

    registry = WORKFLOWS if workflows is None else workflows
    started = time.monotonic()
    log_event(logger, event="workflows_started", event_count=len(events), workflows=len(registry))

    results = await asyncio.gather(*(_run_isolated(wf, events) for wf in registry))

    log_event(
        logger,
        event="workflows_done",
        event_count=len(events),
        failed=results.count(False),
        duration_ms=round((time.monotonic() - started) * 1000),
    )
