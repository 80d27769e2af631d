"""Webhook-driven HubSpot workflows.

Each workflow is a coroutine taking the full event batch; it filters the
events it cares about and does nothing for the rest.
"""

from src.workflows.dispatcher import WORKFLOWS, run_workflows
from src.workflows.events import HubSpotEvent, parse_events

__all__ = [
    "HubSpotEvent",
    "WORKFLOWS",
    "parse_events",
    "run_workflows",
]
